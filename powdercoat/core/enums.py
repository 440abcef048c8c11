from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    CLIENT = "client"
    TEAM_MEMBER = "team_member"

    def __str__(self):
        return self.value


class OrderStatus(str, Enum):
    PENDING_QUOTE = "pending_quote"
    QUEUED = "queued"
    SAND_BLASTING = "sand-blasting"
    COATING = "coating"
    CURING = "curing"
    QUALITY_CHECK = "quality-check"
    COMPLETED = "completed"
    DELAYED = "delayed"

    def __str__(self):
        return self.value

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS = {
    OrderStatus.PENDING_QUOTE: "Pending Quote",
    OrderStatus.QUEUED: "Queued",
    OrderStatus.SAND_BLASTING: "Sand Blasting",
    OrderStatus.COATING: "Coating",
    OrderStatus.CURING: "Curing",
    OrderStatus.QUALITY_CHECK: "Quality Check",
    OrderStatus.COMPLETED: "Completed",
    OrderStatus.DELAYED: "Delayed",
}


class OrderPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    def __str__(self):
        return self.value


class FinishType(str, Enum):
    MATTE = "matte"
    GLOSSY = "glossy"
    SATIN = "satin"

    def __str__(self):
        return self.value


class TextureType(str, Enum):
    SMOOTH = "smooth"
    TEXTURED = "textured"
    HAMMERED = "hammered"

    def __str__(self):
        return self.value


class NegotiationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COUNTERED = "countered"

    def __str__(self):
        return self.value


class Availability(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"

    def __str__(self):
        return self.value


class NotificationType(str, Enum):
    STATUS = "status"
    QUOTE = "quote"
    ORDER = "order"
    TASK = "task"

    def __str__(self):
        return self.value


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    def __str__(self):
        return self.value


class AuditAction(str, Enum):
    REGISTER = "register"
    LOGIN = "login"
    CREATE_ORDER = "create_order"
    UPDATE_ORDER = "update_order"
    SET_STATUS = "set_status"
    ADVANCE_STAGE = "advance_stage"
    COMPLETE_ORDER = "complete_order"
    RECORD_QUOTE = "record_quote"
    COUNTER_OFFER = "counter_offer"
    ACCEPT_OFFER = "accept_offer"
    REJECT_OFFER = "reject_offer"
    SET_ASSIGNMENTS = "set_assignments"
    CREATE_TEAM_MEMBER = "create_team_member"
    UPDATE_TEAM_MEMBER = "update_team_member"
    DELETE_TEAM_MEMBER = "delete_team_member"
    PROVISION_ACCOUNT = "provision_account"
    UPDATE_CREDENTIALS = "update_credentials"

    def __str__(self):
        return self.value
