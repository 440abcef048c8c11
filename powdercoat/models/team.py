from sqlalchemy import Column, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from powdercoat.models.base import BaseModel, AppendOnlyModel, enum_column
from powdercoat.core.enums import Availability


class TeamMember(BaseModel):
    __tablename__ = "team_members"

    name = Column(String(120), nullable=False)
    role = Column(String(120), nullable=False)
    department = Column(String(120), nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=True)
    user_id = Column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    availability = Column(enum_column(Availability), default=Availability.AVAILABLE, nullable=False)
    avatar_url = Column(String(1024), nullable=True)

    user = relationship("User", backref="team_profile")


class OrderTeamAssignment(AppendOnlyModel):
    __tablename__ = "order_team_assignments"
    __table_args__ = (
        UniqueConstraint("order_id", "team_member_id", name="uq_assignment_order_member"),
    )

    order_id = Column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    team_member_id = Column(ForeignKey("team_members.id", ondelete="CASCADE"), nullable=False, index=True)

    @property
    def assigned_at(self):
        return self.created_at
