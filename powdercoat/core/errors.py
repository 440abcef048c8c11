"""Domain errors raised by the service layer and mapped to HTTP responses in main."""


class OrderServiceError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class OrderValidationError(OrderServiceError):
    status_code = 400


class PermissionDeniedError(OrderServiceError):
    status_code = 403


class NotFoundError(OrderServiceError):
    status_code = 404


class ConflictError(OrderServiceError):
    status_code = 409
