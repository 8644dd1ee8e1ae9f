class PrviewException(Exception):
    pass


class AuthenticationError(PrviewException):
    pass


class ResourceNotFoundError(PrviewException):
    status_code = 404


class APIError(PrviewException):
    def __init__(
        self, status_code: int | None = None, message: str = "", *args: object
    ) -> None:
        super().__init__(message, *args)
        self.status_code = status_code
        self.message = message


class ConfigurationError(PrviewException):
    pass


class SecurityError(PrviewException):
    pass


class ValidationError(PrviewException):
    pass


class WorkItemError(PrviewException):
    pass
