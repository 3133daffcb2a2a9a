# loyalty_auth/core/exceptions.py

class AppError(Exception):
    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request") -> None:
        super().__init__(message, status_code=400)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=401)


class TooManyRequestsError(AppError):
    def __init__(self, message: str = "Too many requests", *, remaining: int = 0) -> None:
        super().__init__(message, status_code=429)
        self.remaining = remaining


class ConfigurationError(AppError):
    def __init__(self, message: str = "Authentication service is not configured") -> None:
        super().__init__(message, status_code=500)
