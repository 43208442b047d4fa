from fastapi import HTTPException, status


class AppError(Exception):
    """Base for failures that reach the client as {"error": detail}."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class PreconditionFailedError(AppError):
    """Insufficient balance, voucher already used, wrong workflow state."""
    status_code = status.HTTP_400_BAD_REQUEST


class ValidationFailedError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid credentials or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )


def forbidden_exception(detail: str = "Access denied") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )


def not_found_exception(resource: str = "Resource") -> NotFoundError:
    return NotFoundError(f"{resource} not found")


def precondition_exception(detail: str) -> PreconditionFailedError:
    return PreconditionFailedError(detail)


def bad_request_exception(detail: str) -> ValidationFailedError:
    return ValidationFailedError(detail)


def internal_exception(detail: str = "Internal server error") -> InternalError:
    return InternalError(detail)
