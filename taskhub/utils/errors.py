from fastapi import HTTPException, status


class ServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ServiceError):
    # Duplicate membership and similar; reported as invalid input.
    status_code = status.HTTP_400_BAD_REQUEST


class AccessDenied(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class TransactionFailure(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class NotificationDispatchFailure(Exception):
    """Raised by notification handlers; caught and recorded at the delivery boundary."""


def as_http_exception(exc: ServiceError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))
