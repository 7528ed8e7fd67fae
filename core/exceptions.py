class AppError(Exception):
    """Base class for errors raised by the service layer."""

    message = "Something went wrong"

    def __init__(self, detail: str = None):
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class AuthenticationError(AppError):
    """No valid session for the caller."""

    message = "Authentication required"


class ForbiddenError(AppError):
    """The caller is authenticated but may not touch the target resource."""

    message = "Permission denied"


class NotFoundError(AppError):
    """The target resource does not exist."""

    message = "Resource not found"


class ActivationStateError(AppError):
    """An activation step was completed out of order."""

    message = "Previous activation step is not complete"


class DataStoreError(AppError):
    """A write to the data store did not complete."""

    message = "The operation could not be completed"
