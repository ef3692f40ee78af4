from fastapi import status


class ServiceError(Exception):
    """Base for errors raised by services; carries the HTTP status to answer with."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request failed"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ServiceError):
    default_message = "Validation error"


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class NotPending(Conflict):
    default_message = "Not pending"


class ServiceUnavailable(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service unavailable"


class OtpError(ValidationError):
    pass


class OtpNotFound(OtpError):
    default_message = "OTP not found. Please request a new OTP."


class OtpAlreadyUsed(OtpError):
    default_message = "OTP already used. Please request a new OTP."


class OtpExpired(OtpError):
    default_message = "OTP expired."


class OtpInvalid(OtpError):
    default_message = "Invalid OTP."


class OtpDeliveryError(ServiceUnavailable):
    default_message = "Could not send the OTP email. Please try again shortly."
