"""Application error types.

Every error raised by the domain layer is an ``AppError`` so the API layer can
render it as an ``ApiFailure`` envelope with the right HTTP status.
"""

import inspect
from enum import Enum, IntEnum
from uuid import uuid4


class HttpStatusCode(IntEnum):
    OK = 200
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504


class AppErrorCode(str, Enum):
    E_INTERNAL_ERROR = "E_INTERNAL_ERROR"
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_BAD_TOKEN = "E_BAD_TOKEN"

    # Stream record
    E_STREAM_NOT_FOUND = "E_STREAM_NOT_FOUND"

    # Provisioning
    E_PROVIDER_ERROR = "E_PROVIDER_ERROR"
    E_PROVIDER_TIMEOUT = "E_PROVIDER_TIMEOUT"
    E_INGRESS_NO_RESPONSE = "E_INGRESS_NO_RESPONSE"
    E_INGRESS_INCOMPLETE = "E_INGRESS_INCOMPLETE"
    E_PROVISION_IN_PROGRESS = "E_PROVISION_IN_PROGRESS"

    # Webhooks
    E_WEBHOOK_MISSING_AUTH = "E_WEBHOOK_MISSING_AUTH"
    E_WEBHOOK_INVALID_SIGNATURE = "E_WEBHOOK_INVALID_SIGNATURE"
    E_WEBHOOK_VALIDATION_ERROR = "E_WEBHOOK_VALIDATION_ERROR"

    # LiveKit (Twirp) errors
    E_LIVEKIT_CANCELED = "E_LIVEKIT_CANCELED"
    E_LIVEKIT_UNKNOWN = "E_LIVEKIT_UNKNOWN"
    E_LIVEKIT_INVALID_ARGUMENT = "E_LIVEKIT_INVALID_ARGUMENT"
    E_LIVEKIT_MALFORMED = "E_LIVEKIT_MALFORMED"
    E_LIVEKIT_DEADLINE_EXCEEDED = "E_LIVEKIT_DEADLINE_EXCEEDED"
    E_LIVEKIT_NOT_FOUND = "E_LIVEKIT_NOT_FOUND"
    E_LIVEKIT_BAD_ROUTE = "E_LIVEKIT_BAD_ROUTE"
    E_LIVEKIT_ALREADY_EXISTS = "E_LIVEKIT_ALREADY_EXISTS"
    E_LIVEKIT_PERMISSION_DENIED = "E_LIVEKIT_PERMISSION_DENIED"
    E_LIVEKIT_UNAUTHENTICATED = "E_LIVEKIT_UNAUTHENTICATED"
    E_LIVEKIT_RESOURCE_EXHAUSTED = "E_LIVEKIT_RESOURCE_EXHAUSTED"
    E_LIVEKIT_FAILED_PRECONDITION = "E_LIVEKIT_FAILED_PRECONDITION"
    E_LIVEKIT_ABORTED = "E_LIVEKIT_ABORTED"
    E_LIVEKIT_OUT_OF_RANGE = "E_LIVEKIT_OUT_OF_RANGE"
    E_LIVEKIT_UNIMPLEMENTED = "E_LIVEKIT_UNIMPLEMENTED"
    E_LIVEKIT_INTERNAL = "E_LIVEKIT_INTERNAL"
    E_LIVEKIT_UNAVAILABLE = "E_LIVEKIT_UNAVAILABLE"
    E_LIVEKIT_DATA_LOSS = "E_LIVEKIT_DATA_LOSS"

    def __str__(self) -> str:
        return self.value


class AppError(Exception):
    """Error carrying an error code, a message and the HTTP status to answer with.

    The caller location is captured at construction time so the exception
    handler can log where the error was raised.
    """

    def __init__(
        self,
        errcode: AppErrorCode | str = AppErrorCode.E_INTERNAL_ERROR,
        errmesg: str = "We are sorry, an error occurred.",
        status_code: int = HttpStatusCode.INTERNAL_SERVER_ERROR,
    ):
        self.errcode = errcode.value if isinstance(errcode, AppErrorCode) else str(errcode)
        self.errmesg = errmesg
        self.status_code = int(status_code)
        self.erresid = uuid4().hex[:10]

        frame = inspect.currentframe()
        caller = frame.f_back if frame else None
        # Skip constructors of subclasses so the caller is the raise site
        while caller is not None and caller.f_code.co_name == "__init__":
            caller = caller.f_back
        if caller is not None:
            self.caller_info = (
                f"{caller.f_globals.get('__name__', '?')}:{caller.f_code.co_name}:{caller.f_lineno}"
            )
        else:
            self.caller_info = "unknown"

        super().__init__(f"{self.errcode}: {errmesg}")


class ProvisionError(AppError):
    """Provisioning of an ingress failed.

    ``cause`` is the short human-readable reason ("no response",
    "missing credentials", "record not found", or the provider's message).
    """

    def __init__(
        self,
        errcode: AppErrorCode | str,
        cause: str,
        status_code: int = HttpStatusCode.INTERNAL_SERVER_ERROR,
        errmesg: str | None = None,
    ):
        self.cause = cause
        super().__init__(errcode=errcode, errmesg=errmesg or cause, status_code=status_code)


__all__ = ["AppError", "AppErrorCode", "HttpStatusCode", "ProvisionError"]
