from fastapi import Request
from fastapi.responses import JSONResponse
from livekit.api.twirp_client import TwirpError, TwirpErrorCode
from loguru import logger

from app.shared.api.utils import ApiFailure, make_response
from app.utils.app_errors import AppError, AppErrorCode, ProvisionError


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Exception handler for AppError (and ProvisionError).
    Converts the error to ApiFailure and returns via make_response.
    """
    # Log with the caller info captured when the error was raised
    log_msg = f"{exc.errcode} {exc.erresid} msg={exc.errmesg} caller={exc.caller_info}"
    if isinstance(exc, ProvisionError):
        log_msg += f" cause={exc.cause}"
    if exc.status_code >= 500:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    failure = ApiFailure(errcode=exc.errcode, errmesg=exc.errmesg, erresid=exc.erresid)
    return make_response(failure, status_code=exc.status_code)


# Mapping from Twirp error codes to AppErrorCode
_TWIRP_TO_APP_ERROR_MAP = {
    TwirpErrorCode.CANCELED: AppErrorCode.E_LIVEKIT_CANCELED,
    TwirpErrorCode.UNKNOWN: AppErrorCode.E_LIVEKIT_UNKNOWN,
    TwirpErrorCode.INVALID_ARGUMENT: AppErrorCode.E_LIVEKIT_INVALID_ARGUMENT,
    TwirpErrorCode.MALFORMED: AppErrorCode.E_LIVEKIT_MALFORMED,
    TwirpErrorCode.DEADLINE_EXCEEDED: AppErrorCode.E_LIVEKIT_DEADLINE_EXCEEDED,
    TwirpErrorCode.NOT_FOUND: AppErrorCode.E_LIVEKIT_NOT_FOUND,
    TwirpErrorCode.BAD_ROUTE: AppErrorCode.E_LIVEKIT_BAD_ROUTE,
    TwirpErrorCode.ALREADY_EXISTS: AppErrorCode.E_LIVEKIT_ALREADY_EXISTS,
    TwirpErrorCode.PERMISSION_DENIED: AppErrorCode.E_LIVEKIT_PERMISSION_DENIED,
    TwirpErrorCode.UNAUTHENTICATED: AppErrorCode.E_LIVEKIT_UNAUTHENTICATED,
    TwirpErrorCode.RESOURCE_EXHAUSTED: AppErrorCode.E_LIVEKIT_RESOURCE_EXHAUSTED,
    TwirpErrorCode.FAILED_PRECONDITION: AppErrorCode.E_LIVEKIT_FAILED_PRECONDITION,
    TwirpErrorCode.ABORTED: AppErrorCode.E_LIVEKIT_ABORTED,
    TwirpErrorCode.OUT_OF_RANGE: AppErrorCode.E_LIVEKIT_OUT_OF_RANGE,
    TwirpErrorCode.UNIMPLEMENTED: AppErrorCode.E_LIVEKIT_UNIMPLEMENTED,
    TwirpErrorCode.INTERNAL: AppErrorCode.E_LIVEKIT_INTERNAL,
    TwirpErrorCode.UNAVAILABLE: AppErrorCode.E_LIVEKIT_UNAVAILABLE,
    TwirpErrorCode.DATA_LOSS: AppErrorCode.E_LIVEKIT_DATA_LOSS,
}


def twirp_errcode(exc: TwirpError) -> AppErrorCode:
    return _TWIRP_TO_APP_ERROR_MAP.get(exc.code, AppErrorCode.E_INTERNAL_ERROR)


async def twirp_error_handler(request: Request, exc: TwirpError) -> JSONResponse:
    """
    Exception handler for TwirpError (LiveKit API errors that escaped the domain).
    """
    errcode = twirp_errcode(exc)

    log_msg = f"TwirpError: code={exc.code} status={exc.status} msg={exc.message}"
    if exc.metadata:
        log_msg += f" metadata={exc.metadata}"

    if exc.status >= 500:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    failure = ApiFailure(errcode=errcode.value, errmesg=exc.message)
    return make_response(failure, status_code=exc.status)
