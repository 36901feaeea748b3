from typing import Annotated

from fastapi import Depends, Request
from loguru import logger
from pydantic import BaseModel

from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class User(BaseModel):
    user_id: str
    username: str


async def get_current_user(request: Request) -> User:
    # Identity is established by the sign-in flow and carried in the signed session cookie.
    user_id = request.session.get("user_id")
    username = request.session.get("username")
    if not user_id or not username:
        raise AppError(
            errcode=AppErrorCode.E_BAD_TOKEN,
            errmesg="Unauthorized",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )

    logger.debug("Authenticated user_id: {}", user_id)

    return User(user_id=user_id, username=username)


CurrentUser = Annotated[User, Depends(get_current_user)]
