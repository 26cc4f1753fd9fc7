import logging
from typing import Annotated

from fastapi import Request, Depends
from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError

from models.user import User
from services.firestore import FirestoreDB

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"


class LoginRequired(Exception):
    """Raised by view dependencies when no valid session exists"""

    def __init__(self, reason: str = ""):
        super().__init__(reason)
        self.reason = reason


def _verify(request: Request) -> dict:
    """
    Verify the session cookie, falling back to a bearer ID token when the
    cookie is missing or rejected
    """
    authorization = request.headers.get("Authorization")
    bearer = None
    if authorization and authorization.startswith("Bearer "):
        bearer = authorization.split("Bearer ")[1]

    session_cookie = request.cookies.get(SESSION_COOKIE)
    if session_cookie:
        try:
            return auth.verify_session_cookie(
                session_cookie=session_cookie,
                check_revoked=True,
                clock_skew_seconds=10
            )
        except (ValueError, FirebaseError) as e:
            if bearer is None:
                raise
            logger.info("[AUTH] Session cookie rejected, trying bearer token: %s", e)

    if bearer is not None:
        return auth.verify_id_token(bearer, check_revoked=True, clock_skew_seconds=10)

    raise LoginRequired("No session")


async def get_current_user(request: Request) -> User:
    """
    Resolve the signed-in user from the session cookie or a Firebase ID token.
    Any failure, including the verification call itself failing, sends the
    caller to the login view.
    """
    try:
        decoded = _verify(request)
    except LoginRequired:
        raise
    except (ValueError, FirebaseError) as e:
        logger.info("[AUTH] Session check failed: %s", e)
        raise LoginRequired(str(e))

    return User(user_id=decoded["uid"], email=decoded.get("email"))


async def get_firestore(request: Request) -> FirestoreDB:
    """ Get Firestore DB from app state """
    return request.app.state.firestore


CurrentUser = Annotated[User, Depends(get_current_user)]
Firestore = Annotated[FirestoreDB, Depends(get_firestore)]
