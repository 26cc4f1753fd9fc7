import logging

from fastapi import APIRouter, Request, Response, HTTPException
from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError

from dependencies import CurrentUser, Firestore, SESSION_COOKIE
from models.token import TokenRequest
from models.user import SignupRequest
from services.firestore import BACKEND_ERRORS

logger = logging.getLogger(__name__)

router = APIRouter()

SESSION_MAX_AGE = 5 * 24 * 60 * 60  # 5 days in seconds


@router.get("")
async def login_view():
    """The login/signup view; public"""
    return {
        "view": "auth",
        "actions": {
            "login": "/auth/login",
            "signup": "/auth/signup",
        }
    }


@router.post("/signup", status_code=201)
async def signup(request: SignupRequest, db: Firestore):
    """Create a Firebase user and the profile that carries its username"""
    try:
        user = auth.create_user(
            email=request.email,
            password=request.password,
            display_name=request.username
        )
    except auth.EmailAlreadyExistsError:
        raise HTTPException(status_code=409, detail="An account with this email already exists")
    except (ValueError, FirebaseError) as e:
        logger.warning("[AUTH] Signup failed for %s: %s", request.email, e)
        raise HTTPException(status_code=400, detail=f"Signup failed: {str(e)}")

    try:
        db.create_profile(user.uid, request.username, request.email)
    except BACKEND_ERRORS:
        logger.exception("[AUTH] Error creating profile for %s", user.uid)
        raise HTTPException(status_code=502, detail="Failed to create profile")

    logger.info("[AUTH] Created user %s (%s)", user.uid, request.username)
    return {"success": True, "user_id": user.uid, "username": request.username}


@router.post("/login")
async def login(request: TokenRequest, response: Response, http_request: Request):
    try:
        # Verify the ID token
        decoded_token = auth.verify_id_token(
            id_token=request.id_token,
            clock_skew_seconds=10
        )

        session_cookie = auth.create_session_cookie(
            request.id_token,
            expires_in=SESSION_MAX_AGE
        )
    except (ValueError, FirebaseError) as e:
        logger.info("[AUTH] Login rejected: %s", e)
        raise HTTPException(status_code=401, detail=f"Authentication failed: {str(e)}")

    response.headers["Access-Control-Allow-Credentials"] = "true"
    response.set_cookie(
        key=SESSION_COOKIE,
        value=str(session_cookie),
        httponly=True,
        secure=http_request.app.state.secure_cookies,
        max_age=SESSION_MAX_AGE,
        path="/",
        samesite="lax"
    )

    return {"success": True, "user_id": decoded_token["uid"]}


@router.post("/logout")
async def logout(response: Response, http_request: Request):
    # Clear the session cookie
    response.delete_cookie(
        key=SESSION_COOKIE,
        path="/",
        httponly=True,
        secure=http_request.app.state.secure_cookies
    )
    return {"success": True}


@router.get("/verify")
async def verify_session(current_user: CurrentUser, db: Firestore):
    """The signed-in user together with the username from its profile"""
    try:
        profile = db.get_profile(current_user.user_id)
    except BACKEND_ERRORS:
        logger.exception("[AUTH] Error fetching profile for %s", current_user.user_id)
        profile = None

    return {
        "valid": True,
        "user": {
            "uid": current_user.user_id,
            "email": current_user.email,
            "username": profile.get("username") if profile else None
        }
    }
