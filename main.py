import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

import firebase_admin
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, RedirectResponse
from firebase_admin import credentials
from firebase_admin import firestore as fs
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from context import RequestContextMiddleware, describe_request
from dependencies import LoginRequired
from models.shell import ShellConfig, load_shell_config
from routes.auth import router as auth_router
from routes.feed import router as feed_router
from routes.posts import router as posts_router
from services.firestore import FirestoreDB

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger("swing")

FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS", "./firebase.json")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"
SHELL_CONFIG = Path(__file__).parent / "shell.json"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize Firebase Admin SDK
    cred = credentials.Certificate(FIREBASE_CREDENTIALS)
    firebase_app = firebase_admin.initialize_app(cred)

    app.state.firestore = FirestoreDB(fs.client(firebase_app))
    logger.info("Connected to Firebase project %s", firebase_app.project_id)

    yield

    firebase_admin.delete_app(firebase_app)


app = FastAPI(title="Swing", lifespan=lifespan)
app.state.secure_cookies = SESSION_COOKIE_SECURE

# middleware to set request context
app.add_middleware(RequestContextMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["set-cookie"]
)


@app.exception_handler(LoginRequired)
async def redirect_to_login(request: Request, exc: LoginRequired):
    """Views need a session; without one the caller is sent to the login view"""
    return RedirectResponse(url="/auth", status_code=303)


@app.exception_handler(StarletteHTTPException)
async def not_found_fallback(request: Request, exc: StarletteHTTPException):
    # Unmatched paths get the not-found view; 404s raised by handlers keep their detail
    if exc.status_code == 404 and exc.detail == "Not Found":
        logger.warning("404: attempted to access non-existent route %s", describe_request())
        return JSONResponse(
            status_code=404,
            content={"view": "not_found", "path": request.url.path}
        )
    return await http_exception_handler(request, exc)


@app.get("/shell-config", response_model=ShellConfig, tags=["shell"])
async def shell_config():
    """Configuration for the mobile wrapper"""
    return load_shell_config(SHELL_CONFIG)


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(posts_router, tags=["posts"])
app.include_router(feed_router, tags=["feed"])


def run():
    """Serve the app with uvicorn; host and port come from the environment"""
    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "INFO").lower()
    )


if __name__ == "__main__":
    run()
