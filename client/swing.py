import logging
import os
from typing import Any, Dict, List, Optional

import aiohttp

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"


class ApiError(Exception):
    """A request the service rejected; `notice` is the message meant for the user"""

    def __init__(self, status: int, notice: str):
        super().__init__(f"{status}: {notice}")
        self.status = status
        self.notice = notice


class NotAuthenticated(ApiError):
    def __init__(self):
        super().__init__(303, "Please sign in")


class SwingClient:
    """
    Async client for the Swing service. Holds one aiohttp session; every view
    method issues its own request and returns what the server sent back.
    """

    def __init__(self, base_url: str, api_key: Optional[str] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or os.getenv("FIREBASE_API_KEY")
        self._session = session
        self._owns_session = session is None
        self.id_token: Optional[str] = None
        self.user_id: Optional[str] = None

    async def __aenter__(self):
        if self._session is None:
            self._session = aiohttp.ClientSession(cookie_jar=aiohttp.CookieJar(unsafe=True))
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("SwingClient must be used as an async context manager")
        return self._session

    def _headers(self) -> Dict[str, str]:
        if self.id_token:
            return {"Authorization": f"Bearer {self.id_token}"}
        return {}

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        async with self.session.request(
                method,
                f"{self.base_url}{path}",
                headers=self._headers(),
                allow_redirects=False,
                **kwargs
        ) as response:
            if response.status == 303 and response.headers.get("Location", "").endswith("/auth"):
                raise NotAuthenticated()

            data = await response.json(content_type=None)
            if response.status >= 400:
                detail = data.get("detail") if isinstance(data, dict) else None
                if not isinstance(detail, str):
                    detail = "Operation failed"
                logger.error("%s %s failed: %s", method, path, detail)
                raise ApiError(response.status, detail)
            return data

    # Auth

    async def sign_up(self, email: str, password: str, username: str) -> Dict[str, Any]:
        return await self._request("POST", "/auth/signup", json={
            "email": email,
            "password": password,
            "username": username,
        })

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """Exchange credentials for a Firebase ID token, then open a session"""
        if not self.api_key:
            raise ValueError("FIREBASE_API_KEY is required to sign in")

        async with self.session.post(
                IDENTITY_TOOLKIT_URL,
                params={"key": self.api_key},
                json={"email": email, "password": password, "returnSecureToken": True}
        ) as response:
            data = await response.json()
            if response.status != 200:
                message = data.get("error", {}).get("message", "Sign in failed")
                raise ApiError(response.status, message)

        self.id_token = data["idToken"]
        result = await self._request("POST", "/auth/login", json={"id_token": self.id_token})
        self.user_id = result.get("user_id")
        return result

    async def sign_out(self):
        await self._request("POST", "/auth/logout")
        self.id_token = None
        self.user_id = None
        self.session.cookie_jar.clear()

    async def current_user(self) -> Dict[str, Any]:
        return await self._request("GET", "/auth/verify")

    # Feed

    async def feed(self, q: str = "") -> List[Dict[str, Any]]:
        params = {"q": q} if q else None
        return await self._request("GET", "/", params=params)

    async def toggle_feed_like(self, post_id: str, q: str = "") -> List[Dict[str, Any]]:
        params = {"q": q} if q else None
        return await self._request("POST", f"/{post_id}/like", params=params)

    # Posts

    async def create_post(self, title: str, content: str, tags: str = "") -> Dict[str, Any]:
        return await self._request("POST", "/create", json={
            "title": title,
            "content": content,
            "tags": tags,
        })

    async def post_detail(self, post_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/post/{post_id}")

    async def add_comment(self, post_id: str, text: str) -> Dict[str, Any]:
        return await self._request("POST", f"/post/{post_id}/comments", json={"text": text})

    async def toggle_post_like(self, post_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/post/{post_id}/like")
