import logging
from typing import Any, Dict, Optional

from client.swing import ApiError, SwingClient

logger = logging.getLogger(__name__)


class CommentBox:
    """Comment input on the post view; cleared only once the comment is stored"""

    def __init__(self, client: SwingClient, post_id: str):
        self.client = client
        self.post_id = post_id
        self.text = ""
        self.comments = []
        self.notice: Optional[str] = None
        self.submitting = False

    async def submit(self) -> bool:
        if not self.text.strip():
            return False

        self.submitting = True
        try:
            result = await self.client.add_comment(self.post_id, self.text)
        except ApiError as e:
            logger.error("Error adding comment: %s", e)
            self.notice = e.notice
            return False
        finally:
            self.submitting = False

        self.text = ""
        self.comments = result.get("comments", [])
        self.notice = (result.get("notification") or {}).get("message")
        return True


class Composer:
    """Create-post form; keeps its fields when the submit fails"""

    def __init__(self, client: SwingClient):
        self.client = client
        self.title = ""
        self.content = ""
        self.tags = ""
        self.notice: Optional[str] = None
        self.redirect: Optional[str] = None
        self.loading = False

    async def submit(self) -> Optional[Dict[str, Any]]:
        self.loading = True
        try:
            created = await self.client.create_post(self.title, self.content, self.tags)
        except ApiError as e:
            logger.error("Error creating post: %s", e)
            self.notice = e.notice
            return None
        finally:
            self.loading = False

        self.title = self.content = self.tags = ""
        self.notice = (created.get("notification") or {}).get("message")
        self.redirect = created.get("redirect", "/")
        return created
