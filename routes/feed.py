import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query

from dependencies import Firestore, CurrentUser
from models.post import FeedPost
from services.firestore import BACKEND_ERRORS

logger = logging.getLogger(__name__)

router = APIRouter()


def load_feed(db, q: str, user_id: str) -> List[FeedPost]:
    try:
        posts = db.get_feed(q, user_id)
    except BACKEND_ERRORS:
        logger.exception("[FEED] Error fetching posts (q=%r)", q)
        raise HTTPException(status_code=502, detail="Failed to fetch posts")
    return [FeedPost.model_validate(post) for post in posts]


@router.get("/", response_model=List[FeedPost])
async def get_feed(
        db: Firestore,
        current_user: CurrentUser,
        q: str = Query("", max_length=200)
):
    """Posts newest first, optionally filtered by title, content or tag"""
    return load_feed(db, q, current_user.user_id)


@router.post("/{post_id}/like", response_model=List[FeedPost])
async def toggle_like(
        db: Firestore,
        post_id: str,
        current_user: CurrentUser,
        q: str = Query("", max_length=200)
):
    """
    Toggle the current user's like on a post, then return the re-fetched feed
    so the caller renders the stored state rather than patching its own copy
    """
    user_id = current_user.user_id
    try:
        if not db.post_exists(post_id):
            raise HTTPException(status_code=404, detail="Post not found")
        liked = db.toggle_like(post_id, user_id)
    except BACKEND_ERRORS:
        logger.exception("[FEED] Error toggling like on %s", post_id)
        raise HTTPException(status_code=502, detail="Failed to update like")

    logger.info("[FEED] %s %s post %s", user_id, "liked" if liked else "unliked", post_id)
    return load_feed(db, q, user_id)
