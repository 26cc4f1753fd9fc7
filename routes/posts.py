import asyncio
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException
from starlette.concurrency import run_in_threadpool

from dependencies import Firestore, CurrentUser
from models.post import (
    Comment,
    CommentDraft,
    CommentsResponse,
    LikeRef,
    LikesResponse,
    Notification,
    Post,
    PostCreated,
    PostDetail,
    PostDraft,
)
from services.firestore import BACKEND_ERRORS
from services.posts import ValidationNotice, prepare_comment, prepare_post

logger = logging.getLogger(__name__)

router = APIRouter()


def _likes_response(post_id: str, likes: List[Dict[str, Any]], user_id: str) -> LikesResponse:
    return LikesResponse(
        post_id=post_id,
        likes=[LikeRef.model_validate(like) for like in likes],
        like_count=len(likes),
        liked_by_me=any(like["user_id"] == user_id for like in likes),
    )


@router.get("/create", response_model=PostDraft)
async def composer(current_user: CurrentUser):
    """Empty composer state for a signed-in user"""
    return PostDraft()


@router.post("/create", response_model=PostCreated, status_code=201)
async def create_post(db: Firestore, draft: PostDraft, current_user: CurrentUser):
    """Create a new post authored by the current user"""
    try:
        new_post = prepare_post(draft)
    except ValidationNotice as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        post_id = db.create_post(current_user.user_id, new_post)
    except BACKEND_ERRORS:
        logger.exception("[POST] Error creating post for %s", current_user.user_id)
        raise HTTPException(status_code=502, detail="Failed to create post")

    logger.info("[POST] %s created post %s", current_user.user_id, post_id)
    return PostCreated(
        id=post_id,
        notification=Notification(message="Post created successfully!"),
    )


@router.get("/post/{post_id}", response_model=PostDetail)
async def get_post_detail(db: Firestore, post_id: str, current_user: CurrentUser):
    """
    Fetch a post, its comments and its likes as three independent requests.
    Only the post itself is required; comment or like failures show up as
    empty lists.
    """
    post, comments, likes = await asyncio.gather(
        run_in_threadpool(db.get_post, post_id),
        run_in_threadpool(db.get_comments, post_id),
        run_in_threadpool(db.get_likes, post_id),
        return_exceptions=True,
    )

    if isinstance(post, BaseException):
        logger.error("[POST] Error fetching post %s: %s", post_id, post)
        raise HTTPException(status_code=502, detail="Failed to fetch post")
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")

    if isinstance(comments, BaseException):
        logger.error("[POST] Error fetching comments for %s: %s", post_id, comments)
        comments = []
    if isinstance(likes, BaseException):
        logger.error("[POST] Error fetching likes for %s: %s", post_id, likes)
        likes = []

    like_state = _likes_response(post_id, likes, current_user.user_id)
    return PostDetail(
        post=Post.model_validate(post),
        comments=[Comment.model_validate(c) for c in comments],
        likes=like_state.likes,
        like_count=like_state.like_count,
        liked_by_me=like_state.liked_by_me,
    )


@router.get("/post/{post_id}/comments", response_model=CommentsResponse)
async def get_comments(db: Firestore, post_id: str, current_user: CurrentUser):
    """Comments of a post, oldest first"""
    try:
        comments = db.get_comments(post_id)
    except BACKEND_ERRORS:
        logger.exception("[POST] Error fetching comments for %s", post_id)
        raise HTTPException(status_code=502, detail="Failed to fetch comments")
    return CommentsResponse(comments=[Comment.model_validate(c) for c in comments])


@router.post("/post/{post_id}/comments", response_model=CommentsResponse, status_code=201)
async def add_comment(
        db: Firestore,
        post_id: str,
        comment: CommentDraft,
        current_user: CurrentUser
):
    """Add a comment to a post and return the re-fetched comment list"""
    try:
        text = prepare_comment(comment.text)
    except ValidationNotice as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        if not db.post_exists(post_id):
            raise HTTPException(status_code=404, detail="Post not found")
        db.add_comment(post_id, current_user.user_id, text)
        comments = db.get_comments(post_id)
    except BACKEND_ERRORS:
        logger.exception("[POST] Error adding comment to %s", post_id)
        raise HTTPException(status_code=502, detail="Failed to add comment")

    return CommentsResponse(
        comments=[Comment.model_validate(c) for c in comments],
        notification=Notification(message="Comment added successfully!"),
    )


@router.get("/post/{post_id}/likes", response_model=LikesResponse)
async def get_likes(db: Firestore, post_id: str, current_user: CurrentUser):
    try:
        likes = db.get_likes(post_id)
    except BACKEND_ERRORS:
        logger.exception("[POST] Error fetching likes for %s", post_id)
        raise HTTPException(status_code=502, detail="Failed to fetch likes")
    return _likes_response(post_id, likes, current_user.user_id)


@router.post("/post/{post_id}/like", response_model=LikesResponse)
async def toggle_like(db: Firestore, post_id: str, current_user: CurrentUser):
    """Toggle the current user's like and return only the re-fetched like list"""
    user_id = current_user.user_id
    try:
        if not db.post_exists(post_id):
            raise HTTPException(status_code=404, detail="Post not found")
        db.toggle_like(post_id, user_id)
        likes = db.get_likes(post_id)
    except BACKEND_ERRORS:
        logger.exception("[POST] Error toggling like on %s", post_id)
        raise HTTPException(status_code=502, detail="Failed to update like")

    return _likes_response(post_id, likes, user_id)
