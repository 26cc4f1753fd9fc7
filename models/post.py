from typing import List, Optional

from pydantic import BaseModel


class Author(BaseModel):
    id: str
    username: str = "Unknown"


class LikeRef(BaseModel):
    user_id: str


class CommentRef(BaseModel):
    id: str


class Notification(BaseModel):
    level: str = "success"
    message: str


class Post(BaseModel):
    id: str
    title: str
    content: str
    tags: List[str] = []
    author_id: str
    author: Author
    created_at: str


class FeedPost(Post):
    """A post with its like and comment collections denormalised for display"""
    likes: List[LikeRef] = []
    comments: List[CommentRef] = []
    like_count: int = 0
    comment_count: int = 0
    liked_by_me: bool = False


class Comment(BaseModel):
    id: str
    text: str
    post_id: str
    author_id: str
    author: Author
    created_at: str


class PostDetail(BaseModel):
    post: Post
    comments: List[Comment] = []
    likes: List[LikeRef] = []
    like_count: int = 0
    liked_by_me: bool = False


class PostDraft(BaseModel):
    title: str = ""
    content: str = ""
    tags: str = ""


class NewPost(BaseModel):
    title: str
    content: str
    tags: List[str] = []


class PostCreated(BaseModel):
    id: str
    redirect: str = "/"
    notification: Notification


class CommentDraft(BaseModel):
    text: str = ""


class CommentsResponse(BaseModel):
    comments: List[Comment]
    notification: Optional[Notification] = None


class LikesResponse(BaseModel):
    post_id: str
    likes: List[LikeRef]
    like_count: int
    liked_by_me: bool
