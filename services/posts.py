from typing import Any, Dict, Iterable, List

import bleach

from models.post import NewPost, PostDraft


class ValidationNotice(ValueError):
    """Raised when a draft cannot be submitted; the message is shown to the user"""


def parse_tags(raw: str) -> List[str]:
    """
    Split a comma separated tag string, trimming entries and dropping empty ones.
    Order is preserved and duplicates are kept.
    """
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def clean_comment(text: str) -> str:
    """Comment text is stored with markup stripped"""
    return bleach.clean(text, strip=True).strip()


def prepare_post(draft: PostDraft) -> NewPost:
    """
    Validate a composer draft and turn it into the row to insert.
    Title, content and tags are stored as typed, only trimmed.
    """
    title = draft.title.strip()
    content = draft.content.strip()
    if not title or not content:
        raise ValidationNotice("Please fill in title and content")

    return NewPost(title=title, content=content, tags=parse_tags(draft.tags))


def prepare_comment(text: str) -> str:
    cleaned = clean_comment(text or "")
    if not cleaned:
        raise ValidationNotice("Comment cannot be empty")
    return cleaned


def matches_search(post: Dict[str, Any], query: str) -> bool:
    """
    Case-insensitive match of the query against title or content (substring)
    or against the tag list (membership). An empty query matches everything.
    """
    q = (query or "").strip().lower()
    if not q:
        return True

    title = (post.get("title") or "").lower()
    content = (post.get("content") or "").lower()
    tags = [str(tag).lower() for tag in post.get("tags") or []]
    return q in title or q in content or q in tags


def filter_posts(posts: Iterable[Dict[str, Any]], query: str) -> List[Dict[str, Any]]:
    return [post for post in posts if matches_search(post, query)]
