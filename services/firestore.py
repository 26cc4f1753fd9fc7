import logging
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional, Set

from google.api_core.exceptions import GoogleAPIError
from google.cloud import firestore
from google.cloud.firestore_v1 import FieldFilter
from firebase_admin.exceptions import FirebaseError

from models.post import NewPost
from services.posts import filter_posts

logger = logging.getLogger(__name__)

# Failures raised by the hosted backend when a call does not go through
BACKEND_ERRORS = (GoogleAPIError, FirebaseError)

# Firestore caps the number of values in an 'in' filter
IN_QUERY_CHUNK = 10


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def like_id(post_id: str, user_id: str) -> str:
    return f"{post_id}_{user_id}"


class FirestoreDB:
    def __init__(self, client):
        self.db = client

    def collection(self, name: str):
        return self.db.collection(name)

    # Profiles

    def create_profile(self, user_id: str, username: str, email: Optional[str] = None):
        """Create the profile row used to render author names"""
        self.collection("profiles").document(user_id).set({
            "username": username,
            "email": email,
            "created_at": utc_now()
        })

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self.collection("profiles").document(user_id).get()
        if not snapshot.exists:
            return None
        return {"id": snapshot.id, **snapshot.to_dict()}

    def get_usernames(self, user_ids: Set[str]) -> Dict[str, str]:
        """Resolve a set of user ids to display usernames"""
        usernames = {}
        for user_id in user_ids:
            if not user_id:
                continue
            profile = self.get_profile(user_id)
            usernames[user_id] = profile.get("username", "Unknown") if profile else "Unknown"
        return usernames

    def _with_authors(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        usernames = self.get_usernames({row.get("author_id") for row in rows})
        for row in rows:
            author_id = row.get("author_id")
            row["author"] = {"id": author_id, "username": usernames.get(author_id, "Unknown")}
        return rows

    # Posts

    def get_all_posts(self) -> List[Dict[str, Any]]:
        """Get all posts sorted by creation date descending"""
        posts_ref = self.collection("posts").order_by("created_at", direction=firestore.Query.DESCENDING).stream()
        posts = []
        for doc in posts_ref:
            post_data = doc.to_dict()
            post_data["id"] = doc.id
            posts.append(post_data)
        return posts

    def get_feed(self, query: str = "", user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Get the searchable feed: posts newest first, joined with author username,
        the users that liked each post and the ids of its comments
        """
        posts = filter_posts(self.get_all_posts(), query)
        if not posts:
            return []

        post_ids = [post["id"] for post in posts]
        likes = self.get_likes_for_posts(post_ids)
        comment_ids = self.get_comment_ids_for_posts(post_ids)

        self._with_authors(posts)
        for post in posts:
            post_id = post["id"]
            post_likes = likes.get(post_id, [])
            post["likes"] = [{"user_id": uid} for uid in post_likes]
            post["comments"] = [{"id": cid} for cid in comment_ids.get(post_id, [])]
            post["like_count"] = len(post["likes"])
            post["comment_count"] = len(post["comments"])
            post["liked_by_me"] = user_id is not None and user_id in post_likes

        return posts

    def get_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        """Get a post by ID with its author"""
        snapshot = self.collection("posts").document(post_id).get()
        if not snapshot.exists:
            return None
        post = snapshot.to_dict()
        post["id"] = snapshot.id
        return self._with_authors([post])[0]

    def post_exists(self, post_id: str) -> bool:
        return self.collection("posts").document(post_id).get().exists

    def create_post(self, author_id: str, post: NewPost) -> str:
        """Create a new post"""
        new_post_ref = self.collection("posts").document()
        new_post_ref.set({
            "title": post.title,
            "content": post.content,
            "tags": post.tags,
            "author_id": author_id,
            "created_at": utc_now()
        })
        return new_post_ref.id

    # Likes

    def get_likes_for_posts(self, post_ids: List[str]) -> Dict[str, List[str]]:
        """
        Batch fetch the liking users of several posts
        Returns a dictionary mapping post ids to user ids
        """
        likes_by_post = {post_id: [] for post_id in post_ids}

        for i in range(0, len(post_ids), IN_QUERY_CHUNK):
            chunk = post_ids[i:i + IN_QUERY_CHUNK]

            likes_ref = self.collection("likes").where(
                filter=FieldFilter("post_id", "in", chunk)
            ).stream()

            for doc in likes_ref:
                like = doc.to_dict()
                post_id = like.get("post_id")
                if post_id in likes_by_post:
                    likes_by_post[post_id].append(like.get("user_id"))

        return likes_by_post

    def get_likes(self, post_id: str) -> List[Dict[str, Any]]:
        """Get the like rows of a single post"""
        likes_ref = self.collection("likes").where(
            filter=FieldFilter("post_id", "==", post_id)
        ).stream()
        return [{"user_id": doc.to_dict().get("user_id")} for doc in likes_ref]

    def user_has_liked_post(self, post_id: str, user_id: str) -> bool:
        """Check if a specific user has liked a post"""
        return self.collection("likes").document(like_id(post_id, user_id)).get().exists

    def add_like(self, post_id: str, user_id: str) -> bool:
        """Add a like to a post; returns False if the pair already existed"""
        like_ref = self.collection("likes").document(like_id(post_id, user_id))
        if like_ref.get().exists:
            return False

        like_ref.set({
            "post_id": post_id,
            "user_id": user_id,
            "created_at": utc_now()
        })
        return True

    def remove_like(self, post_id: str, user_id: str) -> bool:
        """Remove a like from a post; returns False if there was nothing to remove"""
        like_ref = self.collection("likes").document(like_id(post_id, user_id))
        if not like_ref.get().exists:
            return False

        like_ref.delete()
        return True

    def toggle_like(self, post_id: str, user_id: str) -> bool:
        """
        Flip the presence of the (post, user) like row.
        Returns True when the post is liked after the call.
        """
        if self.user_has_liked_post(post_id, user_id):
            self.remove_like(post_id, user_id)
            logger.debug("Removed like %s", like_id(post_id, user_id))
            return False

        self.add_like(post_id, user_id)
        logger.debug("Added like %s", like_id(post_id, user_id))
        return True

    # Comments

    def get_comment_ids_for_posts(self, post_ids: List[str]) -> Dict[str, List[str]]:
        """Batch fetch comment ids for multiple posts"""
        comments_by_post = {post_id: [] for post_id in post_ids}

        for i in range(0, len(post_ids), IN_QUERY_CHUNK):
            chunk = post_ids[i:i + IN_QUERY_CHUNK]

            comments_ref = self.collection("comments").where(
                filter=FieldFilter("post_id", "in", chunk)
            ).stream()

            for doc in comments_ref:
                post_id = doc.to_dict().get("post_id")
                if post_id in comments_by_post:
                    comments_by_post[post_id].append(doc.id)

        return comments_by_post

    def add_comment(self, post_id: str, author_id: str, text: str) -> str:
        """Add a comment to a post"""
        comment_ref = self.collection("comments").document()
        comment_ref.set({
            "post_id": post_id,
            "author_id": author_id,
            "text": text,
            "created_at": utc_now()
        })
        return comment_ref.id

    def get_comments(self, post_id: str) -> List[Dict[str, Any]]:
        """Get comments for a post, oldest first"""
        comments_ref = self.collection("comments").where(
            filter=FieldFilter("post_id", "==", post_id)
        ).order_by(
            "created_at", direction=firestore.Query.ASCENDING
        ).stream()

        comments = []
        for doc in comments_ref:
            c_data = doc.to_dict()
            c_data["id"] = doc.id
            comments.append(c_data)
        return self._with_authors(comments)
