"""
Post composer, post detail, comments and likes on the detail view.
"""
from fake_firestore import UnavailableFirestoreClient
from main import app
from services.firestore import FirestoreDB


class TestCreatePost:

    def test_composer_starts_empty(self, client):
        response = client.get("/create")
        assert response.status_code == 200
        assert response.json() == {"title": "", "content": "", "tags": ""}

    def test_created_post_shows_in_feed(self, client):
        response = client.post("/create", json={"title": "Hello", "content": "World", "tags": "x, y"})
        assert response.status_code == 201
        body = response.json()
        assert body["redirect"] == "/"
        assert body["notification"]["message"] == "Post created successfully!"

        feed = client.get("/").json()
        assert len(feed) == 1
        post = feed[0]
        assert post["id"] == body["id"]
        assert post["title"] == "Hello"
        assert post["content"] == "World"
        assert post["tags"] == ["x", "y"]
        assert post["like_count"] == 0
        assert post["comment_count"] == 0
        assert post["author"] == {"id": "alice", "username": "alice_dev"}

    def test_blank_title_creates_nothing(self, client, store):
        response = client.post("/create", json={"title": "  ", "content": "World"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Please fill in title and content"
        assert store.rows("posts") == []

    def test_blank_content_creates_nothing(self, client, store):
        response = client.post("/create", json={"title": "Hello", "content": ""})
        assert response.status_code == 400
        assert store.rows("posts") == []

    def test_text_round_trips_through_feed_search(self, client, store):
        response = client.post("/create", json={
            "title": "Tom & Jerry",
            "content": "Use List<String> here",
            "tags": "r&d, <x>, y",
        })
        assert response.status_code == 201

        row = store.rows("posts")[0]
        assert row["title"] == "Tom & Jerry"
        assert row["content"] == "Use List<String> here"
        assert row["tags"] == ["r&d", "<x>", "y"]

        found = client.get("/", params={"q": "r&d"}).json()
        assert [p["id"] for p in found] == [response.json()["id"]]

    def test_markup_title_is_not_emptied(self, client, store):
        response = client.post("/create", json={"title": "<div></div>", "content": "World", "tags": "<x>, y"})
        assert response.status_code == 201
        row = store.rows("posts")[0]
        assert row["title"] == "<div></div>"
        assert "" not in row["tags"]

    def test_author_is_current_user(self, client, session, store):
        session.sign_in_as("bob")
        client.post("/create", json={"title": "Mine", "content": "body"})
        assert store.rows("posts")[0]["author_id"] == "bob"

    def test_backend_failure(self, client):
        app.state.firestore = FirestoreDB(UnavailableFirestoreClient())
        response = client.post("/create", json={"title": "Hello", "content": "World"})
        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to create post"


class TestPostDetail:

    def test_detail_has_post_comments_and_likes(self, client, db, seed_post):
        seed_post("p1", "Detail", content="Long form", tags=["a"], author_id="bob")
        db.add_comment("p1", "alice", "great")
        db.add_like("p1", "alice")

        detail = client.get("/post/p1").json()
        assert detail["post"]["title"] == "Detail"
        assert detail["post"]["author"]["username"] == "bob_codes"
        assert [c["text"] for c in detail["comments"]] == ["great"]
        assert detail["comments"][0]["author"]["username"] == "alice_dev"
        assert detail["likes"] == [{"user_id": "alice"}]
        assert detail["like_count"] == 1
        assert detail["liked_by_me"] is True

    def test_missing_post(self, client):
        response = client.get("/post/missing")
        assert response.status_code == 404
        assert response.json()["detail"] == "Post not found"

    def test_comments_are_oldest_first(self, client, store, seed_post):
        seed_post("p1", "Thread")
        comments = store.collection("comments")
        comments.document("c3").set({"post_id": "p1", "author_id": "bob", "text": "third",
                                     "created_at": "2026-03-03T00:00:00+00:00"})
        comments.document("c1").set({"post_id": "p1", "author_id": "bob", "text": "first",
                                     "created_at": "2026-03-01T00:00:00+00:00"})
        comments.document("c2").set({"post_id": "p1", "author_id": "alice", "text": "second",
                                     "created_at": "2026-03-02T00:00:00+00:00"})
        comments.document("other").set({"post_id": "p2", "author_id": "alice", "text": "elsewhere",
                                        "created_at": "2026-03-01T12:00:00+00:00"})

        listed = client.get("/post/p1/comments").json()["comments"]
        assert [c["text"] for c in listed] == ["first", "second", "third"]
        stamps = [c["created_at"] for c in listed]
        assert stamps == sorted(stamps)


class TestComments:

    def test_add_comment_returns_refetched_list(self, client, seed_post):
        seed_post("p1", "Talk")
        client.post("/post/p1/comments", json={"text": "one"})
        response = client.post("/post/p1/comments", json={"text": "  two  "})

        assert response.status_code == 201
        body = response.json()
        assert [c["text"] for c in body["comments"]] == ["one", "two"]
        assert body["notification"]["message"] == "Comment added successfully!"

    def test_whitespace_comment_rejected(self, client, store, seed_post):
        seed_post("p1", "Talk")
        response = client.post("/post/p1/comments", json={"text": "   "})
        assert response.status_code == 400
        assert store.rows("comments") == []

    def test_markup_only_comment_rejected(self, client, store, seed_post):
        seed_post("p1", "Talk")
        response = client.post("/post/p1/comments", json={"text": "<div></div>"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Comment cannot be empty"
        assert store.rows("comments") == []

    def test_comment_on_missing_post(self, client, store):
        response = client.post("/post/missing/comments", json={"text": "hi"})
        assert response.status_code == 404
        assert store.rows("comments") == []

    def test_comment_count_in_feed(self, client, seed_post):
        seed_post("p1", "Talk")
        client.post("/post/p1/comments", json={"text": "one"})
        assert client.get("/").json()[0]["comment_count"] == 1


class TestDetailLikes:

    def test_toggle_twice_restores_likes(self, client, db, seed_post):
        seed_post("p1", "Likes")
        db.add_like("p1", "bob")

        first = client.post("/post/p1/like").json()
        assert first["like_count"] == 2
        assert first["liked_by_me"] is True

        second = client.post("/post/p1/like").json()
        assert second["likes"] == [{"user_id": "bob"}]
        assert second["liked_by_me"] is False

    def test_like_is_unique_per_user(self, client, db, store, seed_post):
        seed_post("p1", "Likes")
        assert db.add_like("p1", "alice") is True
        assert db.add_like("p1", "alice") is False
        assert len(store.rows("likes")) == 1

    def test_likes_listing(self, client, db, seed_post):
        seed_post("p1", "Likes")
        db.add_like("p1", "bob")
        body = client.get("/post/p1/likes").json()
        assert body == {"post_id": "p1", "likes": [{"user_id": "bob"}], "like_count": 1, "liked_by_me": False}

    def test_like_missing_post(self, client):
        assert client.post("/post/missing/like").status_code == 404


class TestDetailErrors:

    def test_post_fetch_failure(self, client):
        app.state.firestore = FirestoreDB(UnavailableFirestoreClient())
        response = client.get("/post/p1")
        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to fetch post"

    def test_comment_failure_leaves_other_parts(self, client, db, seed_post, monkeypatch):
        seed_post("p1", "Partly there")
        db.add_like("p1", "bob")

        def broken(post_id):
            raise RuntimeError("comments index missing")
        monkeypatch.setattr(db, "get_comments", broken)

        detail = client.get("/post/p1").json()
        assert detail["post"]["title"] == "Partly there"
        assert detail["comments"] == []
        assert detail["like_count"] == 1
