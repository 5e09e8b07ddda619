"""Tests for the public blog endpoints and visibility rules."""

from datetime import datetime, timedelta, timezone

NOW = datetime.now(timezone.utc)


class TestListing:
    async def test_only_published_past_posts_newest_first(self, client, make_post):
        older = await make_post(title="Older", published_at=NOW - timedelta(days=3))
        newer = await make_post(title="Newer", published_at=NOW - timedelta(days=1))
        await make_post(title="Draft", published=False, published_at=None)
        await make_post(title="Scheduled", published_at=NOW + timedelta(days=1))

        response = await client.get("/api/blog/posts")

        assert response.status_code == 200
        body = response.json()
        assert [p["id"] for p in body["posts"]] == [newer.id, older.id]
        assert body["total"] == 2
        assert body["pages"] == 1
        assert "content" not in body["posts"][0]

    async def test_pagination_six_per_page(self, client, make_post):
        for i in range(8):
            await make_post(published_at=NOW - timedelta(hours=i + 1))

        first = (await client.get("/api/blog/posts")).json()
        second = (await client.get("/api/blog/posts?page=2")).json()

        assert len(first["posts"]) == 6
        assert len(second["posts"]) == 2
        assert first["pages"] == 2
        assert second["page"] == 2

    async def test_tag_filter(self, client, make_post):
        tagged = await make_post(tags=["python", "web"])
        await make_post(tags=["pythonic"])
        await make_post(tags=[])

        body = (await client.get("/api/blog/posts?tag=Python")).json()

        assert [p["id"] for p in body["posts"]] == [tagged.id]

    async def test_search(self, client, make_post):
        hit = await make_post(title="Understanding Asyncio")
        await make_post(title="Something else")

        body = (await client.get("/api/blog/posts?q=asyncio")).json()

        assert [p["id"] for p in body["posts"]] == [hit.id]

    async def test_search_treats_wildcards_literally(self, client, make_post):
        hit = await make_post(title="100% test coverage")
        await make_post(title="Plain title", content="Nothing special in here at all.")

        percent = (await client.get("/api/blog/posts", params={"q": "%"})).json()
        underscore = (await client.get("/api/blog/posts", params={"q": "_"})).json()

        assert [p["id"] for p in percent["posts"]] == [hit.id]
        assert percent["total"] == 1
        assert underscore["total"] == 0

    async def test_counts_only_approved_comments(self, client, make_post, make_comment):
        post = await make_post()
        await make_comment(post, approved=True)
        await make_comment(post)

        body = (await client.get("/api/blog/posts")).json()

        assert body["posts"][0]["commentCount"] == 1


class TestFeatured:
    async def test_latest_visible_featured(self, client, make_post):
        await make_post(is_featured=True, published_at=NOW - timedelta(days=5))
        latest = await make_post(is_featured=True, published_at=NOW - timedelta(days=1))
        await make_post(is_featured=True, published_at=NOW + timedelta(days=1))

        response = await client.get("/api/blog/posts/featured")

        assert response.json()["id"] == latest.id

    async def test_none_featured(self, client, make_post):
        await make_post()

        response = await client.get("/api/blog/posts/featured")

        assert response.status_code == 404


class TestTags:
    async def test_top_five_by_post_count(self, client, make_post):
        await make_post(tags=["python", "web", "a"])
        await make_post(tags=["python", "web", "b"])
        await make_post(tags=["python", "c", "d"])
        await make_post(tags=["hidden"], published=False, published_at=None)

        body = (await client.get("/api/blog/tags")).json()

        assert len(body) == 5
        assert body[0] == {"name": "python", "count": 3}
        assert body[1] == {"name": "web", "count": 2}
        assert "hidden" not in [t["name"] for t in body]


class TestDetail:
    async def test_post_with_approved_comments_oldest_first(
        self, client, make_post, make_comment
    ):
        post = await make_post(slug="hello-world")
        await make_comment(post, author="Second", approved=True, created_at=NOW - timedelta(minutes=1))
        await make_comment(post, author="First", approved=True, created_at=NOW - timedelta(minutes=5))
        await make_comment(post, author="Pending")

        response = await client.get("/api/blog/posts/hello-world")

        assert response.status_code == 200
        body = response.json()
        assert body["content"] == post.content
        assert [c["author"] for c in body["comments"]] == ["First", "Second"]

    async def test_draft_is_not_found(self, client, make_post):
        await make_post(slug="secret-draft", published=False, published_at=None)

        response = await client.get("/api/blog/posts/secret-draft")

        assert response.status_code == 404
        assert response.json() == {
            "error": "Not Found",
            "message": "Blog post not found",
        }

    async def test_scheduled_is_not_found(self, client, make_post):
        await make_post(slug="tomorrow", published_at=NOW + timedelta(days=1))

        response = await client.get("/api/blog/posts/tomorrow")

        assert response.status_code == 404
