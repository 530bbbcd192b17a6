import httpx
import pytest

from services.errors import PostsServiceError, UsersServiceError
from services.posts import MockPostsClient, PostsServiceClient
from services.users import MockUsersClient, User, UsersServiceClient


def _users_client(handler) -> UsersServiceClient:
    return UsersServiceClient(
        "http://users.test",
        token="users-secret",
        transport=httpx.MockTransport(handler),
    )


def _posts_client(handler) -> PostsServiceClient:
    return PostsServiceClient(
        "http://posts.test",
        token="posts-secret",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_users_client_resolves_user_and_forwards_credential():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["authorization"] = request.headers.get("Authorization")
        seen["secret"] = request.headers.get("X-Secret-Token")
        return httpx.Response(200, json={"id": "user-42", "name": "Ada"})

    client = _users_client(handler)
    try:
        user = await client.fetch_user("Bearer abc.def")
    finally:
        await client.aclose()

    assert user == User(id="user-42")
    assert seen == {
        "url": "http://users.test/users/me",
        "authorization": "Bearer abc.def",
        "secret": "users-secret",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 403, 404])
async def test_users_client_unknown_credential_is_absent(status):
    client = _users_client(lambda request: httpx.Response(status))
    try:
        assert await client.fetch_user("Bearer unknown") is None
        assert await client.validate("Bearer unknown") is False
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_users_client_blank_credential_skips_upstream():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"id": "x"})

    client = _users_client(handler)
    try:
        assert await client.fetch_user("   ") is None
    finally:
        await client.aclose()
    assert calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500),
        httpx.Response(503),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"name": "no id"}),
    ],
)
async def test_users_client_protocol_failures_raise(response):
    client = _users_client(lambda request: response)
    try:
        with pytest.raises(UsersServiceError):
            await client.fetch_user("Bearer abc.def")
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_users_client_transport_failure_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _users_client(handler)
    try:
        with pytest.raises(UsersServiceError):
            await client.validate("Bearer abc.def")
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_posts_client_status_mapping():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.raw_path.decode())
        post_id = request.url.path.rsplit("/", 1)[-1]
        return httpx.Response(200 if post_id == "exists-0001" else 404)

    client = _posts_client(handler)
    try:
        assert await client.validate_post_id("exists-0001") is True
        assert await client.validate_post_id("missing-001") is False
        assert await client.validate_post_id("") is False
    finally:
        await client.aclose()

    assert seen == ["/posts/exists-0001", "/posts/missing-001"]


@pytest.mark.asyncio
async def test_posts_client_quotes_post_id():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.raw_path.decode())
        return httpx.Response(404)

    client = _posts_client(handler)
    try:
        assert await client.validate_post_id("../admin") is False
    finally:
        await client.aclose()

    assert seen == ["/posts/..%2Fadmin"]


@pytest.mark.asyncio
async def test_posts_client_sends_service_secret():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["secret"] = request.headers.get("X-Secret-Token")
        return httpx.Response(200)

    client = _posts_client(handler)
    try:
        await client.validate_post_id("abcdefghij")
    finally:
        await client.aclose()

    assert seen["secret"] == "posts-secret"


@pytest.mark.asyncio
async def test_posts_client_upstream_failures_raise():
    client = _posts_client(lambda request: httpx.Response(502))
    try:
        with pytest.raises(PostsServiceError):
            await client.validate_post_id("abcdefghij")
    finally:
        await client.aclose()

    def timeout(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = _posts_client(timeout)
    try:
        with pytest.raises(PostsServiceError):
            await client.validate_post_id("abcdefghij")
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_mock_clients_use_length_rule():
    users = MockUsersClient()
    posts = MockPostsClient()

    assert await users.fetch_user("0123456789") == User(id="1234567890")
    assert await users.fetch_user("short") is None
    assert await users.validate("0123456789") is True
    assert await posts.validate_post_id("abcdefghij") is True
    assert await posts.validate_post_id("short") is False
