import json
from datetime import UTC, datetime

import httpx
import pytest

from src.adapters.github.contents_client import GitHubContentsClient
from src.adapters.github.post_store import GitHubPostStore
from src.domain.entities import BlogPost
from src.domain.errors import (
    PostNotFoundError,
    StoreConfigError,
    StoreConflictError,
    StoreError,
    StoreUnavailableError,
)

T0 = datetime(2025, 2, 1, 8, 0, 0, tzinfo=UTC)


def make_post(post_id: str, title: str = "Hello", minute: int = 0) -> BlogPost:
    ts = T0.replace(minute=minute)
    return BlogPost(
        id=post_id,
        title=title,
        description="<p>Body</p>",
        created_at=ts,
        updated_at=ts,
    )


@pytest.fixture
def store(github_client):
    return GitHubPostStore(github_client, "data/blogs")


# --- Client ---


def test_missing_token_is_config_error():
    with pytest.raises(StoreConfigError):
        GitHubContentsClient("o", "r", None)


def test_request_headers(github_client, github_api):
    github_client.get_file("data/blogs/x.json")
    request = github_api.requests[-1]
    assert request.headers["Authorization"] == "Bearer test-token"
    assert request.headers["Accept"] == "application/vnd.github+json"
    assert request.url.path == "/repos/Suv00m/portfolio/contents/data/blogs/x.json"


def test_branch_sent_as_ref_and_in_body(github_api):
    client = GitHubContentsClient(
        "o", "r", "t", branch="content", transport=httpx.MockTransport(github_api.handler)
    )
    client.get_file("a.json")
    assert github_api.requests[-1].url.params["ref"] == "content"

    client.put_file("a.json", "{}", "msg")
    assert json.loads(github_api.requests[-1].content)["branch"] == "content"
    client.close()


def test_network_error_is_unavailable():
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = GitHubContentsClient("o", "r", "t", transport=httpx.MockTransport(boom))
    with pytest.raises(StoreUnavailableError):
        client.get_file("a.json")


def test_server_error_is_unavailable(github_client, github_api):
    github_api.fail_with = 502
    with pytest.raises(StoreUnavailableError) as exc:
        github_client.get_file("a.json")
    assert exc.value.status_code == 502


def test_client_error_carries_message_and_status(github_client, github_api):
    github_api.fail_with = 403
    with pytest.raises(StoreError) as exc:
        github_client.list_dir("data/blogs")
    assert "Status: 403" in exc.value.message


def test_path_is_percent_encoded(github_client, github_api):
    github_client.get_file("data/blogs/a#b?.json")
    raw_path = github_api.requests[-1].url.raw_path
    assert raw_path.startswith(b"/repos/Suv00m/portfolio/contents/data/blogs/a%23b%3F.json")


# --- Store ---


def test_list_empty_when_directory_missing(store):
    assert store.list() == []


def test_put_creates_with_commit_message(store, github_api):
    store.put(make_post("p1", title="First post"))

    assert github_api.commits == [("PUT", "data/blogs/p1.json", "Create blog post: First post")]
    request = github_api.requests[-1]
    assert "sha" not in json.loads(request.content)


def test_put_update_sends_current_sha(store, github_api):
    store.put(make_post("p1"))
    sha_before = github_api.sha("data/blogs/p1.json")

    store.put(make_post("p1", title="Edited"))

    body = json.loads(github_api.requests[-1].content)
    assert body["sha"] == sha_before
    assert github_api.commits[-1] == ("PUT", "data/blogs/p1.json", "Update blog post: Edited")
    assert store.get("p1").title == "Edited"


def test_document_is_pretty_json(store, github_api):
    store.put(make_post("p1"))
    text = github_api.text("data/blogs/p1.json")
    assert text.startswith('{\n  "id": "p1"')


def test_get_decodes_wrapped_base64(store, github_api):
    post = make_post("p1", title="x" * 200)
    github_api.seed("data/blogs/p1.json", json.dumps(post.to_document()))
    assert store.get("p1") == post


def test_get_missing_returns_none(store):
    assert store.get("missing") is None
    assert store.get("../secret") is None


def test_ids_outside_safe_characters_never_reach_github(store, github_api):
    github_api.seed("data/blogs/README.md", "# notes")

    assert store.get("README.md#") is None
    assert store.get("p1?ref=main") is None
    assert store.get("p1\n") is None
    assert github_api.requests == []

def test_list_sorted_and_ignores_non_json(store, github_api):
    store.put(make_post("old", minute=1))
    store.put(make_post("new", minute=30))
    github_api.seed("data/blogs/README.md", "# notes")

    assert [p.id for p in store.list()] == ["new", "old"]


def test_malformed_document_raises(store, github_api):
    github_api.seed("data/blogs/bad.json", "{oops")
    with pytest.raises(StoreError):
        store.get("bad")


def test_remove(store, github_api):
    store.put(make_post("p1"))
    store.remove("p1")

    assert store.get("p1") is None
    assert github_api.commits[-1] == ("DELETE", "data/blogs/p1.json", "Delete blog post: p1")


def test_remove_missing(store):
    with pytest.raises(PostNotFoundError):
        store.remove("missing")


def test_stale_sha_loses_with_conflict(store, github_api):
    store.put(make_post("p1", title="v1"))
    stale = store.get_version("p1")

    # Another writer commits first
    store.put(make_post("p1", title="v2"))

    with pytest.raises(StoreConflictError):
        store.put(make_post("p1", title="v3"), expected_sha=stale)
    assert store.get("p1").title == "v2"


def test_concurrent_create_conflicts(github_api):
    # File appears between our sha lookup (none) and the create
    post = make_post("p1")
    path = "data/blogs/p1.json"

    def racing_handler(request: httpx.Request) -> httpx.Response:
        if request.method == "PUT" and path not in github_api.files:
            github_api.seed(path, json.dumps(post.to_document()))
        return github_api.handler(request)

    client = GitHubContentsClient("o", "r", "t", transport=httpx.MockTransport(racing_handler))
    with pytest.raises(StoreConflictError):
        GitHubPostStore(client, "data/blogs").put(post)
    client.close()


def test_utf8_content_round_trip(github_client, github_api):
    github_client.put_file("notes/a.txt", "naïve ☕\n", "add")
    raw = github_api.files["notes/a.txt"][1]
    assert raw.decode("utf-8") == "naïve ☕\n"
    assert github_client.get_file("notes/a.txt").content == "naïve ☕\n"
