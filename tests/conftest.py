import base64
import hashlib
import json
import re
from datetime import UTC, datetime, timedelta
from pathlib import Path

import httpx
import pytest

from src.adapters.github.contents_client import GitHubContentsClient
from src.rules.loader import load_rules

RULES_PATH = Path(__file__).resolve().parent.parent / "blog_rules.yaml"


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2025, 6, 1, 9, 0, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeGitHubAPI:
    """
    In-memory stand-in for the GitHub contents API.

    Enforces the sha preconditions GitHub applies to writes: updating or
    deleting an existing file needs its current blob sha, creating one must
    not send a sha.
    """

    PATH_RE = re.compile(r"^/repos/(?P<owner>[^/]+)/(?P<repo>[^/]+)/contents/(?P<path>.*)$")

    def __init__(self) -> None:
        self.files: dict[str, tuple[str, bytes]] = {}
        self.commits: list[tuple[str, str, str]] = []
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None
        self._counter = 0

    # --- helpers for tests ---

    def seed(self, path: str, content: str) -> str:
        sha = self._next_sha(content.encode("utf-8"))
        self.files[path] = (sha, content.encode("utf-8"))
        return sha

    def text(self, path: str) -> str:
        return self.files[path][1].decode("utf-8")

    def sha(self, path: str) -> str:
        return self.files[path][0]

    def _next_sha(self, data: bytes) -> str:
        self._counter += 1
        return hashlib.sha1(data + str(self._counter).encode()).hexdigest()

    # --- transport ---

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"message": "Server Error"})

        match = self.PATH_RE.match(request.url.path)
        if not match:
            return httpx.Response(404, json={"message": "Not Found"})
        path = match.group("path")

        if request.method == "GET":
            return self._get(path)
        body = json.loads(request.content or b"{}")
        if request.method == "PUT":
            return self._put(path, body)
        if request.method == "DELETE":
            return self._delete(path, body)
        return httpx.Response(405, json={"message": "Method Not Allowed"})

    def _get(self, path: str) -> httpx.Response:
        if path in self.files:
            sha, data = self.files[path]
            encoded = base64.encodebytes(data).decode("ascii")  # wrapped like GitHub's
            return httpx.Response(
                200, json={"type": "file", "path": path, "sha": sha, "content": encoded}
            )

        prefix = path.rstrip("/") + "/"
        entries = [
            {"type": "file", "name": p[len(prefix):], "path": p, "sha": sha}
            for p, (sha, _) in sorted(self.files.items())
            if p.startswith(prefix) and "/" not in p[len(prefix):]
        ]
        if entries:
            return httpx.Response(200, json=entries)
        return httpx.Response(404, json={"message": "Not Found"})

    def _put(self, path: str, body: dict) -> httpx.Response:
        current = self.files.get(path)
        sent_sha = body.get("sha")
        if current is not None and sent_sha is None:
            return httpx.Response(422, json={"message": 'Invalid request.\n\n"sha" wasn\'t supplied.'})
        if current is not None and sent_sha != current[0]:
            return httpx.Response(409, json={"message": f"{path} does not match {sent_sha}"})
        if current is None and sent_sha is not None:
            return httpx.Response(409, json={"message": f"{path} does not match {sent_sha}"})

        data = base64.b64decode(body["content"])
        new_sha = self._next_sha(data)
        self.files[path] = (new_sha, data)
        self.commits.append(("PUT", path, body["message"]))
        return httpx.Response(
            200 if current else 201, json={"content": {"path": path, "sha": new_sha}}
        )

    def _delete(self, path: str, body: dict) -> httpx.Response:
        current = self.files.get(path)
        if current is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if body.get("sha") != current[0]:
            return httpx.Response(409, json={"message": f"{path} does not match {body.get('sha')}"})
        del self.files[path]
        self.commits.append(("DELETE", path, body["message"]))
        return httpx.Response(200, json={"content": None})


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def github_api() -> FakeGitHubAPI:
    return FakeGitHubAPI()


@pytest.fixture
def github_client(github_api: FakeGitHubAPI):
    client = GitHubContentsClient(
        "Suv00m",
        "portfolio",
        "test-token",
        transport=httpx.MockTransport(github_api.handler),
    )
    yield client
    client.close()


@pytest.fixture
def rules():
    return load_rules(RULES_PATH)
