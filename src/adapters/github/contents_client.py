"""
GitHub contents API client.

Thin httpx wrapper over GET/PUT/DELETE /repos/{owner}/{repo}/contents/{path}.
Files are addressed by path; every write or delete of an existing file must
carry the blob sha it replaces, which GitHub checks before committing.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from src.domain.errors import (
    StoreConfigError,
    StoreConflictError,
    StoreError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)

GITHUB_API_VERSION = "2022-11-28"


@dataclass(frozen=True)
class RemoteFile:
    """A file fetched from the contents API."""

    path: str
    sha: str
    content: str


class GitHubContentsClient:
    def __init__(
        self,
        owner: str,
        repo: str,
        token: str | None,
        *,
        branch: str | None = None,
        base_url: str = "https://api.github.com",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not token:
            raise StoreConfigError("GITHUB_TOKEN is not configured")

        self.owner = owner
        self.repo = repo
        self.branch = branch
        self._client = httpx.Client(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _url(self, path: str) -> str:
        return f"/repos/{quote(self.owner)}/{quote(self.repo)}/contents/{quote(path)}"

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.request(method, self._url(path), **kwargs)
        except httpx.HTTPError as e:
            logger.warning("GitHub %s %s failed: %s", method, path, e)
            raise StoreUnavailableError(f"GitHub API unreachable: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.reason_phrase
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return response.reason_phrase

    def _raise_for_status(self, response: httpx.Response, path: str) -> None:
        if response.is_success:
            return

        message = self._error_message(response)
        status = response.status_code
        logger.warning("GitHub API error on %s: %s (Status: %s)", path, message, status)

        # 409: sha does not match the current blob. 422: sha missing or invalid.
        if status == 409 or (status == 422 and "sha" in message.lower()):
            raise StoreConflictError(path, message)
        if status >= 500:
            raise StoreUnavailableError(
                f"GitHub API error: {message} (Status: {status})", status_code=status
            )
        raise StoreError(f"GitHub API error: {message} (Status: {status})", status_code=status)

    def _ref_params(self) -> dict[str, str]:
        return {"ref": self.branch} if self.branch else {}

    def get_file(self, path: str) -> RemoteFile | None:
        """Fetch a file and its sha. Returns None if it does not exist."""
        response = self._request("GET", path, params=self._ref_params())
        if response.status_code == 404:
            return None
        self._raise_for_status(response, path)

        data = response.json()
        if not isinstance(data, dict) or data.get("type") != "file":
            raise StoreError(f"Expected a file at {path}")

        # GitHub wraps base64 content at 60 columns
        content = base64.b64decode(data.get("content", "")).decode("utf-8")
        return RemoteFile(path=path, sha=data["sha"], content=content)

    def get_sha(self, path: str) -> str | None:
        remote = self.get_file(path)
        return remote.sha if remote else None

    def put_file(self, path: str, content: str, message: str, sha: str | None = None) -> str:
        """
        Create or update a file. Returns the new blob sha.

        Without sha this is a pure creation; GitHub rejects it if the file
        already exists. With sha the write only succeeds if it still matches.
        """
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        }
        if sha:
            body["sha"] = sha
        if self.branch:
            body["branch"] = self.branch

        response = self._request("PUT", path, json=body)
        self._raise_for_status(response, path)
        return str(response.json()["content"]["sha"])

    def delete_file(self, path: str, message: str, sha: str) -> None:
        body: dict[str, Any] = {"message": message, "sha": sha}
        if self.branch:
            body["branch"] = self.branch

        response = self._request("DELETE", path, json=body)
        self._raise_for_status(response, path)

    def list_dir(self, path: str) -> list[dict[str, Any]]:
        """Directory entries at path. A missing directory is empty."""
        response = self._request("GET", path, params=self._ref_params())
        if response.status_code == 404:
            return []
        self._raise_for_status(response, path)

        data = response.json()
        if not isinstance(data, list):
            raise StoreError(f"Expected a directory at {path}")
        return data
