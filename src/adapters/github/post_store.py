"""
Post store backed by a JSON tree in a GitHub repository.

Each post is one file, <collection>/<id>.json, committed through the
contents API. Writes resolve the file's current sha immediately beforehand
and send it with the commit, so a writer holding a stale sha gets a
StoreConflictError instead of clobbering a newer version. The gap between
resolving the sha and submitting the write is not closed.
"""

from __future__ import annotations

import json
import logging
import re

from pydantic import ValidationError

from src.adapters.github.contents_client import GitHubContentsClient, RemoteFile
from src.domain.entities import BlogPost
from src.domain.errors import PostNotFoundError, StoreError

logger = logging.getLogger(__name__)

POST_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


class GitHubPostStore:
    def __init__(self, client: GitHubContentsClient, collection_path: str = "data/blogs"):
        self.client = client
        self.collection_path = collection_path.strip("/")

    def close(self) -> None:
        self.client.close()

    def _path(self, post_id: str) -> str:
        if not POST_ID_PATTERN.fullmatch(post_id):
            raise PostNotFoundError(post_id)
        return f"{self.collection_path}/{post_id}.json"

    @staticmethod
    def _decode(remote: RemoteFile) -> BlogPost:
        try:
            return BlogPost.from_document(json.loads(remote.content))
        except (json.JSONDecodeError, ValidationError) as e:
            raise StoreError(f"Malformed blog post document {remote.path}: {e}") from e

    def list(self) -> list[BlogPost]:
        entries = self.client.list_dir(self.collection_path)
        posts: list[BlogPost] = []
        for entry in entries:
            name = str(entry.get("name", ""))
            if entry.get("type") != "file" or not name.endswith(".json"):
                continue
            remote = self.client.get_file(f"{self.collection_path}/{name}")
            if remote is None:
                # Deleted between listing and fetch
                continue
            posts.append(self._decode(remote))
        return sorted(posts, key=lambda p: p.created_at, reverse=True)

    def get(self, post_id: str) -> BlogPost | None:
        try:
            path = self._path(post_id)
        except PostNotFoundError:
            return None
        remote = self.client.get_file(path)
        if remote is None:
            return None
        return self._decode(remote)

    def get_version(self, post_id: str) -> str | None:
        """Current blob sha of the post, or None if it does not exist."""
        return self.client.get_sha(self._path(post_id))

    def put(self, post: BlogPost, expected_sha: str | None = None) -> BlogPost:
        """
        Create or update a post.

        If expected_sha is given it is sent as the precondition instead of
        the freshly resolved sha (compare-and-swap against a version the
        caller read earlier).
        """
        path = self._path(post.id)
        sha = expected_sha if expected_sha is not None else self.client.get_sha(path)
        action = "Update" if sha else "Create"

        content = json.dumps(post.to_document(), indent=2, ensure_ascii=False)
        new_sha = self.client.put_file(path, content, f"{action} blog post: {post.title}", sha=sha)
        logger.info("%s blog post %s at %s (sha %s)", action, post.id, path, new_sha)
        return post

    def remove(self, post_id: str) -> None:
        path = self._path(post_id)
        sha = self.client.get_sha(path)
        if sha is None:
            raise PostNotFoundError(post_id)
        self.client.delete_file(path, f"Delete blog post: {post_id}", sha)
        logger.info("Deleted blog post %s at %s", post_id, path)
