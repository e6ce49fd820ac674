import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from src.domain.entities import BlogPost
from src.domain.errors import PostNotFoundError, StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)


class FileSystemPostStore:
    """
    Post store backed by a local directory of <id>.json documents.

    There is no version precondition on writes: concurrent writers to the
    same id race and the last write wins.
    """

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path).resolve()

    def _path_for(self, post_id: str) -> Path | None:
        # Prevent traversal; ids are single path segments
        if not post_id or post_id.startswith(".") or "/" in post_id or "\\" in post_id:
            return None
        target = (self.base_path / f"{post_id}.json").resolve()
        if target.parent != self.base_path:
            return None
        return target

    def _read(self, target: Path) -> BlogPost | None:
        """Parse one document; None if it was deleted before it could be read."""
        try:
            raw = target.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreUnavailableError(f"Could not read {target.name}: {e}") from e
        try:
            return BlogPost.from_document(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            raise StoreError(f"Malformed blog post document {target.name}: {e}") from e

    def list(self) -> list[BlogPost]:
        if not self.base_path.is_dir():
            return []
        posts: list[BlogPost] = []
        for path in sorted(self.base_path.glob("*.json")):
            if not path.is_file():
                continue
            post = self._read(path)
            if post is None:
                # Deleted between listing and read
                continue
            posts.append(post)
        return sorted(posts, key=lambda p: p.created_at, reverse=True)

    def get(self, post_id: str) -> BlogPost | None:
        target = self._path_for(post_id)
        if target is None or not target.exists():
            return None
        return self._read(target)

    def put(self, post: BlogPost) -> BlogPost:
        target = self._path_for(post.id)
        if target is None:
            raise ValueError(f"Invalid blog post id: {post.id!r}")

        payload = json.dumps(post.to_document(), indent=2, ensure_ascii=False)
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file so readers never see a partial document
            fd, tmp_name = tempfile.mkstemp(dir=self.base_path, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, target)
            except OSError:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StoreUnavailableError(f"Could not write {target.name}: {e}") from e

        logger.info("Wrote blog post %s to %s", post.id, target)
        return post

    def remove(self, post_id: str) -> None:
        target = self._path_for(post_id)
        if target is None or not target.exists():
            raise PostNotFoundError(post_id)
        try:
            os.remove(target)
        except FileNotFoundError as e:
            raise PostNotFoundError(post_id) from e
        except OSError as e:
            raise StoreUnavailableError(f"Could not delete {target.name}: {e}") from e
        logger.info("Deleted blog post %s", post_id)

    def close(self) -> None:
        """Nothing to release; present for symmetry with remote stores."""
