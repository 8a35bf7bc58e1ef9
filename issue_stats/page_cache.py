"""Durable on-disk cache of raw GraphQL response pages."""

import hashlib
import json
import os
import re
from pathlib import Path
from typing import Any, Union

from loguru import logger

from .config import PERSISTED_DATA_DIR
from .exceptions import CacheIoError, DecodeError, PageNotCachedError
from .models import CachedPage

TEMP_SUFFIX = ".tmp"


def safe_collection_name(collection: str) -> str:
    """Convert a collection identifier such as "rust-lang/rust issues" to a directory name."""
    return re.sub(r"[^A-Za-z0-9._-]+", "_", collection).strip("_")


def collection_id(description: str, **query: Any) -> str:
    """Build a collection identifier from a readable description and the query bindings.

    The bindings are hashed from their canonical JSON, so two queries that
    differ in any filter never share a directory even when their descriptions
    sanitize to the same name. List values should be passed sorted.
    """
    canonical = json.dumps(query, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]
    return f"{description} {digest}"


class PageCache:
    """Maps (page size, page index) to a persisted response page.

    Pages are written once and read verbatim on every later run. Nothing is
    evicted or expired: the directory is the record of pages already paid for
    against the API rate limit. A single writer per directory is assumed.
    """

    def __init__(self, root_dir: Union[str, Path] = PERSISTED_DATA_DIR, collection: str = ""):
        self.root_dir = Path(root_dir)
        self.collection = collection

    @property
    def collection_dir(self) -> Path:
        if not self.collection:
            return self.root_dir
        return self.root_dir / safe_collection_name(self.collection)

    def path_for(self, page_size: int, page_index: int) -> Path:
        """Get the final cache file path for a page."""
        return self.collection_dir / f"page-size-{page_size}" / f"page-{page_index}.json"

    def exists(self, page_size: int, page_index: int) -> bool:
        return self.path_for(page_size, page_index).is_file()

    def read(self, page_size: int, page_index: int) -> CachedPage:
        """Read a cached page.

        Raises:
            PageNotCachedError: the page was never written; check `exists` first
            DecodeError: the file holds malformed JSON or an unexpected shape
            CacheIoError: the file could not be read
        """
        path = self.path_for(page_size, page_index)
        if not path.is_file():
            raise PageNotCachedError(f"Page {page_index} (page size {page_size}) is not cached: {path}")

        logger.debug(f"Reading response from disk. path: {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise DecodeError(f"Invalid JSON in cached page {path}: {e}") from e
        except OSError as e:
            raise CacheIoError(f"Failed to read cached page {path}: {e}") from e

        if not isinstance(data, dict):
            raise DecodeError(f"Cached page {path} is not a JSON object")
        return CachedPage.from_dict(data)

    def write(self, page_size: int, page_index: int, page: CachedPage) -> Path:
        """Persist a page atomically.

        The page is written to a sibling temporary file, flushed and fsynced,
        then renamed over the final path, so the final path is either absent
        or complete.
        """
        path = self.path_for(page_size, page_index)
        temp_file = path.with_name(path.name + TEMP_SUFFIX)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(page.to_dict(), f, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_file, path)
        except OSError as e:
            try:
                temp_file.unlink()
            except FileNotFoundError:
                pass
            except OSError as cleanup_error:
                logger.warning(f"Failed to remove temporary file {temp_file}: {cleanup_error}")
            raise CacheIoError(f"Failed to write cached page {path}: {e}") from e

        logger.info(f"Writing response to disk. path: {path}")
        return path
