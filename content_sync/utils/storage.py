import hashlib
import logging
import os
from datetime import datetime, timezone
from typing import Optional, Tuple

from content_sync.core.models import ContentDocument

logger = logging.getLogger(__name__)

DRAFT_KEY = "draft"
DRAFT_HTML_KEY = "draft-html"
DRAFT_SHA_KEY = "draft-sha"
DRAFT_TIMESTAMP_KEY = "draft-timestamp"


class DraftCache:
    """File-backed key/value store for unsaved drafts."""

    def __init__(self, base_dir: str = ".content_sync_cache"):
        self.base_dir = base_dir
        if not os.path.exists(base_dir):
            os.makedirs(base_dir)

    def _path(self, key: str) -> str:
        # keys may contain characters that are not valid in filenames
        digest = hashlib.md5(key.encode()).hexdigest()
        return os.path.join(self.base_dir, f"{digest}.txt")

    def set(self, key: str, value: str) -> bool:
        full_path = self._path(key)
        try:
            with open(full_path, "w", encoding="utf-8", newline="") as f:
                f.write(value)
            return True
        except OSError as e:
            logger.error(f"Cache write failed {full_path}: {e}")
            return False

    def get(self, key: str) -> Optional[str]:
        full_path = self._path(key)
        if not os.path.exists(full_path):
            return None
        try:
            with open(full_path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except OSError as e:
            logger.error(f"Cache read failed {full_path}: {e}")
            return None

    def save_draft(
        self, document: ContentDocument, html: Optional[str] = None, sha: Optional[str] = None
    ) -> Optional[str]:
        """Write all draft keys; returns the ISO timestamp recorded, or None if a write failed."""
        timestamp = datetime.now(timezone.utc).isoformat()
        entries = [(DRAFT_KEY, document.to_json())]
        if html is not None:
            entries.append((DRAFT_HTML_KEY, html))
        if sha is not None:
            entries.append((DRAFT_SHA_KEY, sha))
        entries.append((DRAFT_TIMESTAMP_KEY, timestamp))
        for key, value in entries:
            if not self.set(key, value):
                return None
        logger.info(f"Draft cached at {timestamp}")
        return timestamp

    def load_draft(self) -> Optional[Tuple[ContentDocument, Optional[str], Optional[str]]]:
        """Return (document, html, timestamp) of the cached draft, or None."""
        raw = self.get(DRAFT_KEY)
        if raw is None:
            return None
        try:
            document = ContentDocument.from_json(raw)
        except ValueError as e:
            logger.warning(f"Ignoring unreadable cached draft: {e}")
            return None
        return document, self.get(DRAFT_HTML_KEY), self.get(DRAFT_TIMESTAMP_KEY)
