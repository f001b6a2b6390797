"""
Framework-agnostic endpoint handlers: preview, load and save.

Each handler takes the decoded JSON body (where there is one) and returns an
`EndpointResponse(status, body)`; any HTTP layer can serve them as-is.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from content_sync.core.errors import (
    MalformedHtmlError,
    RemoteAuthError,
    RemoteConflictError,
    RemoteMisconfigurationError,
    RemoteNotFoundError,
)
from content_sync.core.models import ContentDocument
from content_sync.remote.store import ContentStore, raise_for_status
from content_sync.utils.html_modifier import inject_content_into_html

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "Conflict: File has been modified by another user. Please reload and try again."


@dataclass
class EndpointResponse:
    status: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def error(self) -> str:
        return self.body.get("error", "")


def _error(status: int, message: str) -> EndpointResponse:
    return EndpointResponse(status=status, body={"error": message})


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ContentService:
    """
    Handlers bound to one page (`html_path`) and its content document
    (`content_path`) on one branch of a ContentStore.

    `store` may be a factory; it is then called per request so that missing
    credentials surface as a 500 response instead of failing at start-up.
    """

    def __init__(
        self,
        store,
        branch: str = "main",
        html_path: str = "index.html",
        content_path: str = "contents/content.json",
    ):
        self._store = store
        self.branch = branch
        self.html_path = html_path
        self.content_path = content_path

    def _get_store(self) -> ContentStore:
        if isinstance(self._store, ContentStore):
            return self._store
        if self._store is None:
            raise RemoteMisconfigurationError("GitHub token not configured")
        return self._store()

    # ========== POST /api/preview ==========

    def preview(self, body: Optional[Dict[str, Any]]) -> EndpointResponse:
        body = body or {}
        html = body.get("html")
        content = body.get("content")
        if not html or not content:
            return _error(400, "Missing required fields: html, content")

        try:
            document = ContentDocument.model_validate(content)
        except ValidationError as e:
            return _error(400, f"Invalid content: {e}")

        try:
            updated = inject_content_into_html(html, document)
        except Exception as e:
            logger.error(f"Error generating preview: {e}", exc_info=True)
            return _error(500, f"Preview generation failed: {e}")

        return EndpointResponse(status=200, body={"html": updated, "success": True})

    # ========== GET /api/content/load ==========

    def load(self) -> EndpointResponse:
        try:
            store = self._get_store()
            logger.info(f"Loading {self.html_path} and {self.content_path} ({self.branch})")
            html_file = store.read(self.html_path, self.branch)
            content_file = store.read(self.content_path, self.branch)
            content = json.loads(content_file.text)
        except RemoteMisconfigurationError as e:
            logger.error(f"Store not configured: {e}")
            return _error(500, str(e))
        except RemoteNotFoundError as e:
            logger.error(f"Error loading content: {e}")
            return _error(404, "Repository or file not found. Check GITHUB_OWNER, GITHUB_REPO, and file paths.")
        except RemoteAuthError as e:
            logger.error(f"Error loading content: {e}")
            return _error(401, "Invalid GitHub token. Please check GITHUB_TOKEN environment variable.")
        except Exception as e:
            logger.error(f"Error loading content: {e}", exc_info=True)
            return _error(500, f"Failed to load content: {e}")

        logger.info("Content loaded successfully")
        sha = {"html": html_file.sha, "content": content_file.sha}
        return EndpointResponse(
            status=200,
            body={"html": html_file.text, "content": content, "sha": sha, "lastModified": dict(sha)},
        )

    # ========== POST /api/content/save ==========

    def save(self, body: Optional[Dict[str, Any]]) -> EndpointResponse:
        body = body or {}
        content = body.get("content")
        html_sha = body.get("htmlSha")
        content_sha = body.get("contentSha")
        html = body.get("html")
        if not content or not html_sha or not content_sha or not html:
            return _error(400, "Missing required fields: content, htmlSha, contentSha, html")

        try:
            document = ContentDocument.model_validate(content)
        except ValidationError as e:
            return _error(400, f"Invalid content: {e}")

        try:
            store = self._get_store()
            # re-injecting already rendered markup is a no-op
            updated_html = inject_content_into_html(html, document)

            timestamp = _timestamp()
            message = f"Update content via content_sync - {timestamp}"

            logger.info(f"Committing {self.html_path}...")
            raise_for_status(store.write(self.html_path, self.branch, html_sha, updated_html, message), self.html_path)

            logger.info(f"Committing {self.content_path}...")
            raise_for_status(
                store.write(self.content_path, self.branch, content_sha, document.to_json(), message),
                self.content_path,
            )
        except RemoteMisconfigurationError as e:
            logger.error(f"Store not configured: {e}")
            return _error(500, str(e))
        except MalformedHtmlError as e:
            return _error(400, f"Invalid HTML: {e}")
        except Exception as e:
            return self._save_failure(e)

        logger.info("Content saved successfully")
        return EndpointResponse(
            status=200,
            body={"success": True, "message": "Content saved to GitHub", "timestamp": timestamp},
        )

    @staticmethod
    def _save_failure(e: Exception) -> EndpointResponse:
        if isinstance(e, RemoteConflictError) or "409" in str(e):
            logger.warning(f"Save rejected: {e}")
            return _error(409, CONFLICT_MESSAGE)
        if isinstance(e, RemoteAuthError) or "Bad credentials" in str(e):
            logger.error(f"Save rejected: {e}")
            return _error(401, "Invalid GitHub token")
        logger.error(f"Error saving content: {e}", exc_info=True)
        return _error(500, f"Failed to save: {e}")


def routes(service: ContentService) -> Dict[str, Callable[..., EndpointResponse]]:
    """(method, path) table for mounting the handlers on an HTTP layer."""
    return {
        "POST /api/preview": service.preview,
        "GET /api/content/load": service.load,
        "POST /api/content/save": service.save,
    }
