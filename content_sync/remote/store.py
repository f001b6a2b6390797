"""
Persistence collaborators: where index.html and content.json live.

Both stores enforce optimistic concurrency: a write must carry the SHA of
the version it was based on, and a stale SHA is reported as a conflict.
"""

import base64
import hashlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter

from content_sync.core.errors import (
    RemoteAuthError,
    RemoteConflictError,
    RemoteError,
    RemoteMisconfigurationError,
    RemoteNetworkError,
    RemoteNotFoundError,
)

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


class WriteStatus(str, Enum):
    SUCCESS = "success"
    CONFLICT = "conflict"
    AUTH_ERROR = "auth-error"
    NOT_FOUND = "not-found"


@dataclass
class RemoteFile:
    path: str
    content_b64: str
    sha: str

    @property
    def text(self) -> str:
        return base64.b64decode(self.content_b64).decode("utf-8")


def encode_text(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def raise_for_status(status: WriteStatus, path: str) -> None:
    """Turn a non-success WriteStatus into the matching exception."""
    if status == WriteStatus.SUCCESS:
        return
    if status == WriteStatus.CONFLICT:
        raise RemoteConflictError(f"409 Conflict: {path} has been modified since it was loaded")
    if status == WriteStatus.AUTH_ERROR:
        raise RemoteAuthError("Bad credentials")
    raise RemoteNotFoundError(f"Not Found: {path}")


class ContentStore(ABC):
    @abstractmethod
    def read(self, path: str, ref: str) -> RemoteFile:
        ...

    @abstractmethod
    def write(self, path: str, ref: str, sha: str, content: str, message: str) -> WriteStatus:
        """Write text `content` if `sha` is still the current version of `path`."""


# ============================================================================
# GitHub contents API
# ============================================================================

class GitHubContentStore(ContentStore):
    def __init__(
        self,
        token: Optional[str],
        owner: Optional[str],
        repo: Optional[str],
        api_url: str = GITHUB_API_URL,
        pool_size: int = 4,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        if not token:
            raise RemoteMisconfigurationError("GitHub token not configured")
        if not owner or not repo:
            raise RemoteMisconfigurationError("GitHub repository not configured")

        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

        self.session = session or requests.Session()
        adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        })

    def _url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{path.lstrip('/')}"

    @staticmethod
    def _error_message(response) -> str:
        try:
            return response.json().get("message", response.text)
        except ValueError:
            return response.text

    def read(self, path: str, ref: str) -> RemoteFile:
        try:
            response = self.session.get(self._url(path), params={"ref": ref}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise RemoteNetworkError(f"GitHub request failed: {e}") from e

        if response.status_code == 401:
            raise RemoteAuthError("Bad credentials")
        if response.status_code == 404:
            raise RemoteNotFoundError(f"Not Found: {path}")
        if response.status_code != 200:
            raise RemoteError(f"GitHub API Error {response.status_code}: {self._error_message(response)}")

        data = response.json()
        if not isinstance(data, dict) or data.get("type") != "file" or "content" not in data:
            raise RemoteError("Invalid response from GitHub - expected file content")
        # the API wraps base64 payloads at 60 columns
        return RemoteFile(path=path, content_b64="".join(data["content"].split()), sha=data["sha"])

    def write(self, path: str, ref: str, sha: str, content: str, message: str) -> WriteStatus:
        payload = {
            "message": message,
            "content": encode_text(content),
            "sha": sha,
            "branch": ref,
        }
        try:
            response = self.session.put(self._url(path), json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise RemoteNetworkError(f"GitHub request failed: {e}") from e

        if response.status_code in (200, 201):
            logger.info(f"Committed {path} to {self.owner}/{self.repo} ({ref})")
            return WriteStatus.SUCCESS
        if response.status_code in (409, 422):
            # 422 is returned when the supplied sha does not match the blob
            logger.warning(f"Write conflict on {path}: {self._error_message(response)}")
            return WriteStatus.CONFLICT
        if response.status_code in (401, 403):
            return WriteStatus.AUTH_ERROR
        if response.status_code == 404:
            return WriteStatus.NOT_FOUND
        raise RemoteError(f"GitHub API Error {response.status_code}: {self._error_message(response)}")


# ============================================================================
# In-memory store
# ============================================================================

def blob_sha(text: str) -> str:
    """Git blob SHA-1 of `text`, as GitHub reports it."""
    data = text.encode("utf-8")
    return hashlib.sha1(b"blob " + str(len(data)).encode() + b"\0" + data).hexdigest()


class InMemoryContentStore(ContentStore):
    """Dictionary-backed store with the same concurrency contract as GitHub."""

    def __init__(self, files: Optional[Dict[str, str]] = None, ref: str = "main"):
        self._files: Dict[Tuple[str, str], str] = {}
        self.commits = []
        for path, text in (files or {}).items():
            self._files[(ref, path)] = text

    def read(self, path: str, ref: str) -> RemoteFile:
        text = self._files.get((ref, path))
        if text is None:
            raise RemoteNotFoundError(f"Not Found: {path}")
        return RemoteFile(path=path, content_b64=encode_text(text), sha=blob_sha(text))

    def write(self, path: str, ref: str, sha: str, content: str, message: str) -> WriteStatus:
        current = self._files.get((ref, path))
        if current is None:
            return WriteStatus.NOT_FOUND
        if blob_sha(current) != sha:
            return WriteStatus.CONFLICT
        self._files[(ref, path)] = content
        self.commits.append((path, message))
        return WriteStatus.SUCCESS

    def put(self, path: str, text: str, ref: str = "main") -> str:
        """Out-of-band edit (another user's commit). Returns the new SHA."""
        self._files[(ref, path)] = text
        return blob_sha(text)
