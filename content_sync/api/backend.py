"""How the edit-state manager reaches the load/save/preview endpoints."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

import requests

from content_sync.api.handlers import ContentService, EndpointResponse
from content_sync.core.errors import RemoteNetworkError

logger = logging.getLogger(__name__)


class ContentBackend(ABC):
    @abstractmethod
    def load(self) -> EndpointResponse:
        ...

    @abstractmethod
    def save(self, payload: Dict[str, Any]) -> EndpointResponse:
        ...

    @abstractmethod
    def preview(self, payload: Dict[str, Any]) -> EndpointResponse:
        ...


class LocalContentBackend(ContentBackend):
    """Calls the handlers in-process."""

    def __init__(self, service: ContentService):
        self.service = service

    def load(self) -> EndpointResponse:
        return self.service.load()

    def save(self, payload: Dict[str, Any]) -> EndpointResponse:
        return self.service.save(payload)

    def preview(self, payload: Dict[str, Any]) -> EndpointResponse:
        return self.service.preview(payload)


class HttpContentBackend(ContentBackend):
    """Calls a deployed API. Transport failures raise RemoteNetworkError."""

    def __init__(self, base_url: str, timeout: float = 30, session: requests.Session = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    def _request(self, method: str, path: str, payload: Dict[str, Any] = None) -> EndpointResponse:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise RemoteNetworkError(str(e)) from e

        try:
            body = response.json()
        except ValueError:
            logger.error(f"Non-JSON response from {url}: {response.status_code}")
            body = {"error": response.text or f"HTTP {response.status_code}"}
        return EndpointResponse(status=response.status_code, body=body)

    def load(self) -> EndpointResponse:
        return self._request("GET", "/api/content/load")

    def save(self, payload: Dict[str, Any]) -> EndpointResponse:
        return self._request("POST", "/api/content/save", payload)

    def preview(self, payload: Dict[str, Any]) -> EndpointResponse:
        return self._request("POST", "/api/preview", payload)
