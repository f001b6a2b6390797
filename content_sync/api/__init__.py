from .handlers import ContentService, EndpointResponse
from .backend import ContentBackend, HttpContentBackend, LocalContentBackend
