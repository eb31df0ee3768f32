"""Transport layer: endpoint failover, request execution and session storage."""

from learnquest_client.api.client import TOKEN_EXPIRED_CODE, ApiClient
from learnquest_client.api.endpoints import EndpointResolver, EndpointState, HttpxProbe
from learnquest_client.api.executor import RequestExecutor
from learnquest_client.api.multipart import FileUpload, MultipartBody
from learnquest_client.api.session import FileSessionStore, InMemorySessionStore, SessionError

__all__ = [
    "TOKEN_EXPIRED_CODE",
    "ApiClient",
    "EndpointResolver",
    "EndpointState",
    "FileSessionStore",
    "FileUpload",
    "HttpxProbe",
    "InMemorySessionStore",
    "MultipartBody",
    "RequestExecutor",
    "SessionError",
]
