"""LearnQuest client - resilient API client and real-time notification sync.

This package talks to the LearnQuest e-learning backend: it fails over between
candidate endpoints, normalizes every answer into an envelope, wraps the REST
routes in typed façades and mirrors the user's notifications from the push
stream.
"""

from learnquest_client.__main__ import main
from learnquest_client.api.client import ApiClient
from learnquest_client.types.models import ApiResponse, ErrorCode

__all__ = ["ApiClient", "ApiResponse", "ErrorCode", "main"]
