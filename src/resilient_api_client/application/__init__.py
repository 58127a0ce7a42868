"""Application layer: request execution and session orchestration."""

from .api_client import ApiClient, join_url
from .refresh_coordinator import RefreshCoordinator
from .request_pipeline import RequestPipeline

__all__ = ["ApiClient", "RefreshCoordinator", "RequestPipeline", "join_url"]
