"""
Dashboard API client (Catalog Provider and Bundle Resolver).
"""

from .client import ApiClient, ApiError

__all__ = ["ApiClient", "ApiError"]
