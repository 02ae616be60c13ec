"""Cache: Redis service and cache key utilities.

Used by the workflow repository for per-organization listings.
Key format is in keys.py (DRY).
"""

from app.infrastructure.cache.cache_protocol import CacheProtocol
from app.infrastructure.cache.keys import workflows_by_org_key
from app.infrastructure.cache.redis_cache import CacheService

__all__ = [
    "CacheProtocol",
    "CacheService",
    "workflows_by_org_key",
]
