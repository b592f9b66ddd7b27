"""
Core utilities shared by the data services: TTL cache, async operation
state machine and the pending-mutation guard.
"""

from .async_operation import AsyncOperation, AsyncState, AsyncStatus, ErrorInfo
from .mutation_guard import DEFAULT_GRACE_DELAY_SECONDS, PendingMutationGuard
from .ttl_cache import DEFAULT_TTL_SECONDS, CacheEntry, CacheManager, CacheOptions

__all__ = [
    # TTL cache
    "CacheManager",
    "CacheEntry",
    "CacheOptions",
    "DEFAULT_TTL_SECONDS",
    # Async operations
    "AsyncOperation",
    "AsyncState",
    "AsyncStatus",
    "ErrorInfo",
    # Mutation guard
    "PendingMutationGuard",
    "DEFAULT_GRACE_DELAY_SECONDS",
]
