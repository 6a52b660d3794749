"""
In-process cache of the per-tenant assignments view.

Each tenant has a generation counter that invalidate() bumps. A reader takes
the generation before querying and hands it to put(); the view is stored only
if no invalidation happened in between, so a view built from rows read before
a commit never replaces the invalidation that commit made.
"""

import logging
from threading import Lock
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class TenantViewCache:
    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}
        self._generations: Dict[str, int] = {}
        self._lock = Lock()

    def get(self, tenant_id: str) -> Optional[Any]:
        with self._lock:
            return self._entries.get(tenant_id)

    def generation(self, tenant_id: str) -> int:
        with self._lock:
            return self._generations.get(tenant_id, 0)

    def put(self, tenant_id: str, value: Any, generation: Optional[int] = None) -> bool:
        """Store `value`; with `generation`, only if the tenant was not invalidated since."""
        with self._lock:
            if generation is not None and generation != self._generations.get(tenant_id, 0):
                logger.debug("Discarded stale assignments view for tenant %s", tenant_id)
                return False
            self._entries[tenant_id] = value
            return True

    def invalidate(self, tenant_id: str) -> None:
        with self._lock:
            dropped = self._entries.pop(tenant_id, None) is not None
            self._generations[tenant_id] = self._generations.get(tenant_id, 0) + 1
        logger.debug("Assignments view cache invalidated for tenant %s (had entry: %s)", tenant_id, dropped)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generations.clear()


assignments_view_cache = TenantViewCache()
