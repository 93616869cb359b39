import logging
from typing import Optional

from errors import CacheUnavailable

logger = logging.getLogger(__name__)

PAGE_VIEWS_KEY = "page_views_total"
PAGE_VIEWS_TTL = 60


class CounterService:
    """Compteur de visites en cache-aside.

    La base reste la source de vérité ; Redis ne sert qu'à éviter une lecture.
    Une panne Redis dégrade le service (lecture directe en base) sans le casser,
    une panne de la base fait échouer l'appel (StoreUnavailable).
    """

    def __init__(self, store, cache):
        self.store = store
        self.cache = cache

    def record_view(self) -> int:
        total = self._cached_total()
        if total is None:
            total = self.store.read_count()
            self._cache_total(total)

        self.store.increment()

        # Invalidation systématique : le prochain appel relira la base
        self._invalidate()

        return total + 1

    def _cached_total(self) -> Optional[int]:
        try:
            cached = self.cache.get(PAGE_VIEWS_KEY)
        except CacheUnavailable as e:
            logger.warning("Cache unavailable on read, falling back to database: %s", e)
            return None
        if cached is None:
            logger.debug("Cache miss for %s", PAGE_VIEWS_KEY)
            return None
        try:
            total = int(cached)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed cached value for %s: %r", PAGE_VIEWS_KEY, cached)
            return None
        logger.debug("Cache hit for %s", PAGE_VIEWS_KEY)
        return total

    def _cache_total(self, total: int) -> None:
        try:
            self.cache.setex(PAGE_VIEWS_KEY, PAGE_VIEWS_TTL, str(total))
        except CacheUnavailable as e:
            logger.warning("Cache unavailable on write: %s", e)

    def _invalidate(self) -> None:
        try:
            self.cache.delete(PAGE_VIEWS_KEY)
        except CacheUnavailable as e:
            logger.warning("Cache unavailable on invalidation: %s", e)
