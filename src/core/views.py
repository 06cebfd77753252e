"""Core views."""

import logging

from django.core.cache import cache
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health(request):
    """Health check endpoint; also reports whether the de-duplication cache is reachable."""
    try:
        cache.set("restbase:health", "ok", 10)
        cache_ok = cache.get("restbase:health") == "ok"
    except Exception as e:
        logger.warning("Health check could not reach cache: %s", e)
        cache_ok = False
    return JsonResponse({"status": "ok" if cache_ok else "degraded", "cache": cache_ok})
