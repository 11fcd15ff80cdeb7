import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import DatabaseError, connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.identity import identity_from_request

logger = structlog.get_logger()

_CACHE_PROBE_KEY = "_health_check"


def _ping_database() -> None:
    with connections["default"].cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _ping_cache() -> None:
    # Throttle counters live here; a dead cache means every request 500s.
    cache.set(_CACHE_PROBE_KEY, "ok", 10)
    if cache.get(_CACHE_PROBE_KEY) != "ok":
        raise ConnectionError("cache read-back failed")


_PROBES: Dict[str, Callable[[], None]] = {
    "database": _ping_database,
    "cache": _ping_cache,
}


def _probe(name: str, ping: Callable[[], None]) -> Dict[str, Any]:
    started = time.monotonic()
    try:
        ping()
    except (DatabaseError, ConnectionError, OSError) as exc:
        logger.error("health_check.probe_failed", probe=name, error=str(exc))
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - started) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """GET /health: 200 when storage and cache answer, 503 otherwise."""
    services = {name: _probe(name, ping) for name, ping in _PROBES.items()}
    healthy = all(s["status"] == "up" for s in services.values())
    overall = "healthy" if healthy else "unhealthy"

    logger.info("health_check.completed", status=overall)
    return JsonResponse(
        {
            "status": overall,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )


class WhoAmIView(APIView):
    """Echo the identity the domain sees for the current bearer token."""

    permission_classes = [IsAuthenticated]

    def get(self, request) -> Response:
        identity = identity_from_request(request)
        return Response({"user_id": identity.user_id, "role": identity.role})
