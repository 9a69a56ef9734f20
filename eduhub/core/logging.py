"""Logging setup and per-request access log."""
import logging
import time

from fastapi import Request

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logger = logging.getLogger("eduhub.access")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at startup."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


async def log_requests(request: Request, call_next):
    """Log `METHOD path status in Nms user=<id>` for API calls.

    The user id comes from `request.state.user`, set by the session gate;
    unauthenticated requests log `user=-`.
    """
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        duration_ms = (time.perf_counter() - start) * 1000
        user = getattr(request.state, "user", None)
        logger.info(
            "%s %s %s in %dms user=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            user.id if user is not None else "-",
        )
    return response
