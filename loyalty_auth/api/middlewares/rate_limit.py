import logging

from flask import Blueprint, request

from loyalty_auth.api.container import get_container
from loyalty_auth.core.exceptions import TooManyRequestsError

logger = logging.getLogger(__name__)


def client_key() -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def register_rate_limit(bp: Blueprint) -> None:
    @bp.before_request
    def _limit():
        if request.method == "OPTIONS":
            return None

        key = client_key()
        allowed, remaining = get_container().rate_limiter.hit(key)
        if not allowed:
            logger.warning("Rate limit exceeded", extra={"client": key, "path": request.path})
            raise TooManyRequestsError(remaining=remaining)
        return None
