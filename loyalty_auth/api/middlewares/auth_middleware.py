from functools import wraps
from typing import Any, Callable, TypeVar

from flask import request, g

from loyalty_auth.api.container import get_container
from loyalty_auth.core.exceptions import UnauthorizedError

F = TypeVar("F", bound=Callable[..., Any])


def get_bearer_token() -> str:
    auth = request.headers.get("Authorization", "")
    parts = auth.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    raise UnauthorizedError("Authorization header required")


def require_auth(fn: F) -> F:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = get_bearer_token()
        container = get_container()

        with container.db_session() as session:
            result = container.verifier(session).verify(token)

        if not result.valid:
            raise UnauthorizedError(result.reason.value)

        g.auth = result.claims
        g.account = result.account

        return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
