from flask import Blueprint, g, jsonify, request

from loyalty_auth.api.container import get_container
from loyalty_auth.api.middlewares.auth_middleware import require_auth
from loyalty_auth.api.middlewares.rate_limit import register_rate_limit
from loyalty_auth.api.schemas.auth_schema import (
    MessageResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    TokenPairData,
    TokenPayload,
    VerifyTokenRequest,
    VerifyTokenResponse,
)
from loyalty_auth.core.exceptions import BadRequestError

bp_auth = Blueprint("auth", __name__, url_prefix="/auth")


@bp_auth.before_request
def _require_configuration():
    if request.method == "OPTIONS":
        return None
    get_container().require_configured()
    return None


register_rate_limit(bp_auth)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@bp_auth.post("/refresh-token")
@bp_auth.post("/refresh")
def refresh_token():
    payload = RefreshTokenRequest.model_validate(_json_body())
    if not payload.refresh_token:
        raise BadRequestError("Refresh token is required")

    container = get_container()
    with container.db_session() as session:
        pair = container.rotator(session).rotate(refresh_token=payload.refresh_token)

    response = RefreshTokenResponse(data=TokenPairData.model_validate(pair.to_response()))
    return jsonify(response.model_dump(by_alias=True)), 200


@bp_auth.post("/verify-token")
@bp_auth.post("/verify")
def verify_token():
    # failed verification is a normal outcome: 200 with valid=false
    payload = VerifyTokenRequest.model_validate(_json_body())
    if not payload.token:
        raise BadRequestError("Token is required")

    container = get_container()
    with container.db_session() as session:
        result = container.verifier(session).verify(payload.token)

    if result.valid:
        response = VerifyTokenResponse(
            valid=True,
            payload=TokenPayload.model_validate(result.claims.to_payload()),
        )
    else:
        response = VerifyTokenResponse(valid=False, error=result.reason.value)

    return jsonify(response.model_dump(by_alias=True, exclude_none=True)), 200


@bp_auth.post("/logout")
@require_auth
def logout():
    container = get_container()
    with container.db_session() as session:
        container.revocation(session).revoke(g.auth)

    return jsonify(MessageResponse(message="Logged out successfully").model_dump()), 200
