# loyalty_auth/services/revocation_service.py

import logging

from loyalty_auth.core.clock import Clock, utcnow
from loyalty_auth.entities.token import TokenClaims
from loyalty_auth.repositories.auth_token_repository import AuthTokenRepository

logger = logging.getLogger(__name__)


class RevocationService:
    def __init__(self, *, repo: AuthTokenRepository, clock: Clock = utcnow) -> None:
        self._repo = repo
        self._clock = clock

    def revoke(self, claims: TokenClaims) -> int:
        if not claims.jti:
            return 0
        revoked = self._repo.revoke_jti(jti=claims.jti, now=self._clock())
        logger.info("Token revoked", extra={"user_id": claims.user_id, "jti": claims.jti, "rows": revoked})
        return revoked

    def revoke_all_for_user(self, user_id: int) -> int:
        revoked = self._repo.revoke_all_for_user(user_id=user_id, now=self._clock())
        logger.info("All tokens revoked for user", extra={"user_id": user_id, "rows": revoked})
        return revoked
