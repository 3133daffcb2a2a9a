# loyalty_auth/services/token_rotator.py

import logging

from sqlalchemy.exc import SQLAlchemyError

from loyalty_auth.core.clock import Clock, utcnow
from loyalty_auth.core.exceptions import UnauthorizedError
from loyalty_auth.entities.token import TokenPair, TokenRejection, TokenType
from loyalty_auth.infrastructure.security.jwt_provider import InvalidTokenError, JwtProvider
from loyalty_auth.repositories.auth_token_repository import AuthTokenRepository
from loyalty_auth.services.token_issuer import TokenIssuer
from loyalty_auth.services.token_verifier import TokenVerifier

logger = logging.getLogger(__name__)


class TokenRotator:
    def __init__(
        self,
        *,
        jwt_provider: JwtProvider,
        verifier: TokenVerifier,
        issuer: TokenIssuer,
        repo: AuthTokenRepository,
        strict: bool = False,
        clock: Clock = utcnow,
    ) -> None:
        self._jwt = jwt_provider
        self._verifier = verifier
        self._issuer = issuer
        self._repo = repo
        self._strict = strict
        self._clock = clock

    def rotate(self, *, refresh_token: str) -> TokenPair:
        """Exchange a refresh token for a new pair and retire the old jti.

        Raises UnauthorizedError with the rejection reason on any failed check.
        """
        try:
            decoded = self._jwt.decode(refresh_token, expected=TokenType.REFRESH)
        except InvalidTokenError as e:
            logger.info("Refresh token rejected", extra={"detail": str(e)})
            raise UnauthorizedError(TokenRejection.INVALID_REFRESH_TOKEN.value) from e

        result = self._verifier.evaluate(decoded)
        if not result.valid:
            raise UnauthorizedError(result.reason.value)

        old_jti = decoded.claims.jti

        if self._strict:
            if not old_jti:
                raise UnauthorizedError(TokenRejection.INVALID_REFRESH_TOKEN.value)
            # only one concurrent caller can win the claim on this row
            if not self._repo.claim_refresh(jti=old_jti, now=self._clock()):
                logger.warning("Refresh token replay rejected", extra={"jti": old_jti})
                raise UnauthorizedError(TokenRejection.REVOKED.value)

        pair = self._issuer.issue(result.account)

        if not self._strict:
            self._retire(old_jti)

        logger.info(
            "Token pair rotated",
            extra={"user_id": pair.user_id, "old_jti": old_jti, "jti": pair.jti},
        )
        return pair

    def _retire(self, jti: str | None) -> None:
        if not jti:
            logger.warning("Rotated a refresh token without jti; nothing to revoke")
            return

        try:
            with self._repo.savepoint():
                self._repo.revoke_jti(jti=jti, now=self._clock())
        except SQLAlchemyError:
            logger.exception("Failed to revoke rotated token", extra={"jti": jti})
