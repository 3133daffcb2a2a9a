# loyalty_auth/services/token_verifier.py

import logging

from loyalty_auth.core.clock import Clock, utcnow
from loyalty_auth.entities.token import DecodedToken, TokenRejection, TokenType, VerificationResult
from loyalty_auth.infrastructure.security.jwt_provider import InvalidTokenError, JwtProvider
from loyalty_auth.repositories.auth_token_repository import AuthTokenRepository
from loyalty_auth.services.account_service import AccountService

logger = logging.getLogger(__name__)


class TokenVerifier:
    """Read-only checks for presented tokens.

    Order: signature and expiry, revocation, stored record, account, account status.
    The first failing step decides the reported reason.
    """

    def __init__(
        self,
        *,
        jwt_provider: JwtProvider,
        repo: AuthTokenRepository,
        accounts: AccountService,
        clock: Clock = utcnow,
    ) -> None:
        self._jwt = jwt_provider
        self._repo = repo
        self._accounts = accounts
        self._clock = clock

    def verify(self, token: str) -> VerificationResult:
        try:
            decoded = self._jwt.decode(token, expected=TokenType.ACCESS)
        except InvalidTokenError as e:
            logger.info("Access token rejected", extra={"reason": TokenRejection.INVALID_TOKEN.value, "detail": str(e)})
            return VerificationResult.rejected(TokenRejection.INVALID_TOKEN)

        return self.evaluate(decoded)

    def evaluate(self, decoded: DecodedToken) -> VerificationResult:
        claims = decoded.claims

        if claims.jti:
            if self._repo.is_revoked(claims.jti):
                return self._reject(decoded, TokenRejection.REVOKED)

            record = self._repo.get_active(jti=claims.jti, token_type=decoded.type, now=self._clock())
            if record is None:
                return self._reject(decoded, TokenRejection.EXPIRED_OR_INVALID)

        account, rejection = self._accounts.check_eligibility(claims.user_id)
        if rejection is not None:
            return self._reject(decoded, rejection)

        return VerificationResult.ok(claims, account)

    @staticmethod
    def _reject(decoded: DecodedToken, reason: TokenRejection) -> VerificationResult:
        logger.info(
            "Token rejected",
            extra={
                "reason": reason.value,
                "token_type": decoded.type.value,
                "jti": decoded.claims.jti,
                "user_id": decoded.claims.user_id,
            },
        )
        return VerificationResult.rejected(reason)
