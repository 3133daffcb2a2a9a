# loyalty_auth/services/token_issuer.py

import logging

from sqlalchemy.exc import SQLAlchemyError

from loyalty_auth.core.clock import Clock, utcnow
from loyalty_auth.entities.account import Account
from loyalty_auth.entities.token import SignedToken, TokenPair
from loyalty_auth.infrastructure.security.jwt_provider import JwtProvider, generate_jti, token_digest
from loyalty_auth.repositories.auth_token_repository import AuthTokenRepository

logger = logging.getLogger(__name__)


class TokenIssuer:
    def __init__(self, *, jwt_provider: JwtProvider, repo: AuthTokenRepository, clock: Clock = utcnow) -> None:
        self._jwt = jwt_provider
        self._repo = repo
        self._clock = clock

    def issue(self, account: Account) -> TokenPair:
        """Sign a fresh access/refresh pair for ``account`` and record it.

        Signing never depends on the store: if the insert fails the error is
        logged and the signed pair is still returned.
        """
        pair = self._jwt.issue_pair(account=account, jti=generate_jti())
        persisted = self.persist(pair)
        logger.info(
            "Token pair issued",
            extra={"user_id": pair.user_id, "jti": pair.jti, "persisted": persisted},
        )
        return pair

    def persist(self, pair: TokenPair) -> bool:
        now = self._clock()
        rows = [self._row(pair, signed, now) for signed in (pair.access, pair.refresh)]
        try:
            with self._repo.savepoint():
                inserted = self._repo.add_pair(rows)
        except SQLAlchemyError:
            logger.exception("Failed to persist token pair", extra={"user_id": pair.user_id, "jti": pair.jti})
            return False

        if inserted < len(rows):
            logger.warning("Token rows already present", extra={"jti": pair.jti, "inserted": inserted})
        return True

    @staticmethod
    def _row(pair: TokenPair, signed: SignedToken, now) -> dict:
        return {
            "user_id": pair.user_id,
            "token": token_digest(signed.token),
            "jti": pair.jti,
            "token_type": signed.token_type.value,
            "expires_at": signed.expires_at,
            "created_at": now,
            "revoked": False,
            "revoked_at": None,
        }
