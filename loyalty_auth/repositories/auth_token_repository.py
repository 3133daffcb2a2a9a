# loyalty_auth/repositories/auth_token_repository.py

from datetime import datetime

from sqlalchemy import exists, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from loyalty_auth.core.base_repository import BaseRepository
from loyalty_auth.entities.token import TokenType
from loyalty_auth.infrastructure.database.models.auth_token_model import AuthTokenModel

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

SUPPORTED_DIALECTS = frozenset(_INSERTS)


class AuthTokenRepository(BaseRepository[AuthTokenModel]):
    """Revocation store: one row per (jti, token_type); rows are never deleted."""

    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def add_pair(self, rows: list[dict]) -> int:
        insert = _INSERTS[self.dialect_name]
        stmt = insert(AuthTokenModel).values(rows).on_conflict_do_nothing(index_elements=["jti", "token_type"])
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)

    def is_revoked(self, jti: str) -> bool:
        stmt = select(
            exists().where(
                AuthTokenModel.jti == jti,
                AuthTokenModel.revoked.is_(True),
            )
        )
        return bool(self._session.execute(stmt).scalar())

    def get_active(self, *, jti: str, token_type: TokenType, now: datetime) -> AuthTokenModel | None:
        # expires_at must be strictly in the future
        stmt = select(AuthTokenModel).where(
            AuthTokenModel.jti == jti,
            AuthTokenModel.token_type == token_type.value,
            AuthTokenModel.expires_at > now,
        )
        return self._session.execute(stmt).scalars().first()

    def list_by_jti(self, jti: str) -> list[AuthTokenModel]:
        stmt = select(AuthTokenModel).where(AuthTokenModel.jti == jti).order_by(AuthTokenModel.id)
        return list(self._session.execute(stmt).scalars().all())

    def revoke_jti(self, *, jti: str, now: datetime) -> int:
        stmt = (
            update(AuthTokenModel)
            .where(AuthTokenModel.jti == jti, AuthTokenModel.revoked.is_(False))
            .values(revoked=True, revoked_at=now)
        )
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)

    def claim_refresh(self, *, jti: str, now: datetime) -> bool:
        """Revoke the jti only if its refresh row is still live.

        Returns True for the single caller whose update took effect.
        """
        claimed = self._session.execute(
            update(AuthTokenModel)
            .where(
                AuthTokenModel.jti == jti,
                AuthTokenModel.token_type == TokenType.REFRESH.value,
                AuthTokenModel.revoked.is_(False),
                AuthTokenModel.expires_at > now,
            )
            .values(revoked=True, revoked_at=now)
        )
        if not claimed.rowcount:
            return False

        self.revoke_jti(jti=jti, now=now)
        return True

    def revoke_all_for_user(self, *, user_id: int, now: datetime) -> int:
        stmt = (
            update(AuthTokenModel)
            .where(
                AuthTokenModel.user_id == user_id,
                AuthTokenModel.revoked.is_(False),
                AuthTokenModel.expires_at > now,
            )
            .values(revoked=True, revoked_at=now)
        )
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)
