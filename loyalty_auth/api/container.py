# loyalty_auth/api/container.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask import current_app
from sqlalchemy.orm import Session

from loyalty_auth.config.settings import Settings
from loyalty_auth.core.exceptions import ConfigurationError
from loyalty_auth.core.rate_limiter import RateLimiter
from loyalty_auth.infrastructure.database.session import Database
from loyalty_auth.infrastructure.security.jwt_provider import JwtProvider
from loyalty_auth.repositories.auth_token_repository import SUPPORTED_DIALECTS, AuthTokenRepository
from loyalty_auth.repositories.user_repository import UserRepository
from loyalty_auth.services.account_service import AccountService
from loyalty_auth.services.revocation_service import RevocationService
from loyalty_auth.services.token_issuer import TokenIssuer
from loyalty_auth.services.token_rotator import TokenRotator
from loyalty_auth.services.token_verifier import TokenVerifier

EXTENSION_KEY = "loyalty_auth"


@dataclass
class AuthContainer:
    """Process-wide collaborators built once in ``create_app``."""

    settings: Settings
    database: Optional[Database]
    jwt_provider: Optional[JwtProvider]
    rate_limiter: RateLimiter

    @classmethod
    def build(cls, settings: Settings, database: Optional[Database] = None) -> "AuthContainer":
        if database is None and settings.database_url:
            database = Database(settings.database_url, echo=settings.debug)

        if database is not None and database.engine.dialect.name not in SUPPORTED_DIALECTS:
            raise ConfigurationError(f"Unsupported database dialect: {database.engine.dialect.name}")

        jwt_provider = JwtProvider(settings) if settings.jwt_secret else None

        return cls(
            settings=settings,
            database=database,
            jwt_provider=jwt_provider,
            rate_limiter=RateLimiter(
                max_requests=settings.rate_limit_max_requests,
                window_seconds=settings.rate_limit_window_seconds,
            ),
        )

    @property
    def is_configured(self) -> bool:
        return self.database is not None and self.jwt_provider is not None

    def require_configured(self) -> None:
        if not self.is_configured:
            raise ConfigurationError()

    def db_session(self):
        self.require_configured()
        return self.database.session()

    def verifier(self, session: Session) -> TokenVerifier:
        return TokenVerifier(
            jwt_provider=self.jwt_provider,
            repo=AuthTokenRepository(session),
            accounts=AccountService(UserRepository(session)),
        )

    def issuer(self, session: Session) -> TokenIssuer:
        return TokenIssuer(jwt_provider=self.jwt_provider, repo=AuthTokenRepository(session))

    def rotator(self, session: Session) -> TokenRotator:
        return TokenRotator(
            jwt_provider=self.jwt_provider,
            verifier=self.verifier(session),
            issuer=self.issuer(session),
            repo=AuthTokenRepository(session),
            strict=self.settings.strict_refresh_rotation,
        )

    def revocation(self, session: Session) -> RevocationService:
        return RevocationService(repo=AuthTokenRepository(session))


def get_container() -> AuthContainer:
    return current_app.extensions[EXTENSION_KEY]
