# loyalty_auth/infrastructure/security/jwt_provider.py

import hashlib
import secrets

import jwt

from loyalty_auth.config.settings import Settings
from loyalty_auth.core.clock import Clock, from_timestamp, to_timestamp, utcnow
from loyalty_auth.core.exceptions import ConfigurationError
from loyalty_auth.entities.account import Account
from loyalty_auth.entities.token import (
    AccessToken,
    DecodedToken,
    RefreshToken,
    SignedToken,
    TokenClaims,
    TokenPair,
    TokenType,
)


class InvalidTokenError(Exception):
    pass


def generate_jti() -> str:
    # 128 random bits, hex encoded
    return secrets.token_hex(16)


def token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class JwtProvider:
    def __init__(self, settings: Settings, *, clock: Clock = utcnow) -> None:
        if not settings.jwt_secret:
            raise ConfigurationError()

        self._secrets = {
            TokenType.ACCESS: settings.jwt_secret,
            TokenType.REFRESH: settings.refresh_secret,
        }
        self._lifetimes = {
            TokenType.ACCESS: settings.access_token_seconds,
            TokenType.REFRESH: settings.refresh_token_seconds,
        }
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self._algorithm = "HS256"
        self._clock = clock

    @property
    def access_lifetime(self) -> int:
        return self._lifetimes[TokenType.ACCESS]

    def issue_token(self, *, account: Account, jti: str, token_type: TokenType) -> SignedToken:
        iat = to_timestamp(self._clock())
        exp_ts = iat + self._lifetimes[token_type]

        claims = {
            "iss": self._issuer,
            "aud": self._audience,
            "userId": account.id,
            "email": account.email,
            "role": account.token_role,
            "jti": jti,
            "type": token_type.value,
            "iat": iat,
            "exp": exp_ts,
        }
        token = jwt.encode(claims, self._secrets[token_type], algorithm=self._algorithm)
        return SignedToken(token=token, token_type=token_type, expires_at=from_timestamp(exp_ts))

    def issue_pair(self, *, account: Account, jti: str) -> TokenPair:
        """Sign a linked access/refresh pair. Pure: nothing is persisted here."""
        return TokenPair(
            jti=jti,
            user_id=account.id,
            access=self.issue_token(account=account, jti=jti, token_type=TokenType.ACCESS),
            refresh=self.issue_token(account=account, jti=jti, token_type=TokenType.REFRESH),
            expires_in=self.access_lifetime,
        )

    def decode(self, token: str, *, expected: TokenType) -> DecodedToken:
        try:
            claims = jwt.decode(
                token,
                self._secrets[expected],
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": ["exp", "iat", "userId", "type"]},
            )
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(str(e)) from e

        if claims.get("type") != expected.value:
            raise InvalidTokenError(f"expected a {expected.value} token")

        try:
            parsed = TokenClaims(
                user_id=int(claims["userId"]),
                email=str(claims.get("email") or ""),
                role=str(claims.get("role") or ""),
                jti=str(claims["jti"]) if claims.get("jti") else None,
                issued_at=int(claims["iat"]),
                expires_at=int(claims["exp"]),
            )
        except (TypeError, ValueError) as e:
            raise InvalidTokenError("malformed claims") from e

        if expected is TokenType.ACCESS:
            return AccessToken(parsed)
        return RefreshToken(parsed)
