# loyalty_auth/entities/token.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional, Union

from loyalty_auth.entities.account import Account


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenRejection(str, Enum):
    """Reasons reported back to callers when a token is refused."""

    INVALID_TOKEN = "Invalid token"
    INVALID_REFRESH_TOKEN = "Invalid refresh token"
    REVOKED = "Token revoked"
    EXPIRED_OR_INVALID = "Token expired or invalid"
    USER_NOT_FOUND = "User not found"
    ACCOUNT_RESTRICTED = "Account restricted"


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    role: str
    jti: Optional[str]
    issued_at: int
    expires_at: int

    def to_payload(self) -> dict:
        return {
            "userId": self.user_id,
            "email": self.email,
            "role": self.role,
            "jti": self.jti,
            "iat": self.issued_at,
            "exp": self.expires_at,
        }


@dataclass(frozen=True)
class AccessToken:
    claims: TokenClaims
    type: ClassVar[TokenType] = TokenType.ACCESS


@dataclass(frozen=True)
class RefreshToken:
    claims: TokenClaims
    type: ClassVar[TokenType] = TokenType.REFRESH


DecodedToken = Union[AccessToken, RefreshToken]


@dataclass(frozen=True)
class SignedToken:
    token: str
    token_type: TokenType
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    jti: str
    user_id: int
    access: SignedToken
    refresh: SignedToken
    expires_in: int

    def to_response(self) -> dict:
        return {
            "accessToken": self.access.token,
            "refreshToken": self.refresh.token,
            "expiresIn": self.expires_in,
        }


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    claims: Optional[TokenClaims] = None
    reason: Optional[TokenRejection] = None
    account: Optional[Account] = None

    @classmethod
    def ok(cls, claims: TokenClaims, account: Account) -> "VerificationResult":
        return cls(valid=True, claims=claims, account=account)

    @classmethod
    def rejected(cls, reason: TokenRejection) -> "VerificationResult":
        return cls(valid=False, reason=reason)
