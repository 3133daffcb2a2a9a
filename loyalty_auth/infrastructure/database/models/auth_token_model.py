# loyalty_auth/infrastructure/database/models/auth_token_model.py

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, CHAR, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from loyalty_auth.infrastructure.database.base_model import BaseModel


class AuthTokenModel(BaseModel):
    __tablename__ = "auth_tokens"
    __table_args__ = (
        # one access row and one refresh row per jti
        UniqueConstraint("jti", "token_type", name="uq_auth_tokens_jti_type"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)

    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False, index=True)

    # sha256 of the signed token
    token: Mapped[str] = mapped_column(CHAR(64), nullable=False)
    jti: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    token_type: Mapped[str] = mapped_column(String(16), nullable=False)

    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    revoked_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)
