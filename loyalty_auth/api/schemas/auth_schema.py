# loyalty_auth/api/schemas/auth_schema.py
from pydantic import BaseModel, ConfigDict, Field


class RefreshTokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str | None = Field(default=None, alias="refreshToken")


class VerifyTokenRequest(BaseModel):
    token: str | None = None


class TokenPairData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")
    expires_in: int = Field(alias="expiresIn")


class RefreshTokenResponse(BaseModel):
    success: bool = True
    data: TokenPairData


class TokenPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")
    email: str
    role: str
    jti: str | None = None
    iat: int
    exp: int


class VerifyTokenResponse(BaseModel):
    success: bool = True
    valid: bool
    payload: TokenPayload | None = None
    error: str | None = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str
