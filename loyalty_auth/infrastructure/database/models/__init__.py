from loyalty_auth.infrastructure.database.models.auth_token_model import AuthTokenModel
from loyalty_auth.infrastructure.database.models.user_model import UserModel

__all__ = ["AuthTokenModel", "UserModel"]
