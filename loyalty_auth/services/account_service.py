# loyalty_auth/services/account_service.py

from loyalty_auth.entities.account import Account
from loyalty_auth.entities.token import TokenRejection
from loyalty_auth.infrastructure.database.models.user_model import UserModel
from loyalty_auth.repositories.user_repository import UserRepository


def to_account(model: UserModel) -> Account:
    return Account(
        id=int(model.id),
        email=model.email,
        name=model.name,
        user_type=model.user_type,
        role=model.role,
        status=model.status,
    )


class AccountService:
    def __init__(self, repo: UserRepository) -> None:
        self._repo = repo

    def get_account(self, user_id: int) -> Account | None:
        model = self._repo.get_by_id(user_id)
        return to_account(model) if model is not None else None

    def check_eligibility(self, user_id: int) -> tuple[Account | None, TokenRejection | None]:
        account = self.get_account(user_id)
        if account is None:
            return None, TokenRejection.USER_NOT_FOUND
        if account.is_restricted:
            return account, TokenRejection.ACCOUNT_RESTRICTED
        return account, None
