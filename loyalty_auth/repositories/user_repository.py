# loyalty_auth/repositories/user_repository.py

from sqlalchemy import select
from sqlalchemy.orm import Session

from loyalty_auth.core.base_repository import BaseRepository
from loyalty_auth.infrastructure.database.models.user_model import UserModel


class UserRepository(BaseRepository[UserModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_id(self, user_id: int) -> UserModel | None:
        stmt = select(UserModel).where(UserModel.id == user_id)
        return self._session.execute(stmt).scalar_one_or_none()
