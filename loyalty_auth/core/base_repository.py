from typing import Generic, TypeVar
from sqlalchemy.orm import Session, SessionTransaction

TModel = TypeVar("TModel")

class BaseRepository(Generic[TModel]):
    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def dialect_name(self) -> str:
        return self._session.get_bind().dialect.name

    def savepoint(self) -> SessionTransaction:
        return self._session.begin_nested()
