# loyalty_auth/infrastructure/database/session.py

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from loyalty_auth.infrastructure.database.base_model import BaseModel


class Database:
    def __init__(self, url: Optional[str] = None, *, echo: bool = False, engine: Optional[Engine] = None) -> None:
        if engine is None:
            if not url:
                raise ValueError("A database url or engine is required")
            engine = create_engine(url, echo=echo, pool_pre_ping=True)

        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )

    @contextmanager
    def session(self) -> Iterator[Session]:
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self) -> None:
        import loyalty_auth.infrastructure.database.models  # noqa: F401

        BaseModel.metadata.create_all(self.engine)
