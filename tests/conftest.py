# tests/conftest.py
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

from loyalty_auth.api.container import EXTENSION_KEY
from loyalty_auth.config.settings import Settings
from loyalty_auth.infrastructure.database.models import UserModel
from loyalty_auth.infrastructure.database.session import Database
from loyalty_auth.infrastructure.security.jwt_provider import JwtProvider
from loyalty_auth.main import create_app
from loyalty_auth.repositories.auth_token_repository import AuthTokenRepository
from loyalty_auth.repositories.user_repository import UserRepository
from loyalty_auth.services.account_service import AccountService, to_account
from loyalty_auth.services.token_issuer import TokenIssuer
from loyalty_auth.services.token_rotator import TokenRotator
from loyalty_auth.services.token_verifier import TokenVerifier

TEST_SECRET = "loyalty-test-secret-0123456789abcdef"


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite://",
        "jwt_secret": TEST_SECRET,
        "jwt_refresh_secret": None,
        "rate_limit_max_requests": 0,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # let SQLAlchemy own BEGIN so SAVEPOINT works on pysqlite
    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    yield engine
    engine.dispose()


@pytest.fixture
def database(engine):
    db = Database(engine=engine)
    db.create_all()
    return db


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def make_user(database):
    def _make(user_id: int = 42, *, status: str = "active", role: str = "customer", email: str | None = None):
        with database.session() as session:
            model = UserModel(
                id=user_id,
                email=email or f"user{user_id}@example.com",
                name=f"User {user_id}",
                user_type=role,
                role=role,
                status=status,
            )
            session.add(model)
            session.flush()
            return to_account(model)

    return _make


@pytest.fixture
def session(database):
    with database.session() as session:
        yield session


@pytest.fixture
def jwt_provider(settings):
    return JwtProvider(settings)


@pytest.fixture
def token_repo(session):
    return AuthTokenRepository(session)


@pytest.fixture
def issuer(jwt_provider, token_repo):
    return TokenIssuer(jwt_provider=jwt_provider, repo=token_repo)


@pytest.fixture
def verifier(jwt_provider, token_repo, session):
    return TokenVerifier(
        jwt_provider=jwt_provider,
        repo=token_repo,
        accounts=AccountService(UserRepository(session)),
    )


@pytest.fixture
def rotator(jwt_provider, verifier, issuer, token_repo):
    return TokenRotator(jwt_provider=jwt_provider, verifier=verifier, issuer=issuer, repo=token_repo)


@pytest.fixture
def app(settings, database):
    app = create_app(settings, database=database)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def issue_pair(app):
    """Log a user in the way the login flow would: issue and store a pair."""

    def _issue(account):
        container = app.extensions[EXTENSION_KEY]
        with container.db_session() as session:
            return container.issuer(session).issue(account)

    return _issue
