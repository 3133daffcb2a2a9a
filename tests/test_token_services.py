# tests/test_token_services.py
import logging
from dataclasses import replace
from datetime import timedelta

import jwt
import pytest
from sqlalchemy.exc import OperationalError

from loyalty_auth.core.clock import utcnow
from loyalty_auth.core.exceptions import UnauthorizedError
from loyalty_auth.entities.token import TokenRejection, TokenType
from loyalty_auth.infrastructure.security.jwt_provider import token_digest
from loyalty_auth.repositories.auth_token_repository import AuthTokenRepository
from loyalty_auth.repositories.user_repository import UserRepository
from loyalty_auth.services.account_service import AccountService
from loyalty_auth.services.revocation_service import RevocationService
from loyalty_auth.services.token_issuer import TokenIssuer
from loyalty_auth.services.token_rotator import TokenRotator
from loyalty_auth.services.token_verifier import TokenVerifier


def jti_of(token: str) -> str:
    return jwt.decode(token, options={"verify_signature": False})["jti"]


class UnavailableInsertRepository(AuthTokenRepository):
    def add_pair(self, rows):
        raise OperationalError("INSERT INTO auth_tokens", {}, Exception("store unavailable"))


class UnavailableRevokeRepository(AuthTokenRepository):
    def revoke_jti(self, *, jti, now):
        raise OperationalError("UPDATE auth_tokens", {}, Exception("store unavailable"))


class PreCheckedVerifier(TokenVerifier):
    """Replays a verdict computed earlier, as a concurrent request would see it."""

    def __init__(self, result):
        self._result = result

    def evaluate(self, decoded):
        return self._result


# -------------------------
# Issuer
# -------------------------

def test_issue_stores_access_and_refresh_rows(make_user, issuer, token_repo):
    account = make_user(42)

    pair = issuer.issue(account)

    rows = token_repo.list_by_jti(pair.jti)
    assert sorted(r.token_type for r in rows) == ["access", "refresh"]
    assert {r.user_id for r in rows} == {42}
    assert not any(r.revoked for r in rows)

    by_type = {r.token_type: r for r in rows}
    assert by_type["access"].token == token_digest(pair.access.token)
    assert by_type["refresh"].token == token_digest(pair.refresh.token)
    assert by_type["access"].expires_at == pair.access.expires_at
    assert by_type["refresh"].expires_at == pair.refresh.expires_at


def test_each_issue_uses_a_new_jti(make_user, issuer):
    account = make_user(42)

    assert issuer.issue(account).jti != issuer.issue(account).jti


def test_duplicate_insert_is_absorbed(make_user, issuer, token_repo):
    account = make_user(42)
    pair = issuer.issue(account)

    assert issuer.persist(pair) is True
    assert len(token_repo.list_by_jti(pair.jti)) == 2


def test_issue_fails_open_when_store_is_down(make_user, session, jwt_provider, caplog):
    caplog.set_level(logging.WARNING)
    account = make_user(42)
    issuer = TokenIssuer(jwt_provider=jwt_provider, repo=UnavailableInsertRepository(session))

    pair = issuer.issue(account)

    assert jwt_provider.decode(pair.access.token, expected=TokenType.ACCESS).claims.user_id == 42
    assert "Failed to persist token pair" in caplog.text
    assert pair.access.token not in caplog.text


def test_issue_log_reports_whether_pair_was_stored(make_user, session, jwt_provider, issuer, caplog):
    caplog.set_level(logging.INFO)
    account = make_user(42)

    issuer.issue(account)
    TokenIssuer(jwt_provider=jwt_provider, repo=UnavailableInsertRepository(session)).issue(account)

    issued = [r for r in caplog.records if r.getMessage() == "Token pair issued"]
    assert [r.persisted for r in issued] == [True, False]


# -------------------------
# Verifier
# -------------------------

def test_issued_access_token_verifies(make_user, issuer, verifier):
    account = make_user(42, role="business")
    pair = issuer.issue(account)

    result = verifier.verify(pair.access.token)

    assert result.valid
    assert result.reason is None
    payload = result.claims.to_payload()
    assert payload["userId"] == 42
    assert payload["email"] == "user42@example.com"
    assert payload["role"] == "business"
    assert payload["jti"] == pair.jti
    assert payload["exp"] > payload["iat"]


def test_malformed_token_is_rejected(verifier):
    result = verifier.verify("definitely.not.valid")

    assert not result.valid
    assert result.reason is TokenRejection.INVALID_TOKEN


def test_refresh_token_is_not_an_access_token(make_user, issuer, verifier):
    pair = issuer.issue(make_user(42))

    assert verifier.verify(pair.refresh.token).reason is TokenRejection.INVALID_TOKEN


def test_revoked_token_is_rejected(make_user, issuer, verifier, token_repo):
    pair = issuer.issue(make_user(42))
    token_repo.revoke_jti(jti=pair.jti, now=utcnow())

    assert verifier.verify(pair.access.token).reason is TokenRejection.REVOKED


def test_unrecorded_token_is_rejected(make_user, session, jwt_provider, verifier):
    account = make_user(42)
    pair = TokenIssuer(jwt_provider=jwt_provider, repo=UnavailableInsertRepository(session)).issue(account)

    assert verifier.verify(pair.access.token).reason is TokenRejection.EXPIRED_OR_INVALID


def test_record_expiring_now_counts_as_expired(make_user, issuer, session, jwt_provider, token_repo):
    pair = issuer.issue(make_user(42))
    expires_at = pair.access.expires_at

    def verifier_at(now):
        return TokenVerifier(
            jwt_provider=jwt_provider,
            repo=token_repo,
            accounts=AccountService(UserRepository(session)),
            clock=lambda: now,
        )

    assert verifier_at(expires_at).verify(pair.access.token).reason is TokenRejection.EXPIRED_OR_INVALID
    assert verifier_at(expires_at - timedelta(seconds=1)).verify(pair.access.token).valid


def test_missing_account_is_rejected(make_user, issuer, verifier):
    account = make_user(42)
    pair = issuer.issue(replace(account, id=7))

    assert verifier.verify(pair.access.token).reason is TokenRejection.USER_NOT_FOUND


@pytest.mark.parametrize("status", ["banned", "suspended", "BANNED", "Suspended"])
def test_restricted_account_is_rejected(make_user, issuer, verifier, status):
    pair = issuer.issue(make_user(42, status=status))

    assert verifier.verify(pair.access.token).reason is TokenRejection.ACCOUNT_RESTRICTED


def test_verification_does_not_write(make_user, issuer, verifier, token_repo):
    pair = issuer.issue(make_user(42, status="banned"))

    verifier.verify(pair.access.token)
    verifier.verify("garbage")

    assert not any(r.revoked for r in token_repo.list_by_jti(pair.jti))


# -------------------------
# Rotator
# -------------------------

def test_rotation_issues_new_pair_and_revokes_old(make_user, issuer, rotator, verifier, token_repo):
    pair = issuer.issue(make_user(42))

    new_pair = rotator.rotate(refresh_token=pair.refresh.token)

    assert new_pair.jti != pair.jti
    assert jti_of(new_pair.access.token) == jti_of(new_pair.refresh.token) == new_pair.jti
    assert all(r.revoked and r.revoked_at is not None for r in token_repo.list_by_jti(pair.jti))
    assert not any(r.revoked for r in token_repo.list_by_jti(new_pair.jti))

    assert verifier.verify(new_pair.access.token).valid
    assert verifier.verify(pair.access.token).reason is TokenRejection.REVOKED


def test_replayed_refresh_token_is_always_revoked(make_user, issuer, rotator):
    pair = issuer.issue(make_user(42))
    rotator.rotate(refresh_token=pair.refresh.token)

    for _ in range(3):
        with pytest.raises(UnauthorizedError) as exc:
            rotator.rotate(refresh_token=pair.refresh.token)
        assert str(exc.value) == TokenRejection.REVOKED.value
        assert exc.value.status_code == 401


def test_rotated_pair_can_rotate_again(make_user, issuer, rotator):
    pair = issuer.issue(make_user(42))

    second = rotator.rotate(refresh_token=pair.refresh.token)
    third = rotator.rotate(refresh_token=second.refresh.token)

    assert len({pair.jti, second.jti, third.jti}) == 3


def test_access_token_cannot_rotate(make_user, issuer, rotator):
    pair = issuer.issue(make_user(42))

    with pytest.raises(UnauthorizedError) as exc:
        rotator.rotate(refresh_token=pair.access.token)

    assert str(exc.value) == TokenRejection.INVALID_REFRESH_TOKEN.value


def test_banned_account_cannot_rotate(make_user, issuer, rotator):
    pair = issuer.issue(make_user(42, status="banned"))

    with pytest.raises(UnauthorizedError) as exc:
        rotator.rotate(refresh_token=pair.refresh.token)

    assert str(exc.value) == TokenRejection.ACCOUNT_RESTRICTED.value


def test_rotation_fails_open_when_revoke_fails(make_user, session, jwt_provider, issuer, verifier, caplog):
    caplog.set_level(logging.WARNING)
    pair = issuer.issue(make_user(42))
    rotator = TokenRotator(
        jwt_provider=jwt_provider,
        verifier=verifier,
        issuer=issuer,
        repo=UnavailableRevokeRepository(session),
    )

    new_pair = rotator.rotate(refresh_token=pair.refresh.token)

    assert verifier.verify(new_pair.access.token).valid
    assert "Failed to revoke rotated token" in caplog.text


def test_rotation_revokes_old_pair_when_new_insert_fails(make_user, session, jwt_provider, issuer, verifier, token_repo):
    pair = issuer.issue(make_user(42))
    rotator = TokenRotator(
        jwt_provider=jwt_provider,
        verifier=verifier,
        issuer=TokenIssuer(jwt_provider=jwt_provider, repo=UnavailableInsertRepository(session)),
        repo=token_repo,
    )

    new_pair = rotator.rotate(refresh_token=pair.refresh.token)

    assert new_pair.jti != pair.jti
    assert all(r.revoked for r in token_repo.list_by_jti(pair.jti))
    with pytest.raises(UnauthorizedError) as exc:
        rotator.rotate(refresh_token=pair.refresh.token)
    assert str(exc.value) == TokenRejection.REVOKED.value

def test_concurrent_rotation_both_succeed_by_default(make_user, issuer, verifier, jwt_provider, token_repo):
    pair = issuer.issue(make_user(42))
    decoded = jwt_provider.decode(pair.refresh.token, expected=TokenType.REFRESH)
    rotator = TokenRotator(
        jwt_provider=jwt_provider,
        verifier=PreCheckedVerifier(verifier.evaluate(decoded)),
        issuer=issuer,
        repo=token_repo,
    )

    first = rotator.rotate(refresh_token=pair.refresh.token)
    second = rotator.rotate(refresh_token=pair.refresh.token)

    assert first.jti != second.jti


def test_strict_rotation_lets_one_concurrent_caller_win(make_user, issuer, verifier, jwt_provider, token_repo):
    pair = issuer.issue(make_user(42))
    decoded = jwt_provider.decode(pair.refresh.token, expected=TokenType.REFRESH)
    rotator = TokenRotator(
        jwt_provider=jwt_provider,
        verifier=PreCheckedVerifier(verifier.evaluate(decoded)),
        issuer=issuer,
        repo=token_repo,
        strict=True,
    )

    winner = rotator.rotate(refresh_token=pair.refresh.token)
    with pytest.raises(UnauthorizedError) as exc:
        rotator.rotate(refresh_token=pair.refresh.token)

    assert str(exc.value) == TokenRejection.REVOKED.value
    assert verifier.verify(winner.access.token).valid
    assert all(r.revoked for r in token_repo.list_by_jti(pair.jti))


def test_claim_refresh_succeeds_once(make_user, issuer, token_repo):
    pair = issuer.issue(make_user(42))
    now = utcnow()

    assert token_repo.claim_refresh(jti=pair.jti, now=now) is True
    assert token_repo.claim_refresh(jti=pair.jti, now=now) is False


# -------------------------
# Revocation
# -------------------------

def test_revoke_is_one_way_and_idempotent(make_user, issuer, token_repo, jwt_provider):
    pair = issuer.issue(make_user(42))
    service = RevocationService(repo=token_repo)
    claims = jwt_provider.decode(pair.access.token, expected=TokenType.ACCESS).claims

    assert service.revoke(claims) == 2
    assert service.revoke(claims) == 0
    assert token_repo.is_revoked(pair.jti)


def test_revoke_all_for_user(make_user, issuer, token_repo):
    ana, bruno = make_user(42), make_user(43)
    first = issuer.issue(ana)
    second = issuer.issue(bruno)
    third = issuer.issue(ana)

    revoked = RevocationService(repo=token_repo).revoke_all_for_user(42)

    assert revoked == 4
    assert token_repo.is_revoked(first.jti)
    assert token_repo.is_revoked(third.jti)
    assert not token_repo.is_revoked(second.jti)
