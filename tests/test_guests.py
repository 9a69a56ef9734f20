"""Tests for guest identities: creation, expiry, upgrade and the sweep."""
from datetime import timedelta
from unittest.mock import MagicMock

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from eduhub.core.errors import InternalError
from eduhub.core.security import decode_access_token
from eduhub.core.timeutils import as_utc, utcnow
from eduhub.models.guest_session import GuestSession
from eduhub.models.user import User
from eduhub.routers import auth as auth_router
from eduhub.services import guests
from eduhub.services.guests import cleanup_expired_guest_sessions
from tests.conftest import DEFAULT_PASSWORD, auth_header, create_test_guest, register_test_user


def _count(db, model) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar_one()


class TestCreateGuest:

    def test_guest_gets_token_and_minimal_view(self, client):
        data = create_test_guest(client, "Amina", "Mwansa", "9")
        assert data["success"] is True
        user = data["user"]
        assert user["isGuest"] is True
        assert user["firstName"] == "Amina"
        assert user["lastName"] == "Mwansa"
        assert user["grade"] == "9"
        assert set(user) == {"id", "firstName", "lastName", "grade", "isGuest", "createdAt"}

        payload = decode_access_token(data["token"])
        assert payload.user_id == user["id"]
        assert payload.is_guest is True

    def test_session_record_matches_token(self, client, db):
        data = client.post(
            "/api/auth/guest",
            json={"firstName": "Amina", "lastName": "Mwansa"},
            headers={"User-Agent": "pytest-browser/1.0"},
        ).json()

        session = db.execute(select(GuestSession)).scalar_one()
        user = db.get(User, data["user"]["id"])
        assert session.session_token == data["token"]
        assert session.user_agent == "pytest-browser/1.0"
        assert session.ip_address == "testclient"
        assert as_utc(session.expires_at) == as_utc(user.guest_expires_at)
        window = as_utc(user.guest_expires_at) - utcnow()
        assert timedelta(hours=23, minutes=59) < window <= timedelta(hours=24)

    def test_guest_requires_names(self, client):
        resp = client.post("/api/auth/guest", json={"firstName": "Amina"})
        assert resp.status_code == 400

    def test_creation_is_all_or_nothing(self, client, db, monkeypatch):
        def _broken_signer(*args, **kwargs):
            raise InternalError("Token signing is not configured")

        monkeypatch.setattr(guests, "create_access_token", _broken_signer)
        resp = client.post("/api/auth/guest", json={"firstName": "Amina", "lastName": "Mwansa"})
        assert resp.status_code == 500
        assert _count(db, User) == 0
        assert _count(db, GuestSession) == 0

    def test_guest_expires_after_a_day(self, client, db):
        guest = create_test_guest(client, "Amina", "Mwansa", "9")
        # simulate 24h + 1s passing on the row's clock
        row = db.get(User, guest["user"]["id"])
        row.guest_expires_at = as_utc(row.guest_expires_at) - timedelta(hours=24, seconds=1)
        db.commit()

        resp = client.get("/api/auth/profile", headers=auth_header(guest["token"]))
        assert resp.status_code == 401
        assert resp.json()["error"] == "Guest session expired"

    def test_guest_logout_drops_session_record(self, client, db):
        guest = create_test_guest(client)
        resp = client.post("/api/auth/logout", headers=auth_header(guest["token"]))
        assert resp.status_code == 204
        assert _count(db, GuestSession) == 0
        # the guest user itself is untouched
        assert db.get(User, guest["user"]["id"]).is_guest is True


class TestUpgrade:

    def test_upgrade_preserves_id(self, client, db):
        guest = create_test_guest(client)
        resp = client.post("/api/auth/guest/upgrade", headers=auth_header(guest["token"]), json={
            "email": "amina@example.com",
            "password": DEFAULT_PASSWORD,
            "mobile": "+260971111111",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["user"]["id"] == guest["user"]["id"]
        assert body["user"]["isGuest"] is False
        assert body["user"]["guestExpiresAt"] is None
        assert body["user"]["email"] == "amina@example.com"

        payload = decode_access_token(body["token"])
        assert payload.user_id == guest["user"]["id"]
        assert payload.is_guest is False
        assert _count(db, User) == 1

        login = client.post("/api/auth/login", json={"email": "amina@example.com", "password": DEFAULT_PASSWORD})
        assert login.status_code == 200
        assert login.json()["user"]["id"] == guest["user"]["id"]

    def test_upgrade_to_taken_email_conflicts_and_leaves_guest(self, client, db):
        register_test_user(client, email="taken@example.com")
        guest = create_test_guest(client)
        resp = client.post("/api/auth/guest/upgrade", headers=auth_header(guest["token"]), json={
            "email": "taken@example.com",
            "password": DEFAULT_PASSWORD,
        })
        assert resp.status_code == 409
        row = db.get(User, guest["user"]["id"])
        assert row.is_guest is True
        assert row.email is None
        assert row.hashed_password is None
        assert row.guest_expires_at is not None

    def test_full_account_cannot_upgrade(self, client):
        user = register_test_user(client)
        resp = client.post("/api/auth/guest/upgrade", headers=auth_header(user["token"]), json={
            "email": "again@example.com",
            "password": DEFAULT_PASSWORD,
        })
        assert resp.status_code == 401
        assert resp.json()["error"] == "Only guest users can upgrade their account"

    def test_upgrade_validates_input(self, client):
        guest = create_test_guest(client)
        resp = client.post("/api/auth/guest/upgrade", headers=auth_header(guest["token"]), json={
            "email": "amina@example",
            "password": "short",
        })
        assert resp.status_code == 400
        fields = {d["field"] for d in resp.json()["details"]}
        assert fields == {"email", "password"}

    def test_upgrade_requires_token(self, client):
        resp = client.post("/api/auth/guest/upgrade", json={
            "email": "amina@example.com",
            "password": DEFAULT_PASSWORD,
        })
        assert resp.status_code == 401


def _seed_sweep_rows(db):
    now = utcnow()
    past = now - timedelta(minutes=5)
    future = now + timedelta(hours=3)
    expired_guest = User(first_name="Old", last_name="Guest", is_guest=True, guest_expires_at=past)
    active_guest = User(first_name="New", last_name="Guest", is_guest=True, guest_expires_at=future)
    db.add_all([
        expired_guest,
        active_guest,
        GuestSession(session_token="expired-token", expires_at=past),
        GuestSession(session_token="active-token", expires_at=future),
    ])
    db.commit()
    return expired_guest.id, active_guest.id


class TestCleanup:

    def test_sweep_deletes_and_demotes(self, db):
        expired_id, active_id = _seed_sweep_rows(db)

        result = cleanup_expired_guest_sessions(db)
        assert result.sessions_deleted == 1
        assert result.guests_demoted == 1

        db.expire_all()
        demoted = db.get(User, expired_id)
        assert demoted.is_guest is False
        assert demoted.guest_expires_at is None
        assert db.get(User, active_id).is_guest is True
        tokens = db.execute(select(GuestSession.session_token)).scalars().all()
        assert tokens == ["active-token"]

    def test_sweep_is_idempotent(self, db):
        _seed_sweep_rows(db)
        cleanup_expired_guest_sessions(db)
        second = cleanup_expired_guest_sessions(db)
        assert second.sessions_deleted == 0
        assert second.guests_demoted == 0

    def test_failed_step_does_not_stop_the_sweep(self):
        demote_result = MagicMock(rowcount=2)
        session = MagicMock()
        session.execute.side_effect = [
            OperationalError("DELETE FROM guest_sessions", {}, Exception("disk I/O error")),
            demote_result,
        ]
        result = cleanup_expired_guest_sessions(session)
        assert result.sessions_deleted == 0
        assert result.guests_demoted == 2
        session.rollback.assert_called_once()

    def test_cleanup_endpoint(self, client, db):
        _seed_sweep_rows(db)
        resp = client.post("/api/auth/cleanup", headers={"X-Maintenance-Token": "test-maintenance-token"})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "sessionsDeleted": 1, "guestsDemoted": 1}

    def test_cleanup_endpoint_rejects_wrong_token(self, client):
        resp = client.post("/api/auth/cleanup", headers={"X-Maintenance-Token": "guess"})
        assert resp.status_code == 401

    def test_cleanup_endpoint_disabled_without_token(self, client, monkeypatch):
        monkeypatch.setattr(auth_router.settings, "maintenance_token", "")
        resp = client.post("/api/auth/cleanup", headers={"X-Maintenance-Token": "anything"})
        assert resp.status_code == 404


def test_demoted_guest_has_no_login_path(client, db):
    guest = create_test_guest(client)
    row = db.get(User, guest["user"]["id"])
    row.guest_expires_at = utcnow() - timedelta(seconds=1)
    db.commit()
    cleanup_expired_guest_sessions(db)

    db.expire_all()
    row = db.get(User, guest["user"]["id"])
    assert row.is_guest is False
    assert row.email is None and row.mobile is None and row.hashed_password is None
