"""Tests for the User model."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError
from tokenauth.models.user import User
from tokenauth.services._shared.errors import ValidationError

from tests.factories.user import hash_password


def _user(**overrides) -> User:
    data = {"email": "Test@Example.com", "password_hash": hash_password("secret123")}
    data.update(overrides)
    return User(**data)


class TestUserConstruction:
    def test_defaults(self):
        u = _user()
        assert u.id
        assert u.email == "test@example.com"
        assert u.active is True
        assert u.email_confirmed is False
        assert u.created_at is not None
        assert u.updated_at == u.created_at
        assert u.last_credential_invalidation is None

    def test_ids_are_unique(self):
        assert _user().id != _user(email="other@example.com").id

    @pytest.mark.parametrize("raw", ["secret123", "", "$2b$10$abcdefghijklmnopqrstuv"])
    def test_rejects_unhashed_password(self, raw):
        with pytest.raises(ValidationError):
            _user(password_hash=raw)

    def test_missing_password_hash(self):
        with pytest.raises(ValidationError):
            User(email="a@example.com")

    @pytest.mark.parametrize("email", ["", "no-at-sign", "user@nodot"])
    def test_rejects_bad_email(self, email):
        with pytest.raises(ValidationError):
            _user(email=email)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            _user(password_hash="plain")


class TestUserRules:
    @pytest.mark.parametrize(
        ("active", "confirmed", "expected"),
        [(True, True, True), (True, False, False), (False, True, False), (False, False, False)],
    )
    def test_can_authenticate(self, active, confirmed, expected):
        u = _user(active=active, email_confirmed=confirmed)
        assert u.can_authenticate() is expected


class TestUserMutators:
    @pytest.fixture
    def frozen(self, monkeypatch):
        """Pin the model clock so every mutator's timestamp is observable."""
        instants = iter(datetime(2030, 1, 1, tzinfo=UTC) + timedelta(seconds=i) for i in range(100))
        monkeypatch.setattr("tokenauth.models.user.utcnow", lambda: next(instants))

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda u: u.activate(),
            lambda u: u.deactivate(),
            lambda u: u.confirm_email(),
            lambda u: u.update_first_name("Ada"),
            lambda u: u.update_last_name("Lovelace"),
            lambda u: u.update_password(hash_password("new-secret")),
            lambda u: u.invalidate_credential(),
        ],
    )
    def test_every_mutator_bumps_updated_at(self, frozen, mutate):
        u = _user()
        before = u.updated_at
        mutate(u)
        assert u.updated_at > before

    def test_state_switches(self):
        u = _user()
        u.deactivate()
        assert u.active is False
        u.activate()
        assert u.active is True
        u.confirm_email()
        assert u.email_confirmed is True

    def test_names_ignore_empty_values(self):
        u = _user(first_name="Ada")
        before = u.updated_at
        u.update_first_name(None)
        u.update_last_name("")
        assert u.first_name == "Ada"
        assert u.last_name is None
        assert u.updated_at == before

    def test_update_password_sets_invalidation(self, frozen):
        u = _user()
        new_hash = hash_password("new-secret")
        u.update_password(new_hash)
        assert u.password_hash == new_hash
        assert u.last_credential_invalidation == u.updated_at

    def test_update_password_validates_hash(self):
        u = _user()
        old_hash = u.password_hash
        with pytest.raises(ValidationError):
            u.update_password("plain-text")
        assert u.password_hash == old_hash
        assert u.last_credential_invalidation is None

    def test_update_password_ignores_empty(self):
        u = _user()
        u.update_password(None)
        assert u.last_credential_invalidation is None

    def test_invalidate_credential_keeps_password(self, frozen):
        u = _user()
        old_hash = u.password_hash
        u.invalidate_credential()
        assert u.password_hash == old_hash
        assert u.last_credential_invalidation is not None


class TestUserPersistence:
    def test_email_unique(self, session):
        session.add(_user(email="Alice@Example.com"))
        session.flush()

        session.add(_user(email="alice@example.com"))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_round_trip(self, session):
        u = _user(first_name="Grace", invited_by_id="some-inviter")
        session.add(u)
        session.flush()
        session.expire_all()

        loaded = session.get(User, u.id)
        assert loaded.email == "test@example.com"
        assert loaded.first_name == "Grace"
        assert loaded.invited_by_id == "some-inviter"
        assert repr(loaded) == f"<User id={u.id}>"

    def test_email_lookup_relies_on_unique_constraint(self):
        table = User.__table__
        unique = {c.name for c in table.constraints if c.name == "uq_users_email"}

        assert unique == {"uq_users_email"}
        assert not [ix for ix in table.indexes if "email" in ix.columns]
