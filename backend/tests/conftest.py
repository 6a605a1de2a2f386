"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Redis is replaced by
``fakeredis`` and every token type gets its own test secret.
"""

from __future__ import annotations

import os

import fakeredis
import pytest
from sqlalchemy.orm import scoped_session, sessionmaker
from tokenauth.core.config import token_settings_from_config
from tokenauth.core.extensions import db as _db  # Flask-SQLAlchemy instance
from tokenauth.factory import create_app  # application factory under test
from tokenauth.infra.jwt.pyjwt_token_signer import PyJWTTokenSigner
from tokenauth.infra.redis.redis_cache import RedisCacheService
from tokenauth.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from tokenauth.services.auth.service import AuthService
from tokenauth.services.tokens.codec import TokenCodec
from tokenauth.services.tokens.revocation import RevocationStore

from tests.helpers.clock import FrozenClock


class TestConfig:
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Leaves ``REDIS_URL`` unset; tests inject a fakeredis-backed cache.
    - Secrets are long enough to keep PyJWT's HMAC key checks quiet.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    REDIS_URL = None
    LOG_LEVEL = "WARNING"
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"

    JWT_ACCESS_SECRET = "test-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"
    JWT_EMAIL_CONFIRMATION_SECRET = "test-email-confirmation-secret-0123456789"
    JWT_PASSWORD_RECOVERY_SECRET = "test-password-recovery-secret-0123456789"
    JWT_ACCESS_TOKEN_TTL = 900
    JWT_REFRESH_TOKEN_TTL = 7 * 24 * 3600
    JWT_EMAIL_CONFIRMATION_TOKEN_TTL = 24 * 3600
    JWT_PASSWORD_RECOVERY_TOKEN_TTL = 24 * 3600


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing."""
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Notes
    -----
    SQLAlchemy 2.0 recipe: an outer transaction per test, with the session
    joining it through SAVEPOINTs (``join_transaction_mode="create_savepoint"``),
    so ``commit()``/``rollback()`` inside units of work never touch the outer
    transaction, which is rolled back at teardown.
    """
    top_trans = connection.begin()
    connection.begin_nested()

    SessionFactory = sessionmaker(
        bind=connection,
        join_transaction_mode="create_savepoint",
        autoflush=False,
    )
    scoped = scoped_session(SessionFactory)

    # Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


# -- Token core ----------------------------------------------------------------
@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture
def cache(fake_redis):
    return RedisCacheService(fake_redis)


@pytest.fixture
def token_settings(app):
    return token_settings_from_config(app.config)


@pytest.fixture
def clock():
    """Frozen UTC clock a few minutes in the past (PyJWT rejects future ``iat``)."""
    return FrozenClock.minutes_ago(5)


@pytest.fixture
def codec(token_settings):
    return TokenCodec(signer=PyJWTTokenSigner(), settings=token_settings)


@pytest.fixture
def revocation_store(cache, token_settings):
    return RevocationStore(cache=cache, settings=token_settings)


@pytest.fixture
def hasher(app):
    return WerkzeugPasswordHasher(app.config["PASSWORD_HASH_METHOD"])


@pytest.fixture
def auth_service(codec, revocation_store, hasher) -> AuthService:
    """AuthService wired to real adapters over fakeredis and the test session."""
    return AuthService(codec=codec, revocation_store=revocation_store, hasher=hasher)
