# backend/antlogistics/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///antlogistics.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Signed session artifact (JWT carried in an HTTP-only cookie)
    JWT_ISSUER = os.environ.get("JWT_ISSUER", "AntLogistics")
    JWT_AUDIENCE = os.environ.get("JWT_AUDIENCE", "AntLogisticsClients")
    JWT_ALGORITHM = "HS256"
    SESSION_TTL_MINUTES = int(os.environ.get("SESSION_TTL_MINUTES", "30"))
    SESSION_CLOCK_SKEW_SECONDS = int(os.environ.get("SESSION_CLOCK_SKEW_SECONDS", "120"))

    AUTH_COOKIE_NAME = "als_auth"
    AUTH_COOKIE_SECURE = _env_bool("AUTH_COOKIE_SECURE", False)

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    BCRYPT_ROUNDS = 4  # keep hashing fast in tests
    AUTH_COOKIE_SECURE = False
    LOG_LEVEL = "WARNING"
