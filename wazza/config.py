import os
import sys
from datetime import timedelta
from pathlib import Path
from typing import Type

from dotenv import load_dotenv
from flask import Flask

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s | %(name)-20s | %(levelname)-8s | %(message)s"
DEFAULT_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

DEFAULT_SESSION_EXPIRATION = 60 * 60 * 24 * 7   # one week, in seconds
MIN_SECRET_LENGTH = 32

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, default))


def _warn(message: str) -> None:
    print(f"\033[93mWARNING: {message}\033[0m", file=sys.stderr)


class Config:
    """Settings shared by every environment; select a subclass instead."""
    SECRET_KEY: str | None = os.getenv("APP_SECRET", "")

    # login session and cart cookie
    SESSION_COOKIE_NAME = "wazza_session"
    SESSION_COOKIE_SAMESITE = "Strict"
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = False
    SESSION_EXPIRATION = _env_int("SESSION_EXPIRATION", DEFAULT_SESSION_EXPIRATION)
    PERMANENT_SESSION_LIFETIME = timedelta(seconds=SESSION_EXPIRATION)
    WTF_CSRF_ENABLED = False        # JSON API behind a SameSite=Strict cookie

    LOG_LEVEL = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    LOG_FORMAT = os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT)
    LOG_DATEFMT = os.getenv("LOG_DATEFMT", DEFAULT_LOG_DATEFMT)
    LOG_FILE = os.getenv("LOG_FILE")

    DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'instance' / 'wazza.db'}")

    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    REDIS_TIMEOUT = float(os.getenv("REDIS_TIMEOUT", 2))
    MAP_CACHE_TTL = _env_int("MAP_CACHE_TTL", 300)

    # Fernet key for recipient national ids
    ENCRYPTION_KEY = os.getenv("ENCRYPTION_KEY")

    SMS_GATEWAY_URL = os.getenv("SMS_GATEWAY_URL")
    SMS_GATEWAY_TOKEN = os.getenv("SMS_GATEWAY_TOKEN")
    SMS_RATE_LIMIT = _env_int("SMS_RATE_LIMIT", 60)   # messages per minute

    DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")

    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@wazza.co.zw")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "WazzaAdmin")

    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = _env_int("PORT", 5000)

    @staticmethod
    def init_app(app: Flask) -> None:
        pass


class DevelopmentConfig(Config):
    DEBUG = True

    @staticmethod
    def init_app(app: Flask) -> None:
        if len(app.secret_key or "") < MIN_SECRET_LENGTH:  # type: ignore[arg-type]
            _warn("APP_SECRET is weak or missing, sessions are not safe. "
                  "Generate one with: python -c 'import secrets; print(secrets.token_hex(32))'")
        if not app.config.get("ENCRYPTION_KEY"):
            _warn("ENCRYPTION_KEY is missing, gift orders will fail. "
                  "Generate one with: python -c 'from cryptography.fernet import Fernet; "
                  "print(Fernet.generate_key().decode())'")
        if app.config["ADMIN_PASSWORD"] == Config.ADMIN_PASSWORD:
            _warn("The default admin password is in use.")


class ProductionConfig(Config):
    SESSION_COOKIE_SECURE = True

    @staticmethod
    def init_app(app: Flask) -> None:
        problems = []
        if len(app.secret_key or "") < MIN_SECRET_LENGTH:  # type: ignore[arg-type]
            problems.append(f"APP_SECRET must be at least {MIN_SECRET_LENGTH} characters")
        if not app.config.get("ENCRYPTION_KEY"):
            problems.append("ENCRYPTION_KEY must be set")
        if app.config["ADMIN_PASSWORD"] == Config.ADMIN_PASSWORD:
            problems.append("ADMIN_PASSWORD must not be the default")
        if problems:
            raise ValueError("Refusing to start in production: " + "; ".join(problems))


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "testing-secret-key-testing-secret-key"
    HOST = "127.0.0.1"
    LOG_FILE = None
    SMS_GATEWAY_URL = None


config_by_name: dict[str, Type[Config]] = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
