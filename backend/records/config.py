"""Application configuration helpers."""

import os

from dotenv import load_dotenv

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_DOTENV_PATH = os.path.join(_BASE_DIR, ".env")

if os.path.exists(_DOTENV_PATH):
    load_dotenv(_DOTENV_PATH)


class ConfigError(RuntimeError):
    """Raised when configuration values are missing or invalid."""


STORE_BACKENDS = ("supabase", "mongo")

_SUPABASE_URL_CACHE = None
_SUPABASE_KEY_CACHE = None
_MONGO_URI_CACHE = None
_DB_NAME_CACHE = None


def get_supabase_url():
    """Return the Supabase project URL from the environment."""

    global _SUPABASE_URL_CACHE

    if _SUPABASE_URL_CACHE:
        return _SUPABASE_URL_CACHE

    url = os.getenv("SUPABASE_URL")
    if not url:
        raise ConfigError("SUPABASE_URL is not set. Define it in backend/.env.")

    _SUPABASE_URL_CACHE = url.rstrip("/")
    return _SUPABASE_URL_CACHE


def get_supabase_key():
    """Return the Supabase anon key used for every client."""

    global _SUPABASE_KEY_CACHE

    if _SUPABASE_KEY_CACHE:
        return _SUPABASE_KEY_CACHE

    key = os.getenv("SUPABASE_KEY")
    if not key:
        raise ConfigError("SUPABASE_KEY is not set. Define it in backend/.env.")

    _SUPABASE_KEY_CACHE = key
    return key


def get_store_backend():
    """Return which record store implementation to use."""

    backend = (os.getenv("RECORDS_STORE") or "supabase").strip().lower()
    if backend not in STORE_BACKENDS:
        raise ConfigError(
            "RECORDS_STORE must be one of: " + ", ".join(STORE_BACKENDS) + "."
        )
    return backend


def get_log_level():
    return (os.getenv("LOG_LEVEL") or "INFO").strip().upper()


def get_mongo_uri():
    """Return the MongoDB connection string from the environment."""

    global _MONGO_URI_CACHE

    if _MONGO_URI_CACHE:
        return _MONGO_URI_CACHE

    uri = os.getenv("MONGODB_URI")
    if not uri:
        raise ConfigError("MONGODB_URI is not set. Define it in backend/.env.")

    _MONGO_URI_CACHE = uri
    return uri


def get_db_name():
    """Return the database name derived from the MongoDB URI or env var."""

    global _DB_NAME_CACHE

    if _DB_NAME_CACHE:
        return _DB_NAME_CACHE

    db_name = os.getenv("MONGODB_DB")
    if db_name:
        _DB_NAME_CACHE = db_name
        return db_name

    uri = get_mongo_uri()
    main = uri.split("?", 1)[0].rstrip("/")
    after_scheme = main.split("://", 1)[1] if "://" in main else main

    candidate = after_scheme.split("/", 1)[1] if "/" in after_scheme else ""
    if not candidate:
        raise ConfigError(
            "Database name not found. Provide it via MONGODB_URI or MONGODB_DB."
        )

    _DB_NAME_CACHE = candidate
    return candidate


__all__ = [
    "ConfigError",
    "STORE_BACKENDS",
    "get_supabase_url",
    "get_supabase_key",
    "get_store_backend",
    "get_log_level",
    "get_mongo_uri",
    "get_db_name",
]
