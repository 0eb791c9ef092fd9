# baoleme/config.py
import os

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _normalize_database_url(raw_url: str) -> str:
    """
    Hosted Postgres usually hands out DATABASE_URL as:
      - postgres://...  (has to become postgresql+psycopg://)
    SSL is forced for remote Postgres.
    """
    if not raw_url:
        # local SQLite file under baoleme/database/app.db
        return f"sqlite:///{os.path.join(BASE_DIR, 'database', 'app.db')}"
    url = raw_url
    if url.startswith("postgres://"):
        url = "postgresql+psycopg://" + url[len("postgres://"):]
    elif url.startswith("postgresql://"):
        if not url.startswith("postgresql+"):
            url = "postgresql+psycopg://" + url[len("postgresql://"):]
    if "postgresql+psycopg://" in url and "sslmode=" not in url:
        host = url.split("@", 1)[-1]
        if not host.startswith(("localhost", "127.0.0.1")):
            sep = "&" if "?" in url else "?"
            url = f"{url}{sep}sslmode=require"
    return url


def _parse_services(raw: str) -> dict:
    """GATEWAY_SERVICES=user=http://host:8081,merchant=http://host:8082"""
    services = {}
    for chunk in (raw or "").split(","):
        chunk = chunk.strip()
        if not chunk or "=" not in chunk:
            continue
        name, url = chunk.split("=", 1)
        services[name.strip()] = url.strip().rstrip("/")
    return services


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "baoleme_secret_key_2025")

    SQLALCHEMY_DATABASE_URI = _normalize_database_url(os.getenv("DATABASE_URL", ""))
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    JWT_SECRET = os.getenv("JWT_SECRET", "baoleme_jwt_secret_2025")
    JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))

    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "uploads"))
    UPLOAD_BASE_URL = os.getenv("UPLOAD_BASE_URL", "/api/uploads").rstrip("/")
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(5 * 1024 * 1024)))

    GATEWAY_SERVICES = _parse_services(os.getenv("GATEWAY_SERVICES", ""))
    GATEWAY_TIMEOUT = float(os.getenv("GATEWAY_TIMEOUT", "10"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
