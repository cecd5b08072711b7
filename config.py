"""Environment-aware configuration for the ward complaint portal."""
import os
from datetime import timedelta


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, default))


def _instance_path(*parts: str) -> str:
    return os.path.join(os.getcwd(), "instance", *parts)


def _database_uri() -> str:
    # DATABASE_URL selects PostgreSQL; placeholder hosts (db_host) keep the local SQLite file.
    db_url = os.getenv("DATABASE_URL")
    if db_url and "db_host" not in db_url:
        return db_url
    return os.getenv("SQLITE_URL", f"sqlite:///{_instance_path('complaints.db')}")


class BaseConfig:
    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-me")

        # Persistence
        self.SQLALCHEMY_DATABASE_URI = _database_uri()
        self.SQLALCHEMY_TRACK_MODIFICATIONS = False
        self.SQLALCHEMY_ENGINE_OPTIONS = {
            "pool_size": _env_int("DB_POOL_SIZE", 10),
            "max_overflow": _env_int("DB_MAX_OVERFLOW", 20),
            "pool_timeout": _env_int("DB_POOL_TIMEOUT", 30),
            "pool_recycle": _env_int("DB_POOL_RECYCLE", 1800),
        }

        # Session carries the selected ward and view between requests.
        self.SESSION_COOKIE_HTTPONLY = True
        self.SESSION_COOKIE_SAMESITE = "Lax"
        self.PERMANENT_SESSION_LIFETIME = timedelta(days=30)
        self.PREFERRED_URL_SCHEME = os.getenv("PREFERRED_URL_SCHEME", "https")
        self.WTF_CSRF_ENABLED = True
        self.WTF_CSRF_TIME_LIMIT = 3600

        # Complaint photos
        self.COMPLAINT_UPLOAD_FOLDER = os.getenv("COMPLAINT_UPLOAD_FOLDER", _instance_path("complaint_uploads"))
        self.ATTACHMENT_BUCKET = os.getenv("ATTACHMENT_BUCKET", "complaint-images")
        # When set, public attachment URLs are <base>/<bucket>/<name> (e.g. a CDN in front of the upload folder).
        self.ATTACHMENT_PUBLIC_BASE_URL = os.getenv("ATTACHMENT_PUBLIC_BASE_URL", "")
        self.MAX_IMAGE_UPLOAD_BYTES = _env_int("MAX_IMAGE_UPLOAD_BYTES", 8 * 1024 * 1024)
        self.MAX_CONTENT_LENGTH = _env_int("MAX_REQUEST_BYTES", 16 * 1024 * 1024)

        # Portal behaviour
        self.COMPLAINTS_LIST_LIMIT = _env_int("COMPLAINTS_LIST_LIMIT", 20)
        self.SUCCESS_REDIRECT_DELAY_SECONDS = _env_int("SUCCESS_REDIRECT_DELAY_SECONDS", 2)
        self.SUPPORTED_LANGUAGES = os.getenv("SUPPORTED_LANGUAGES", "en,hi,kn")

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.getcwd(), "logs"))


class DevelopmentConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.DEBUG = True
        self.ENV = "development"
        self.SESSION_COOKIE_SECURE = False


class ProductionConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.DEBUG = False
        self.ENV = "production"
        self.SESSION_COOKIE_SECURE = True
        self.SEND_FILE_MAX_AGE_DEFAULT = 31536000


class TestingConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.TESTING = True
        self.ENV = "testing"
        self.WTF_CSRF_ENABLED = False
        self.SESSION_COOKIE_SECURE = False
        self.PREFERRED_URL_SCHEME = "http"
        # SQLite test databases do not take queue pool options.
        self.SQLALCHEMY_ENGINE_OPTIONS = {}
