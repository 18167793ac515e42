import os
import threading

_DEV_AUTH_SECRET = "development-secret-change-me"

def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ["true", "1", "yes", "on"]

def _database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if url:
        return url

    postgres_url = os.environ.get("POSTGRES_URL")
    if postgres_url:
        user = os.environ.get("POSTGRES_USER")
        password = os.environ.get("POSTGRES_PASSWORD")
        db = os.environ.get("POSTGRES_DB")
        return f"postgresql://{user}:{password}@{postgres_url}/{db}"

    return "sqlite:///./appbase.db"

class BackendSettings:
    _instance = None
    _lock = threading.Lock()

    def __init__(self):
        self.DEBUG_MODE = os.environ.get("DEBUG_MODE", "development")
        self.LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
        self.DATABASE_URL = _database_url()

        # Signed token / session settings
        self.AUTH_SECRET = os.environ.get("AUTH_SECRET", _DEV_AUTH_SECRET)
        self.AUTH_ALGORITHM = os.environ.get("AUTH_ALGORITHM", "HS256")
        self.SESSION_MAX_AGE_DAYS = int(os.environ.get("SESSION_MAX_AGE_DAYS", "30"))
        self.SESSION_COOKIE_NAME = os.environ.get("SESSION_COOKIE_NAME", "appbase_session")
        self.SESSION_COOKIE_SECURE = _env_bool("SESSION_COOKIE_SECURE", "false")

        # Credentials
        self.BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
        self.PASSWORD_MIN_LENGTH = int(os.environ.get("PASSWORD_MIN_LENGTH", "8"))

        # Password reset
        self.APP_URL = os.environ.get("APP_URL", "http://localhost:3000").rstrip("/")
        self.PASSWORD_RESET_TTL_MINUTES = int(os.environ.get("PASSWORD_RESET_TTL_MINUTES", "30"))
        self.RESET_RATE_LIMIT = int(os.environ.get("RESET_RATE_LIMIT", "3"))
        self.RESET_RATE_WINDOW_SECONDS = int(os.environ.get("RESET_RATE_WINDOW_SECONDS", "900"))

        # Email providers
        self.FROM_EMAIL = os.environ.get("FROM_EMAIL")
        self.SMTP_HOST = os.environ.get("SMTP_HOST")
        self.SMTP_PORT = int(os.environ.get("SMTP_PORT", "465"))
        self.SMTP_USER = os.environ.get("SMTP_USER")
        self.SMTP_PASS = os.environ.get("SMTP_PASS")
        self.GMAIL_USER = os.environ.get("GMAIL_USER")
        self.GMAIL_APP_PASSWORD = os.environ.get("GMAIL_APP_PASSWORD")

        # Optional redis backend for the rate limiter
        self.REDIS_HOST = os.environ.get("REDIS_HOST")
        self.REDIS_PORT = int(os.environ.get("REDIS_PORT", "6379"))
        self.REDIS_PASSWORD = os.environ.get("REDIS_PASSWORD", "")

        # Bootstrap administrator
        self.ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL")
        self.ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD")

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(BackendSettings, cls).__new__(cls)
        return cls._instance

    @property
    def uses_default_secret(self) -> bool:
        return self.AUTH_SECRET == _DEV_AUTH_SECRET

settings = BackendSettings()
