import os
from pydantic_settings import BaseSettings
from pydantic import model_validator, field_validator
from typing import Optional

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
DEFAULT_DB_URI = f'sqlite:///{os.path.join(BASE_DIR, "honouredlives.db")}'


class Config(BaseSettings):
    # Security configuration
    SECRET_KEY: str = 'dev-secret-change-me'

    # Database
    DATABASE_URL: str = DEFAULT_DB_URI
    SQLALCHEMY_DATABASE_URI: Optional[str] = None
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_ENGINE_OPTIONS: dict = {}

    @model_validator(mode='after')
    def set_database_config(self) -> 'Config':
        """Set SQLALCHEMY_DATABASE_URI from DATABASE_URL and configure engine options"""
        self.SQLALCHEMY_DATABASE_URI = self.DATABASE_URL

        if 'postgresql' in self.DATABASE_URL or 'mysql' in self.DATABASE_URL:
            self.SQLALCHEMY_ENGINE_OPTIONS = {
                'pool_size': 10,
                'pool_recycle': 3600,
                'pool_pre_ping': True,
                'max_overflow': 20,
            }

        return self

    # File upload
    MAX_CONTENT_LENGTH: int = 16 * 1024 * 1024  # 16MB max request size
    MAX_PHOTO_SIZE: int = 5 * 1024 * 1024

    @field_validator('MAX_CONTENT_LENGTH', 'MAX_PHOTO_SIZE', mode='before')
    def _parse_byte_sizes(cls, v):
        """Allow sizes to be specified in .env with inline comments like '16777216  # 16MB in bytes'."""
        if v is None:
            return v
        if isinstance(v, str):
            v = v.split('#', 1)[0].strip()
        return int(v)

    UPLOAD_FOLDER: str = os.path.join(BASE_DIR, 'app/static/uploads')

    # Internationalization
    LANGUAGES: list = ['en']
    BABEL_DEFAULT_LOCALE: str = 'en'
    BABEL_DEFAULT_TIMEZONE: str = 'UTC'
    BABEL_TRANSLATION_DIRECTORIES: str = os.path.join(BASE_DIR, 'translations')

    # Plans. Years of public hosting per paid plan; null means the plan never expires.
    PLAN_DURATION_YEARS: dict = {'ESSENCE': 5, 'LEGACY': 10, 'ETERNAL': None}
    # Prices in the smallest currency unit (kobo / cents)
    PLAN_PRICES: dict = {'ESSENCE': 25000, 'LEGACY': 75000, 'ETERNAL': 150000}
    PLAN_CURRENCY: str = 'ZAR'

    # Paystack payment gateway
    PAYSTACK_SECRET_KEY: Optional[str] = None
    PAYSTACK_PUBLIC_KEY: Optional[str] = None
    PAYSTACK_BASE_URL: str = 'https://api.paystack.co'
    PAYSTACK_TIMEOUT: float = 10.0

    # Generative AI drafting (Google Gemini REST API)
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = 'gemini-1.5-flash-latest'
    GEMINI_BASE_URL: str = 'https://generativelanguage.googleapis.com/v1beta'
    AI_TIMEOUT: float = 30.0

    # Application environment: development | staging | production
    APP_ENV: str = os.getenv('FLASK_ENV', 'development')

    # Logging
    LOG_LEVEL: str = 'INFO'
    AUDIT_LOG_DIR: str = os.path.join(BASE_DIR, 'logs')

    # Rate Limiter Storage Configuration
    # Development: in-memory store. Production: set RATELIMIT_STORAGE_URL (e.g. redis://...)
    RATELIMIT_STORAGE_URL: Optional[str] = os.getenv('RATELIMIT_STORAGE_URL', None)
    RATELIMIT_ENABLED: bool = True

    # CSRF protection for form posts (JSON payment callback is exempt)
    WTF_CSRF_ENABLED: bool = True

    # Session and cookie security. `SESSION_COOKIE_SECURE` is promoted to True
    # automatically when APP_ENV is production.
    SESSION_COOKIE_HTTPONLY: bool = True
    SESSION_COOKIE_SECURE: bool = False
    SESSION_COOKIE_SAMESITE: str = 'Lax'
    PERMANENT_SESSION_LIFETIME: int = 3600 * 24

    @model_validator(mode='after')
    def adjust_for_environment(self) -> 'Config':
        """Never send 'Secure' cookies outside production; default to it in production."""
        env = (self.APP_ENV or 'development').lower()
        if env != 'production':
            self.SESSION_COOKIE_SECURE = False
        elif 'SESSION_COOKIE_SECURE' not in os.environ:
            self.SESSION_COOKIE_SECURE = True
        return self

    class Config:
        env_file = '.env'
        env_file_encoding = 'utf-8'
        case_sensitive = False
        extra = 'ignore'  # Ignore extra fields from .env
