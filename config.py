"""Configuration module for the salon POS Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    TESTING = False

    # Session Configuration (Production-safe defaults)
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours

    # Database - Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'salon')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'salon')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'salon')

        DATABASE_URL = (
            f"postgresql://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Business Information (for receipts)
    BUSINESS_NAME = os.getenv('BUSINESS_NAME', 'My Salon')
    BUSINESS_ADDRESS = os.getenv('BUSINESS_ADDRESS', '')
    BUSINESS_PHONE = os.getenv('BUSINESS_PHONE', '')
    CURRENCY_SYMBOL = os.getenv('CURRENCY_SYMBOL', '₹')

    # Sale deletion re-authentication
    # Generate with: flask hash-passphrase
    ADMIN_PASSPHRASE_HASH = os.getenv('ADMIN_PASSPHRASE_HASH')
    DELETE_AUTH_COOLDOWN_SECONDS = int(os.getenv('DELETE_AUTH_COOLDOWN_SECONDS', '300'))  # 5 minutes

    # Per-row retries when the sale store cannot write a sale in one batch
    SALE_WRITE_RETRIES = int(os.getenv('SALE_WRITE_RETRIES', '2'))

    # Redis Cache Configuration (reports)
    REDIS_URL = os.getenv('REDIS_URL', 'redis://redis:6379/0')
    CACHE_ENABLED = os.getenv('CACHE_ENABLED', 'true').lower() == 'true'
    CACHE_DEFAULT_TTL = int(os.getenv('CACHE_DEFAULT_TTL', '60'))  # seconds
    CACHE_REPORTS_TTL = int(os.getenv('CACHE_REPORTS_TTL', '120'))
    CACHE_KEY_PREFIX = os.getenv('CACHE_KEY_PREFIX', 'salon')


class TestConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    WTF_CSRF_ENABLED = False
    CACHE_ENABLED = False
    SALE_WRITE_RETRIES = 0
