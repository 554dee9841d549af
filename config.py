"""Configuration module for Flask application."""
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
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Session Configuration
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'stock')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'stock')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'stock')

        DATABASE_URL = (
            f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Stock
    DEFAULT_MIN_STOCK = int(os.getenv('DEFAULT_MIN_STOCK', '5'))

    # Point of sale
    # Unset by default: sales without a logged-in user are rejected with 401.
    POS_DEFAULT_USER_ID = int(os.getenv('POS_DEFAULT_USER_ID')) if os.getenv('POS_DEFAULT_USER_ID') else None
    TRANSACTION_CODE_PREFIX = os.getenv('TRANSACTION_CODE_PREFIX', 'TRX')
    SALE_RETRY_ATTEMPTS = int(os.getenv('SALE_RETRY_ATTEMPTS', '3'))

    # Pagination
    TRANSACTIONS_PAGE_SIZE = int(os.getenv('TRANSACTIONS_PAGE_SIZE', '10'))
    MOVEMENTS_PAGE_SIZE = int(os.getenv('MOVEMENTS_PAGE_SIZE', '20'))

    # CORS for the single-page frontend
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    # Error tracking
    SENTRY_DSN = os.getenv('SENTRY_DSN')
