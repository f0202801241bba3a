import os
from datetime import timedelta


def _database_url():
    url = os.environ.get('DATABASE_URL')
    # Convert Heroku-style postgres:// to postgresql://
    if url and url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    # Base Security
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-key-change-this'

    # Token Configuration
    JWT_SECRET = os.environ.get('JWT_SECRET') or SECRET_KEY
    JWT_EXPIRY_DAYS = int(os.environ.get('JWT_EXPIRY_DAYS', 7))
    SUPER_ADMIN_EMAIL = os.environ.get('SUPER_ADMIN_EMAIL', 'admin@sportemergence.com')

    # Database Configuration
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # PostgreSQL connection pool settings
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': int(os.environ.get('DB_POOL_SIZE', 5)),
        'pool_timeout': int(os.environ.get('DB_POOL_TIMEOUT', 30)),
        'pool_recycle': int(os.environ.get('DB_POOL_RECYCLE', 1800)),
        'pool_pre_ping': True,
        'max_overflow': int(os.environ.get('DB_MAX_OVERFLOW', 10))
    }

    # Request limits
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024
    UPLOAD_MAX_BYTES = 5 * 1024 * 1024

    # Frontend used in verification links
    APP_URL = os.environ.get('APP_URL', 'http://localhost:5173')
    DEFAULT_CLUB_NAME = 'G1Club'

    # AWS SES Configuration
    AWS_SES_REGION = os.environ.get('AWS_SES_REGION', 'eu-west-3')
    AWS_SES_ACCESS_KEY = os.environ.get('AWS_SES_ACCESS_KEY')
    AWS_SES_SECRET_KEY = os.environ.get('AWS_SES_SECRET_KEY')
    AWS_SES_SENDER = os.environ.get('AWS_SES_SENDER')

    CORS_ORIGINS = []

    @classmethod
    def validate(cls):
        if not cls.SQLALCHEMY_DATABASE_URI:
            raise ValueError("DATABASE_URL environment variable is required")


class DevelopmentConfig(Config):
    DEBUG = True

    # CORS Configuration
    CORS_ORIGINS = [
        'http://localhost:5173',
        'http://127.0.0.1:5173',
        'http://localhost:5000',
        'http://127.0.0.1:5000',
    ]


class ProductionConfig(Config):
    DEBUG = False

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get('CORS_ORIGINS', '').split(',')
        if origin.strip()
    ]


class TestingConfig(Config):
    TESTING = True

    # In-memory SQLite unless a test database is provided
    SQLALCHEMY_DATABASE_URI = os.environ.get('TEST_DATABASE_URL', 'sqlite://')
    SQLALCHEMY_ENGINE_OPTIONS = {}

    JWT_SECRET = 'test-secret'
    SUPER_ADMIN_EMAIL = 'owner@sportclub.test'
    AWS_SES_SENDER = 'no-reply@example.com'
    PERMANENT_SESSION_LIFETIME = timedelta(minutes=5)


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
