import os
import re
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()

_DURATION_UNITS = {'s': 'seconds', 'm': 'minutes', 'h': 'hours', 'd': 'days'}


def parse_duration(value, default=timedelta(days=7)):
    """
    Parse an expiry string such as "7d", "12h", "30m" or "3600" (seconds).

    Returns `default` when the value is empty or not understood.
    """
    if not value:
        return default
    match = re.fullmatch(r'\s*(\d+)\s*([smhd]?)\s*', str(value).lower())
    if not match:
        return default
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS.get(unit or 's'): int(amount)})


def _split_csv(value):
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    ENV_NAME = os.getenv('FLASK_ENV', 'production')

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL')

    # Fix for hosts that still hand out postgres:// URLs
    if SQLALCHEMY_DATABASE_URI and SQLALCHEMY_DATABASE_URI.startswith('postgres://'):
        SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv('SECRET_KEY')

    # JWT - JWT_SECRET is accepted for compatibility with older deployments
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY') or os.getenv('JWT_SECRET')
    JWT_ACCESS_TOKEN_EXPIRES = parse_duration(os.getenv('JWT_EXPIRES_IN', '7d'))
    JWT_TOKEN_LOCATION = ['headers']

    # Password hashing work factor
    BCRYPT_ROUNDS = int(os.getenv('BCRYPT_ROUNDS', '12'))

    # Uploads
    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER') or os.getenv('UPLOAD_PATH', './uploads')
    MAX_FILE_SIZE = int(os.getenv('MAX_FILE_SIZE', '10485760'))  # 10MB
    MAX_CONTENT_LENGTH = MAX_FILE_SIZE

    # Rate limiting (per source address, applied to /api/ paths)
    RATE_LIMIT_ENABLED = os.getenv('RATE_LIMIT_ENABLED', '1') not in ('0', 'false', 'False')
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv('RATE_LIMIT_WINDOW_MS', '900000')) / 1000
    RATE_LIMIT_MAX_REQUESTS = int(os.getenv('RATE_LIMIT_MAX_REQUESTS', '100'))

    CORS_ORIGINS = _split_csv(os.getenv(
        'CORS_ORIGINS',
        'http://localhost:3000,http://localhost:5173,http://localhost:8080'
    ))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Redis / Celery
    REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', REDIS_URL)
    CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', REDIS_URL)
    CELERY_TASK_ALWAYS_EAGER = False


class TestingConfig(Config):
    ENV_NAME = 'testing'
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SECRET_KEY = 'testing-secret-key'
    JWT_SECRET_KEY = 'testing-jwt-secret-key-with-enough-length'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    BCRYPT_ROUNDS = 4
    RATE_LIMIT_ENABLED = False
    CELERY_BROKER_URL = 'memory://'
    CELERY_RESULT_BACKEND = 'cache+memory://'
    CELERY_TASK_ALWAYS_EAGER = True


def validate_config(config):
    """
    Fail fast when required settings are missing or unsafe.

    Raises:
        RuntimeError: listing every problem found
    """
    problems = []
    for key, env_name in (('SQLALCHEMY_DATABASE_URI', 'DATABASE_URL'), ('JWT_SECRET_KEY', 'JWT_SECRET_KEY')):
        if not config.get(key):
            problems.append(f"Missing required environment variable: {env_name}")

    secret = config.get('JWT_SECRET_KEY')
    if secret and len(secret) < 32:
        problems.append("JWT_SECRET_KEY must be at least 32 characters long")

    if problems:
        raise RuntimeError('; '.join(problems))
