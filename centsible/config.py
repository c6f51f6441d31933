import os
import re
from datetime import timedelta


DEFAULT_CATEGORIES = [
    'Salary', 'Freelance', 'Investment', 'Rent', 'Food', 'Transport',
    'Entertainment', 'Utilities', 'Shopping', 'Health', 'Education', 'Other',
]

_DURATION_RE = re.compile(r'^(\d+)\s*([smhd]?)$')
_DURATION_UNITS = {'': 'seconds', 's': 'seconds', 'm': 'minutes', 'h': 'hours', 'd': 'days'}


class ConfigError(RuntimeError):
    pass


def parse_duration(value):
    """Parse ``3600``, ``30m``, ``12h`` or ``7d`` into a timedelta."""
    match = _DURATION_RE.match(str(value).strip().lower())
    if not match:
        raise ConfigError(f'Invalid duration: {value!r}')
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def _bool(value, default=False):
    if value is None:
        return default
    return value.strip().lower() in {'1', 'true', 'yes', 'on'}


def _list(value):
    return [item.strip() for item in (value or '').split(',') if item.strip()]


class Config:
    """Process-wide settings, read once from the environment at startup."""

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_TOKEN_LOCATION = ['headers']
    ENTRY_PAGE_SIZE = 100

    def __init__(self, environ=None):
        env = os.environ if environ is None else environ

        # Render-style URLs use 'postgres://', SQLAlchemy 1.4+ wants 'postgresql://'.
        database_url = env.get('DATABASE_URL', '')
        if database_url.startswith('postgres://'):
            database_url = database_url.replace('postgres://', 'postgresql://', 1)
        self.SQLALCHEMY_DATABASE_URI = database_url

        self.JWT_SECRET_KEY = env.get('JWT_SECRET_KEY', '')
        self.JWT_ACCESS_TOKEN_EXPIRES = parse_duration(env.get('JWT_EXPIRE', '7d'))

        self.PORT = int(env.get('PORT', 5000))
        self.CORS_ORIGINS = _list(env.get('CORS_ORIGINS', '*'))

        self.MAIL_HOST = env.get('MAIL_HOST', 'smtp.gmail.com')
        self.MAIL_PORT = int(env.get('MAIL_PORT', 465))
        self.MAIL_USERNAME = env.get('MAIL_USERNAME', '')
        self.MAIL_PASSWORD = env.get('MAIL_PASSWORD', '')
        self.MAIL_FROM = env.get('MAIL_FROM') or self.MAIL_USERNAME
        self.MAIL_USE_SSL = _bool(env.get('MAIL_USE_SSL'), default=True)
        self.MAIL_SUPPRESS_SEND = _bool(env.get('MAIL_SUPPRESS_SEND'))

        self.OTP_TTL_MINUTES = int(env.get('OTP_TTL_MINUTES', 10))
        self.PASSWORD_MIN_LENGTH = int(env.get('PASSWORD_MIN_LENGTH', 6))
        self.PASSWORD_HASH_METHOD = env.get('PASSWORD_HASH_METHOD', 'scrypt')

        # Empty means categories are free text.
        self.ENTRY_CATEGORIES = _list(env.get('ENTRY_CATEGORIES'))

        self.RATE_LIMIT_ENABLED = _bool(env.get('RATE_LIMIT_ENABLED'), default=True)
        self.RATE_LIMIT_CAPACITY = int(env.get('RATE_LIMIT_CAPACITY', 60))
        self.RATE_LIMIT_REFILL_RATE = float(env.get('RATE_LIMIT_REFILL_RATE', 1.0))

        self.LOG_LEVEL = env.get('LOG_LEVEL', 'INFO').upper()

    def validate(self):
        missing = [
            name for name, value in (
                ('DATABASE_URL', self.SQLALCHEMY_DATABASE_URI),
                ('JWT_SECRET_KEY', self.JWT_SECRET_KEY),
            )
            if not value
        ]
        if missing:
            raise ConfigError(f"Missing required configuration: {', '.join(missing)}")
        return self
