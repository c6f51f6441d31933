from dataclasses import dataclass

from flask import current_app

from .accounts import AccountService
from .ledger import LedgerStore
from .mailer import Mailer
from .ratelimit import TokenBucketLimiter
from .tokens import TokenService

EXTENSION_KEY = 'centsible'


@dataclass
class Services:
    accounts: AccountService
    ledger: LedgerStore
    tokens: TokenService
    mailer: Mailer
    limiter: TokenBucketLimiter


def services():
    """The service handles built by ``create_app`` for the current app."""
    return current_app.extensions[EXTENSION_KEY]
