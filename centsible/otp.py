"""One-time codes for email verification and password reset.

Each user has two independent slots, each a (code, expiry) column pair.
Issuing into one slot never touches the other; re-issuing overwrites.
"""
import hmac
import secrets
from datetime import timedelta

from .errors import Expired, InvalidCode
from .models import utcnow

OTP_LENGTH = 6

VERIFICATION = 'verification'
RESET = 'reset'

_SLOTS = {
    VERIFICATION: ('otp', 'otp_expires'),
    RESET: ('reset_otp', 'reset_otp_expires'),
}


def generate_otp():
    return ''.join(secrets.choice('0123456789') for _ in range(OTP_LENGTH))


class OtpIssuer:

    def __init__(self, ttl_minutes=10):
        self.ttl = timedelta(minutes=ttl_minutes)

    def issue(self, user, slot, now=None):
        code_attr, expiry_attr = _SLOTS[slot]
        code = generate_otp()
        setattr(user, code_attr, code)
        setattr(user, expiry_attr, (now or utcnow()) + self.ttl)
        return code

    def check(self, user, slot, code, now=None):
        """Raise InvalidCode or Expired unless ``code`` is live for ``slot``."""
        code_attr, expiry_attr = _SLOTS[slot]
        stored = getattr(user, code_attr)
        expires = getattr(user, expiry_attr)

        candidate = str(code or '').strip().encode()
        if not stored or not candidate or not hmac.compare_digest(stored.encode(), candidate):
            raise InvalidCode()
        if expires is None or (now or utcnow()) > expires:
            raise Expired()

    def clear(self, user, slot):
        code_attr, expiry_attr = _SLOTS[slot]
        setattr(user, code_attr, None)
        setattr(user, expiry_attr, None)
