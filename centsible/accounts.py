"""Registration, email verification, login and password reset."""
import logging

from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import (
    Conflict,
    DeliveryFailed,
    InvalidCredentials,
    NotFound,
    Unverified,
    WeakSecret,
)
from .models import User
from .otp import RESET, VERIFICATION

logger = logging.getLogger(__name__)


class AccountService:

    def __init__(self, db, otp_issuer, tokens, mailer, password_min_length=6,
                 hash_method='scrypt'):
        self.db = db
        self.otp = otp_issuer
        self.tokens = tokens
        self.mailer = mailer
        self.password_min_length = password_min_length
        self.hash_method = hash_method
        # Checked against for unknown emails so login timing doesn't reveal them.
        self._dummy_hash = generate_password_hash('not-a-real-password', method=hash_method)

    # ──────────────── Helpers ────────────────

    def find(self, email):
        return User.query.filter_by(email=email.strip().lower()).first()

    def _require(self, email):
        user = self.find(email)
        if not user:
            raise NotFound('User not found')
        return user

    def _hash(self, password):
        if len(password) < self.password_min_length:
            raise WeakSecret(f'Password must be at least {self.password_min_length} characters')
        return generate_password_hash(password, method=self.hash_method)

    def _send_otp(self, user, code, purpose):
        self.mailer.send_otp(user.email, code, purpose, int(self.otp.ttl.total_seconds() // 60))

    # ──────────────── Registration & verification ────────────────

    def register(self, email, name, password):
        email = email.strip().lower()
        if self.find(email):
            raise Conflict('Email already registered')

        user = User(email=email, name=name, password_hash=self._hash(password))
        code = self.otp.issue(user, VERIFICATION)
        self.db.session.add(user)
        try:
            self.db.session.commit()
        except IntegrityError as exc:
            self.db.session.rollback()
            raise Conflict('Email already registered') from exc
        logger.info('Registered user %s', user.id)

        try:
            self._send_otp(user, code, VERIFICATION)
        except DeliveryFailed:
            # Registration stands; the code can be re-sent.
            logger.warning('Verification email to user %s not delivered', user.id)
        return user

    def resend_otp(self, email):
        user = self._require(email)
        if user.is_verified:
            raise Conflict('Email already verified')

        code = self.otp.issue(user, VERIFICATION)
        self.db.session.commit()
        self._send_otp(user, code, VERIFICATION)

    def verify_email(self, email, code):
        user = self._require(email)
        if user.is_verified:
            raise Conflict('Email already verified')

        self.otp.check(user, VERIFICATION, code)
        user.is_verified = True
        self.otp.clear(user, VERIFICATION)
        self.db.session.commit()
        logger.info('Verified user %s', user.id)
        return self.tokens.issue(user.id), user

    # ──────────────── Login ────────────────

    def authenticate(self, email, password):
        user = self.find(email)
        if not user:
            check_password_hash(self._dummy_hash, password)
            raise InvalidCredentials()
        if not check_password_hash(user.password_hash, password):
            raise InvalidCredentials()
        if not user.is_verified:
            raise Unverified()
        return self.tokens.issue(user.id), user

    # ──────────────── Password reset ────────────────

    def request_password_reset(self, email):
        user = self._require(email)
        code = self.otp.issue(user, RESET)
        # Committed before sending: a failed delivery leaves the code issued.
        self.db.session.commit()
        self._send_otp(user, code, RESET)
        logger.info('Password reset requested for user %s', user.id)

    def reset_password(self, email, code, new_password):
        new_hash = self._hash(new_password)
        user = self._require(email)
        self.otp.check(user, RESET, code)
        user.password_hash = new_hash
        self.otp.clear(user, RESET)
        self.db.session.commit()
        logger.info('Password reset for user %s', user.id)
