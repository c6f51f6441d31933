"""Error taxonomy and the JSON error envelope.

Every failure leaves the API as ``{"success": false, "message": ...}`` with
the status code carried by the exception class.
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from .models import db

logger = logging.getLogger(__name__)


class CentsibleError(Exception):
    status_code = 500
    message = 'Server error'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self):
        return {'success': False, 'message': self.message}


class ValidationError(CentsibleError):
    status_code = 400
    message = 'Invalid input'

    def __init__(self, message=None, errors=None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self):
        body = super().to_dict()
        if self.errors:
            body['errors'] = self.errors
        return body


class WeakSecret(ValidationError):
    message = 'Password is too short'


class Conflict(CentsibleError):
    status_code = 400
    message = 'Conflict'


class InvalidCode(CentsibleError):
    status_code = 400
    message = 'Invalid OTP'


class Expired(CentsibleError):
    status_code = 400
    message = 'OTP expired'


class InvalidCredentials(CentsibleError):
    status_code = 401
    message = 'Invalid credentials'


class Unverified(CentsibleError):
    status_code = 401
    message = 'Please verify your email first'


class Unauthorized(CentsibleError):
    status_code = 401
    message = 'Not authorized'


class NotFound(CentsibleError):
    status_code = 404
    message = 'Not found'


class RateLimited(CentsibleError):
    status_code = 429
    message = 'Too many requests'

    def __init__(self, retry_after, message=None):
        super().__init__(message)
        self.retry_after = retry_after


class DeliveryFailed(CentsibleError):
    status_code = 502
    message = 'Email could not be sent'


class ServerError(CentsibleError):
    status_code = 500
    message = 'Server error'


# Raised by the token service, mapped to Unauthorized by the access guard.
class InvalidToken(Exception):
    pass


class TokenExpired(InvalidToken):
    pass


def register_error_handlers(app):

    @app.errorhandler(CentsibleError)
    def handle_app_error(error):
        response = jsonify(error.to_dict())
        response.status_code = error.status_code
        if isinstance(error, RateLimited):
            response.headers['Retry-After'] = str(error.retry_after)
        return response

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        response = jsonify({'success': False, 'message': error.description or error.name})
        response.status_code = error.code or 500
        return response

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        db.session.rollback()
        logger.exception('Unhandled error: %s', error)
        return handle_app_error(ServerError())
