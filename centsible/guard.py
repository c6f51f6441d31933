"""Bearer-token access guard for protected routes.

Every way a request can fail here answers the same generic 401, so callers
learn nothing about why a token was rejected.
"""
import logging
from functools import wraps

from flask import jsonify
from flask_jwt_extended import JWTManager, current_user, verify_jwt_in_request

from .errors import Unauthorized
from .models import User, db

logger = logging.getLogger(__name__)

jwt = JWTManager()


def _unauthorized():
    body = Unauthorized().to_dict()
    return jsonify(body), Unauthorized.status_code


def init_guard(app):
    jwt.init_app(app)

    @jwt.user_lookup_loader
    def load_user(_jwt_header, jwt_data):
        try:
            user_id = int(jwt_data['sub'])
        except (KeyError, TypeError, ValueError):
            return None
        return db.session.get(User, user_id)

    @jwt.unauthorized_loader
    def missing_token(reason):
        logger.debug('Rejected request without usable token: %s', reason)
        return _unauthorized()

    @jwt.invalid_token_loader
    def invalid_token(reason):
        logger.debug('Rejected invalid token: %s', reason)
        return _unauthorized()

    @jwt.expired_token_loader
    def expired_token(_jwt_header, _jwt_payload):
        return _unauthorized()

    @jwt.user_lookup_error_loader
    def unknown_user(_jwt_header, jwt_payload):
        logger.debug('Rejected token for missing user %s', jwt_payload.get('sub'))
        return _unauthorized()

    @jwt.token_verification_failed_loader
    def verification_failed(_jwt_header, _jwt_payload):
        return _unauthorized()


def verified_required(fn):
    """Require a valid bearer token belonging to a verified user.

    The user is available to the view as ``flask_jwt_extended.current_user``.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        if not current_user.is_verified:
            raise Unauthorized()
        return fn(*args, **kwargs)
    return wrapper
