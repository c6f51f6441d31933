from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import ExpiredSignatureError, PyJWTError

from .errors import InvalidToken, TokenExpired


class TokenService:
    """Signed, stateless session tokens.

    Needs an application context: the signing key and default lifetime come
    from ``JWT_SECRET_KEY`` and ``JWT_ACCESS_TOKEN_EXPIRES``.

    Protected routes do not call ``verify``. They go through
    ``guard.verified_required``, whose ``verify_jwt_in_request`` decodes with
    the same JWTManager settings, so a token ``issue`` returns is accepted
    there exactly when ``verify`` accepts it. ``verify`` is the check for code
    running outside a request.
    """

    def issue(self, identity_id, expires_delta=None):
        if expires_delta is None:
            return create_access_token(identity=str(identity_id))
        return create_access_token(identity=str(identity_id), expires_delta=expires_delta)

    def verify(self, token):
        try:
            claims = decode_token(token)
        except ExpiredSignatureError as exc:
            raise TokenExpired('Token expired') from exc
        except (PyJWTError, JWTExtendedException) as exc:
            raise InvalidToken('Invalid token') from exc

        try:
            return int(claims['sub'])
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidToken('Invalid token subject') from exc
