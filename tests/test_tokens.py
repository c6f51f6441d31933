from datetime import datetime, timedelta, timezone

import jwt
import pytest

from centsible.errors import InvalidToken, TokenExpired
from centsible.tokens import TokenService

from conftest import bearer


@pytest.fixture()
def tokens(app):
    return TokenService()


def _forge(claims, key):
    return jwt.encode(claims, key, algorithm='HS256')


def _exp(minutes=5):
    return datetime.now(timezone.utc) + timedelta(minutes=minutes)


def test_issue_then_verify_returns_identity(tokens):
    token = tokens.issue(42)
    assert tokens.verify(token) == 42


def test_default_lifetime_is_seven_days(app, tokens):
    claims = jwt.decode(tokens.issue(1), app.config['JWT_SECRET_KEY'], algorithms=['HS256'])
    lifetime = claims['exp'] - claims['iat']
    assert lifetime == int(timedelta(days=7).total_seconds())


def test_lapsed_token_is_expired(tokens):
    token = tokens.issue(1, expires_delta=timedelta(seconds=-1))
    with pytest.raises(TokenExpired):
        tokens.verify(token)


def test_wrong_signature_is_invalid(tokens):
    token = _forge({'sub': '1', 'exp': _exp()}, 'some-other-key-that-is-also-long-enough')
    with pytest.raises(InvalidToken) as info:
        tokens.verify(token)
    assert not isinstance(info.value, TokenExpired)


@pytest.mark.parametrize('token', ['', 'not-a-token', 'a.b.c'])
def test_malformed_token_is_invalid(tokens, token):
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_non_numeric_subject_is_invalid(app, tokens):
    token = _forge({'sub': 'alice', 'exp': _exp()}, app.config['JWT_SECRET_KEY'])
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_guard_agrees_with_verify(client, signup, tokens):
    token = signup('alice@x.com')
    user_id = tokens.verify(token)
    me = client.get('/auth/me', headers=bearer(token)).get_json()['user']
    assert me['id'] == user_id

    fresh = tokens.issue(user_id)
    assert client.get('/auth/me', headers=bearer(fresh)).status_code == 200

    lapsed = tokens.issue(user_id, expires_delta=timedelta(seconds=-1))
    with pytest.raises(TokenExpired):
        tokens.verify(lapsed)
    assert client.get('/auth/me', headers=bearer(lapsed)).status_code == 401
