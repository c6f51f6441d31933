"""Shared fixtures: an in-memory app, a recording mailer and account helpers."""
import re

import pytest

from centsible import create_app
from centsible.config import Config
from centsible.errors import DeliveryFailed
from centsible.extensions import services
from centsible.mailer import Mailer
from centsible.models import User, db

TEST_ENV = {
    'DATABASE_URL': 'sqlite://',
    'JWT_SECRET_KEY': 'test-secret-key-that-is-long-enough-for-hs256',
    'RATE_LIMIT_ENABLED': 'false',
    'PASSWORD_HASH_METHOD': 'pbkdf2:sha256:1000',
}

OTP_RE = re.compile(r'>(\d{6})<')


class RecordingMailer(Mailer):
    """Keeps outgoing mail in memory instead of talking SMTP."""

    def __init__(self):
        super().__init__(host='localhost', port=25, sender='noreply@centsible.app')
        self.outbox = []
        self.fail = False

    def send(self, to_email, subject, html):
        if self.fail:
            raise DeliveryFailed()
        self.outbox.append({'to': to_email, 'subject': subject, 'html': html})

    def last_code(self, to_email):
        for message in reversed(self.outbox):
            if message['to'] == to_email:
                return OTP_RE.search(message['html']).group(1)
        return None


def make_config(**overrides):
    env = dict(TEST_ENV)
    env.update(overrides)
    return Config(environ=env)


@pytest.fixture()
def mailer():
    return RecordingMailer()


@pytest.fixture()
def app(mailer):
    app = create_app(make_config(), mailer=mailer)
    app.config.update(TESTING=True)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture()
def accounts(app):
    return services().accounts


@pytest.fixture()
def ledger(app):
    return services().ledger


def fetch_user(email):
    db.session.expire_all()
    return User.query.filter_by(email=email).first()


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture()
def signup(client, mailer):
    """Register and verify an account over HTTP, returning its token."""

    def _signup(email='alice@x.com', name='Alice', password='secret1'):
        response = client.post('/auth/register', json={'email': email, 'name': name, 'password': password})
        assert response.status_code == 201, response.get_json()
        response = client.post('/auth/verify', json={'email': email, 'code': mailer.last_code(email)})
        assert response.status_code == 200, response.get_json()
        return response.get_json()['token']

    return _signup
