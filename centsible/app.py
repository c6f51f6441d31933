import logging

import click
from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS

from .accounts import AccountService
from .auth import auth_bp
from .config import DEFAULT_CATEGORIES, Config
from .entries import entries_bp
from .errors import register_error_handlers
from .extensions import EXTENSION_KEY, Services
from .guard import init_guard
from .ledger import LedgerStore
from .mailer import Mailer
from .models import db
from .otp import OtpIssuer
from .ratelimit import TokenBucketLimiter, init_rate_limit
from .tokens import TokenService

logger = logging.getLogger(__name__)


def create_app(config=None, mailer=None):
    """Build the API. ``config`` defaults to the process environment."""
    if config is None:
        load_dotenv()
        config = Config()
    config.validate()

    app = Flask(__name__)
    app.config.from_object(config)

    CORS(app, resources={r'/*': {'origins': app.config['CORS_ORIGINS']}})
    db.init_app(app)
    init_guard(app)
    register_error_handlers(app)

    tokens = TokenService()
    limiter = TokenBucketLimiter(
        capacity=app.config['RATE_LIMIT_CAPACITY'],
        refill_rate=app.config['RATE_LIMIT_REFILL_RATE'],
    )
    mailer = mailer or Mailer.from_config(app.config)
    app.extensions[EXTENSION_KEY] = Services(
        accounts=AccountService(
            db,
            OtpIssuer(ttl_minutes=app.config['OTP_TTL_MINUTES']),
            tokens,
            mailer,
            password_min_length=app.config['PASSWORD_MIN_LENGTH'],
            hash_method=app.config['PASSWORD_HASH_METHOD'],
        ),
        ledger=LedgerStore(
            db,
            categories=app.config['ENTRY_CATEGORIES'],
            page_size=app.config['ENTRY_PAGE_SIZE'],
        ),
        tokens=tokens,
        mailer=mailer,
        limiter=limiter,
    )
    init_rate_limit(app, limiter)

    app.register_blueprint(auth_bp)
    app.register_blueprint(entries_bp)

    @app.route('/categories', methods=['GET'])
    def categories():
        configured = app.config['ENTRY_CATEGORIES']
        return jsonify({
            'success': True,
            'categories': configured or DEFAULT_CATEGORIES,
            'restricted': bool(configured),
        })

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok', 'app': 'Centsible'})

    @app.cli.command('init-db')
    def init_db():
        """Create the database tables."""
        db.create_all()
        click.echo('Database initialized.')

    return app


def main():
    load_dotenv()
    config = Config()
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    app = create_app(config)
    with app.app_context():
        db.create_all()
    logger.info('Starting Centsible on port %s', config.PORT)
    app.run(host='0.0.0.0', port=config.PORT)
