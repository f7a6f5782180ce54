"""
Library Management API Application Factory.
"""
import importlib
import os

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_restx import Api
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

# Initialize extensions
db = SQLAlchemy()
jwt = JWTManager()
migrate = Migrate()

CONFIG_MAPPING = {
    'development': ('library_api.config.development_config', 'DevelopmentConfig'),
    'testing': ('library_api.config.testing_config', 'TestingConfig'),
    'production': ('library_api.config.production_config', 'ProductionConfig'),
}


def _load_config(app, config_name):
    if config_name not in CONFIG_MAPPING:
        app.logger.warning("Unknown configuration %r, falling back to development", config_name)
        config_name = 'development'
    module_path, class_name = CONFIG_MAPPING[config_name]
    config_class = getattr(importlib.import_module(module_path), class_name)
    app.config.from_object(config_class)
    return config_name


def _build_services(app, payment_provider=None):
    """
    Wire repositories, the payment provider and the services into app.extensions.
    """
    from library_api.models import Book, Manager, Student, SubscriptionInstance, SubscriptionPlan, User
    from library_api.repositories import Repository
    from library_api.services.accounts import AccountService, manager_service, student_service
    from library_api.services.email import EmailService
    from library_api.services.payments import StripeProvider, configure_stripe
    from library_api.services.storage import LocalStorage
    from library_api.services.subscriptions import PlanService, SubscriptionService

    config = app.config
    if payment_provider is None:
        configure_stripe(config['REQUEST_TIMEOUT_SECONDS'])
        payment_provider = StripeProvider(
            api_key=config.get('STRIPE_SECRET_KEY'),
            webhook_secret=config.get('STRIPE_WEBHOOK_SECRET'),
            tolerance=config.get('STRIPE_WEBHOOK_TOLERANCE', 300),
        )

    users = Repository(db.session, User)
    plans = Repository(db.session, SubscriptionPlan)
    email_service = EmailService.from_config(config)
    accounts = AccountService(users, email_service)

    app.extensions.update({
        'payment_provider': payment_provider,
        'email': email_service,
        'storage': LocalStorage(config['UPLOAD_FOLDER']),
        'accounts': accounts,
        'students': student_service(accounts, Repository(db.session, Student)),
        'managers': manager_service(accounts, Repository(db.session, Manager)),
        'books': Repository(db.session, Book),
        'plans': PlanService(plans, payment_provider, currency=config.get('PAYMENT_CURRENCY', 'usd')),
        'subscriptions': SubscriptionService(
            instances=Repository(db.session, SubscriptionInstance),
            users=users,
            plans=plans,
            provider=payment_provider,
            success_url=config['CHECKOUT_SUCCESS_URL'],
            cancel_url=config['CHECKOUT_CANCEL_URL'],
        ),
    })


def create_app(config_name=None, payment_provider=None):
    """
    Application Factory Pattern implementation.

    Args:
        config_name: Configuration name to use (development, testing, production).
        payment_provider: Optional payment provider replacing the Stripe client.

    Returns:
        Flask application instance.
    """
    # Load environment variables
    load_dotenv()

    app = Flask(__name__)

    app_config = _load_config(app, config_name or os.getenv("FLASK_ENV", "development"))
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))
    app.logger.info("Using configuration: %s", app_config)

    # SQLite pools have no checkout timeout
    if not app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite'):
        app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', {
            'pool_timeout': app.config['REQUEST_TIMEOUT_SECONDS'],
            'pool_pre_ping': True,
        })

    # Initialize extensions with app
    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)

    from library_api.errors import LibraryError
    from library_api.models import TokenBlacklist, User

    @jwt.user_lookup_loader
    def load_user(jwt_header, jwt_payload):
        return db.session.get(User, int(jwt_payload['sub']))

    # Configure JWT token blacklist if enabled
    if app.config.get('JWT_BLACKLIST_ENABLED'):
        @jwt.token_in_blocklist_loader
        def check_if_token_revoked(jwt_header, jwt_payload):
            return TokenBlacklist.is_token_revoked(jwt_payload["jti"])

        @jwt.revoked_token_loader
        def revoked_token_callback(jwt_header, jwt_payload):
            return jsonify({'message': 'Token has been revoked'}), 401

    _build_services(app, payment_provider)

    # Create API with additional configuration for Swagger UI documentation
    api = Api(
        app,
        version=app.config.get("API_VERSION", "1.0"),
        title=app.config.get("API_TITLE", "Library Management API"),
        description=app.config.get("API_DESCRIPTION"),
        doc="/api/docs",
        authorizations={
            'Bearer Auth': {
                'type': 'apiKey',
                'in': 'header',
                'name': 'Authorization',
                'description': 'Enter: **Bearer &lt;JWT&gt;**'
            },
        },
        security='Bearer Auth'
    )

    @api.errorhandler(LibraryError)
    def handle_library_error(error):
        """Render application errors as {"message": ...} with their status code."""
        return {'message': error.message}, error.code

    # Errors re-raised by flask-restx under PROPAGATE_EXCEPTIONS land here
    @app.errorhandler(LibraryError)
    def handle_propagated_library_error(error):
        return jsonify({'message': error.message}), error.code

    from library_api.api.auth import auth_ns
    from library_api.api.books import book_ns
    from library_api.api.managers import manager_ns
    from library_api.api.students import student_ns
    from library_api.api.subscriptions import subscription_ns
    from library_api.api.webhooks import webhook_ns

    prefix = app.config.get('API_PREFIX', '/api')
    api.add_namespace(auth_ns, path=f'{prefix}/auth')
    api.add_namespace(student_ns, path=f'{prefix}/students')
    api.add_namespace(manager_ns, path=f'{prefix}/managers')
    api.add_namespace(book_ns, path=f'{prefix}/books')
    api.add_namespace(subscription_ns, path=f'{prefix}/subscriptions')
    api.add_namespace(webhook_ns)

    @app.route('/health')
    def health_check():
        """Health check endpoint to verify the application is running."""
        return jsonify({
            'status': 'healthy',
            'environment': app_config,
            'database_connected': _check_db_connection(),
        })

    def _check_db_connection():
        try:
            db.session.execute(text('SELECT 1'))
            return True
        except SQLAlchemyError as exc:
            app.logger.error("Database connection error: %s", exc)
            return False

    @app.shell_context_processor
    def shell_context():
        return {"app": app, "db": db}

    return app
