"""
Testing environment configuration module.
"""
import os
import tempfile

from library_api.config.base_config import BaseConfig


class TestingConfig(BaseConfig):
    """Testing environment configuration class."""

    TESTING = True
    DEBUG = True

    # In-memory database unless a real test database is supplied
    DB_NAME = "library_test_db"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URI", "sqlite:///:memory:")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT settings for testing
    JWT_ACCESS_TOKEN_EXPIRES = 300  # 5 minutes
    JWT_REFRESH_TOKEN_EXPIRES = 1800  # 30 minutes
    JWT_BLACKLIST_ENABLED = True
    # Use a predictable key for testing
    JWT_SECRET_KEY = "test-jwt-secret-key-for-testing-only"

    # Predictable Stripe secrets; the provider itself is replaced in tests
    STRIPE_SECRET_KEY = "sk_test_library"
    STRIPE_WEBHOOK_SECRET = "whsec_test_library"

    UPLOAD_FOLDER = os.path.join(tempfile.gettempdir(), "library_api_test_uploads")

    # Keep email in log-only mode
    SMTP_HOST = None
    ALLOW_SUPERUSER_REGISTRATION = True
