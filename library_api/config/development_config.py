"""
Development environment configuration module.
"""
import os

from library_api.config.base_config import BaseConfig


class DevelopmentConfig(BaseConfig):
    """Development environment configuration class."""

    DEBUG = True
    SQLALCHEMY_ECHO = True  # Log SQL queries
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

    DB_NAME = "library_dev_db"
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "SQLALCHEMY_DATABASE_URI", "mysql+pymysql://user:password@db:3306/library_dev_db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT settings for development
    JWT_ACCESS_TOKEN_EXPIRES = 86400  # 24 hours for easier development
    JWT_REFRESH_TOKEN_EXPIRES = 604800  # 7 days
    JWT_BLACKLIST_ENABLED = True
