import os


def get_database_uri():
    """
    Resolve the database URI from the environment.
    DATABASE_URL wins; otherwise the MySQL connection is assembled from MYSQL_* variables.
    """
    database_url = os.environ.get('DATABASE_URL')
    if database_url:
        return database_url

    user = os.environ.get('MYSQL_USER', 'admin')
    password = os.environ.get('MYSQL_PASSWORD', 'admin123')
    host = os.environ.get('DATABASE_HOST', 'localhost')
    port = os.environ.get('DATABASE_PORT', '3306')
    database = os.environ.get('MYSQL_DATABASE', 'inventory_fulfillment_db')
    return f"mysql+pymysql://{user}:{password}@{host}:{port}/{database}"


class Config:
    """Base configuration"""

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database - resolved by the app factory when left unset
    SQLALCHEMY_DATABASE_URI = None
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Unit of work retries (optimistic concurrency / lock contention)
    TRANSACTION_MAX_ATTEMPTS = int(os.environ.get('TRANSACTION_MAX_ATTEMPTS', 3))
    TRANSACTION_RETRY_BACKOFF_MS = int(os.environ.get('TRANSACTION_RETRY_BACKOFF_MS', 25))

    # Stock alerts
    ALERT_SUGGESTION_BUFFER = float(os.environ.get('ALERT_SUGGESTION_BUFFER', 0.2))

    # Pagination
    DEFAULT_PAGE_SIZE = int(os.environ.get('DEFAULT_PAGE_SIZE', 20))
    MAX_PAGE_SIZE = int(os.environ.get('MAX_PAGE_SIZE', 100))

    # CORS
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = 'DEBUG'


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    # Use in-memory SQLite for testing
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    TRANSACTION_RETRY_BACKOFF_MS = 0


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
