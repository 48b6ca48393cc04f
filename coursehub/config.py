"""
Configuration settings for CourseHub
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration"""
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///coursehub.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_CREATE_TABLES = _env_bool('AUTO_CREATE_TABLES', False)

    # File upload settings
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_UPLOAD_SIZE', 10485760))  # 10MB
    ALLOWED_IMPORT_EXTENSIONS = {'xlsx'}

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Redis cache for composed knowledge graphs
    CACHE_ENABLED = _env_bool('CACHE_ENABLED', True)
    REDIS_HOST = os.getenv('REDIS_HOST', 'localhost')
    REDIS_PORT = int(os.getenv('REDIS_PORT', 6379))
    REDIS_DB = int(os.getenv('REDIS_DB', 0))
    GRAPH_CACHE_TTL = int(os.getenv('GRAPH_CACHE_TTL', 3600))

    # Knowledge graph layout
    GRAPH_DIRECTION = os.getenv('GRAPH_DIRECTION', 'TB')
    GRAPH_RANKSEP = int(os.getenv('GRAPH_RANKSEP', 80))
    GRAPH_NODESEP = int(os.getenv('GRAPH_NODESEP', 50))


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    AUTO_CREATE_TABLES = _env_bool('AUTO_CREATE_TABLES', True)


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    AUTO_CREATE_TABLES = True
    CACHE_ENABLED = False
    WTF_CSRF_ENABLED = False


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
