import os
from datetime import timedelta


basedir = os.path.abspath(os.path.dirname(__file__))


class Config:
    """Base configuration"""

    # Secret key for session management
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database configuration
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'familyconnect.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False  # Set to True for SQL query logging during development

    # Session configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # CSRF Protection - JSON clients send the token in the X-CSRFToken header
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None

    # Rate Limiting
    RATELIMIT_STORAGE_URI = 'memory://'
    RATELIMIT_STRATEGY = 'fixed-window'
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_ENABLED = True

    # Security Headers
    SECURITY_HEADERS = {
        'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
        'X-Content-Type-Options': 'nosniff',
        'X-Frame-Options': 'SAMEORIGIN',
        'Referrer-Policy': 'strict-origin-when-cross-origin'
    }

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Password Requirements
    PASSWORD_MIN_LENGTH = 10

    # Login Security
    MAX_LOGIN_ATTEMPTS = 5
    LOCKOUT_DURATION = timedelta(minutes=15)

    # Uploads (post images)
    MAX_CONTENT_LENGTH = 50 * 1024 * 1024  # 50MB per request
    MAX_POST_IMAGES = 5
    ALLOWED_IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp', 'heic'}
    BLOB_BACKEND = os.environ.get('BLOB_BACKEND', 'local')  # 'local' | 's3'
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or os.path.join(basedir, 'instance', 'uploads')
    S3_BUCKET = os.environ.get('S3_BUCKET', 'familyconnect-media')
    S3_ENDPOINT_URL = os.environ.get('S3_ENDPOINT_URL')
    S3_REGION = os.environ.get('S3_REGION', 'auto')
    S3_ACCESS_KEY_ID = os.environ.get('S3_ACCESS_KEY_ID')
    S3_SECRET_ACCESS_KEY = os.environ.get('S3_SECRET_ACCESS_KEY')
    PUBLIC_MEDIA_BASE = os.environ.get('PUBLIC_MEDIA_BASE', '')

    # Outbound email (newsletters)
    MAIL_BACKEND = os.environ.get('MAIL_BACKEND', 'smtp')  # 'smtp' | 'log'
    SMTP_HOST = os.environ.get('SMTP_HOST', 'localhost')
    SMTP_PORT = int(os.environ.get('SMTP_PORT', '587'))
    SMTP_USERNAME = os.environ.get('SMTP_USERNAME', '')
    SMTP_PASSWORD = os.environ.get('SMTP_PASSWORD', '')
    SMTP_USE_TLS = os.environ.get('SMTP_USE_TLS', 'true').lower() not in {'false', '0', 'no'}
    SMTP_TIMEOUT = 30
    SMTP_FROM = os.environ.get('SMTP_FROM', 'FamilyConnect <noreply@example.com>')

    # Newsletters
    NEWSLETTER_SUBJECT_PREFIX = 'Family Newsletter: '
    NEWSLETTER_SEND_WORKERS = 4

    # Listing defaults
    POSTS_PAGE_SIZE = 10
    UPCOMING_EVENTS_LIMIT = 5


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_ECHO = False  # Set to True only when debugging SQL queries
    MAIL_BACKEND = os.environ.get('MAIL_BACKEND', 'log')

    # SECURITY: Only safe because Flask binds to 127.0.0.1 by default
    # Never use --host=0.0.0.0 with debug mode enabled


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False

    # MUST set these environment variables in production
    SECRET_KEY = os.environ.get('SECRET_KEY')  # Generate with: python -c 'import secrets; print(secrets.token_hex(32))'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or os.environ.get('SQLALCHEMY_DATABASE_URI')

    SESSION_COOKIE_SECURE = True  # Requires HTTPS
    PREFERRED_URL_SCHEME = 'https'

    @classmethod
    def init_app(cls, app):
        Config.init_app(app)

        if not app.config.get('SECRET_KEY'):
            raise ValueError("SECRET_KEY environment variable must be set in production!")

        if 'sqlite' in (app.config.get('SQLALCHEMY_DATABASE_URI') or ''):
            import warnings
            warnings.warn("Using SQLite in production is not recommended. Use PostgreSQL or MySQL.")


# Add init_app to base config
Config.init_app = classmethod(lambda cls, app: None)


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    MAIL_BACKEND = 'log'
    NEWSLETTER_SEND_WORKERS = 1


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
