import os
from dotenv import load_dotenv

# Load the .env file immediately
load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    # 1. Security
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-fallback-key'
    AUTH_PASSWORD_SIGNIN_ENABLED = _env_flag('AUTH_PASSWORD_SIGNIN_ENABLED', True)
    MIN_PASSWORD_LENGTH = int(os.environ.get('MIN_PASSWORD_LENGTH') or 6)

    # 2. Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'contracts.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # 3. Uploads ('local' keeps files under UPLOAD_FOLDER, 's3' uses the bucket below)
    BLOB_BACKEND = os.environ.get('BLOB_BACKEND') or 'local'
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or \
        os.path.join(basedir, 'uploads')
    BLOB_BASE_URL = os.environ.get('BLOB_BASE_URL') or '/uploads'
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    AWS_REGION = os.environ.get('AWS_REGION') or 'sa-east-1'
    AWS_ACCESS_KEY_ID = os.environ.get('AWS_ACCESS_KEY_ID')
    AWS_SECRET_ACCESS_KEY = os.environ.get('AWS_SECRET_ACCESS_KEY')
    S3_BUCKET_NAME = os.environ.get('S3_BUCKET_NAME')
    # Presigned links are capped at 7 days by S3
    S3_URL_EXPIRATION = int(os.environ.get('S3_URL_EXPIRATION') or 7 * 24 * 3600)

    # 4. Email Configuration
    MAIL_SERVER = os.environ.get('MAIL_SERVER') or 'smtp.gmail.com'
    MAIL_PORT = int(os.environ.get('MAIL_PORT') or 587)
    MAIL_USE_TLS = os.environ.get('MAIL_USE_TLS') == 'True'
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER') or MAIL_USERNAME

    # 5. Celery Configuration
    CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL') or 'redis://localhost:6379/0'
    CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND') or 'redis://localhost:6379/0'
    CELERY_TASK_ALWAYS_EAGER = False

    # 6. Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL')


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    WTF_CSRF_ENABLED = False
    BLOB_BACKEND = 'local'
    AUTH_PASSWORD_SIGNIN_ENABLED = True
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = 'no-reply@contratos.com.br'
    CELERY_BROKER_URL = 'memory://'
    CELERY_RESULT_BACKEND = 'cache+memory://'
    CELERY_TASK_ALWAYS_EAGER = True
