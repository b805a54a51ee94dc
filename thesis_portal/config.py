"""
Configuration settings for the Thesis Submission Portal
"""
import os


def _env_list(name, default):
    value = os.environ.get(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    """Flask application configuration"""

    # Flask secret key for sessions
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production-12345'

    # Database configuration
    basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'thesis_portal.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Submission form options
    INSTITUTION_NAME = os.environ.get('INSTITUTION_NAME') or 'LPU'
    CAMPUS_OPTIONS = _env_list('CAMPUS_OPTIONS', [
        'LIMA Campus',
        'Main Campus',
        'Riverside Campus',
    ])
    PROGRAM_OPTIONS = _env_list('PROGRAM_OPTIONS', [
        'Computer Science',
        'Information Technology',
        'Engineering',
        'Business Administration',
        'Psychology',
        'Education',
        'Nursing',
        'Accountancy',
    ])

    # Records view
    RECORDS_LOAD_TIMEOUT = float(os.environ.get('RECORDS_LOAD_TIMEOUT') or 30.0)
    RECORDS_VIEW_IDLE_SECONDS = float(os.environ.get('RECORDS_VIEW_IDLE_SECONDS') or 1800.0)
    RECORDS_POLL_INTERVAL_MS = int(os.environ.get('RECORDS_POLL_INTERVAL_MS') or 5000)

    # CSV export
    EXPORT_FILENAME = 'thesis_submissions.csv'
    EXPORT_DATE_FORMAT = '%m/%d/%Y'

    # Staff accounts
    PASSWORD_HASH_METHOD = 'pbkdf2:sha256'
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL') or 'admin@example.com'
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD') or 'admin123'

    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'


class TestConfig(Config):
    """Testing configuration"""
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    PASSWORD_HASH_METHOD = 'pbkdf2:sha256:1000'
    RECORDS_POLL_INTERVAL_MS = 0
