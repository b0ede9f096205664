import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///courtslot.db'
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # API Keys
    TWILIO_ACCOUNT_SID = os.environ.get('TWILIO_ACCOUNT_SID')
    TWILIO_AUTH_TOKEN = os.environ.get('TWILIO_AUTH_TOKEN')
    TWILIO_PHONE_NUMBER = os.environ.get('TWILIO_PHONE_NUMBER')
    SENDGRID_API_KEY = os.environ.get('SENDGRID_API_KEY')
    SENDGRID_FROM_EMAIL = os.environ.get('SENDGRID_FROM_EMAIL', 'noreply@courtslot.app')

    # Application Settings
    APP_URL = os.environ.get('APP_URL', 'http://localhost:5000')
    CURRENCY_LABEL = os.environ.get('CURRENCY_LABEL', 'DT')

    # Scheduling defaults for courts without a stored calendar
    DEFAULT_OPEN_TIME = os.environ.get('DEFAULT_OPEN_TIME', '08:00')
    DEFAULT_CLOSE_TIME = os.environ.get('DEFAULT_CLOSE_TIME', '22:00')
    DEFAULT_MATCH_DURATION = int(os.environ.get('DEFAULT_MATCH_DURATION', '90'))
    DEFAULT_PRICE_PER_HOUR = float(os.environ.get('DEFAULT_PRICE_PER_HOUR', '15'))
    DEFAULT_ADVANCE_THRESHOLD_DAYS = int(os.environ.get('DEFAULT_ADVANCE_THRESHOLD_DAYS', '30'))
    DEFAULT_ADVANCE_BOOKING_DAYS = int(os.environ.get('DEFAULT_ADVANCE_BOOKING_DAYS', '30'))
    DEFAULT_CANCELLATION_DEADLINE_HOURS = int(os.environ.get('DEFAULT_CANCELLATION_DEADLINE_HOURS', '24'))
    DEFAULT_AUTO_CONFIRM = os.environ.get('DEFAULT_AUTO_CONFIRM', 'true').lower() == 'true'

    # No booking may start sooner than this many minutes from now
    BOOKING_LEAD_MINUTES = int(os.environ.get('BOOKING_LEAD_MINUTES', '30'))

    # Background job that marks finished reservations completed (0 disables it)
    AUTO_COMPLETE_INTERVAL_MINUTES = int(os.environ.get('AUTO_COMPLETE_INTERVAL_MINUTES', '15'))

    # Pagination
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100

    # Token Settings
    ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours

    # Logging
    LOG_FILE = 'logs/courtslot.log'
    LOG_LEVEL = 'INFO'


class DevelopmentConfig(Config):
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    DEBUG = True
    TESTING = True
    AUTO_COMPLETE_INTERVAL_MINUTES = 0


class ProductionConfig(Config):
    DEBUG = False
    TESTING = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
