import os
import datetime
from dotenv import load_dotenv

load_dotenv()

# Values without which the service cannot start, keyed to the environment
# variable that supplies each one.
REQUIRED_SETTINGS = {
    "SECRET_KEY": "SECRET_KEY",
    "SQLALCHEMY_DATABASE_URI": "DATABASE_URL",
}

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_ACCESS_TOKEN_EXPIRES = datetime.timedelta(hours=24)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOGIN_RATE_LIMIT = os.getenv("LOGIN_RATE_LIMIT", "10 per minute")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RECENT_ACTIVITY_LIMIT = 5
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    RESTX_ERROR_404_HELP = False

class DevConfig(Config):
    DEBUG = True

class ProdConfig(Config):
    DEBUG = False

class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    RATELIMIT_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    LOG_LEVEL = "WARNING"
