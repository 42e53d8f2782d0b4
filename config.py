import os
from dotenv import load_dotenv

load_dotenv("secrets.env")


class Config:
    # Secret key for session management
    SECRET_KEY = os.environ.get("SECRET_KEY") or "journaly-secret-key-123"

    # Database configuration
    basedir = os.path.abspath(os.path.dirname(__file__))
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL"
    ) or "sqlite:///" + os.path.join(basedir, "journaly.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Sentiment service configuration
    SENTIMENT_PROVIDER = os.environ.get("SENTIMENT_PROVIDER", "azure")
    AI_SERVICE_ENDPOINT = os.environ.get("AI_SERVICE_ENDPOINT")
    AI_SERVICE_KEY = os.environ.get("AI_SERVICE_KEY")
    SENTIMENT_TIMEOUT = float(os.environ.get("SENTIMENT_TIMEOUT", 5))
    SENTIMENT_MAX_ATTEMPTS = int(os.environ.get("SENTIMENT_MAX_ATTEMPTS", 3))
    SENTIMENT_RETRY_DELAY = float(os.environ.get("SENTIMENT_RETRY_DELAY", 1.0))
    SENTIMENT_CACHE_THRESHOLD = int(os.environ.get("SENTIMENT_CACHE_THRESHOLD", 1000))
    SENTIMENT_CACHE_TIMEOUT = int(os.environ.get("SENTIMENT_CACHE_TIMEOUT", 3600))

    # Sentiment results live in the Flask-Caching store
    CACHE_TYPE = "SimpleCache"
    CACHE_THRESHOLD = SENTIMENT_CACHE_THRESHOLD
    CACHE_DEFAULT_TIMEOUT = SENTIMENT_CACHE_TIMEOUT

    # Pagination
    ENTRIES_PAGE_SIZE = int(os.environ.get("ENTRIES_PAGE_SIZE", 20))
    MAX_PAGE_SIZE = 100


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    WTF_CSRF_ENABLED = False
    SENTIMENT_PROVIDER = "azure"
    AI_SERVICE_ENDPOINT = None
    AI_SERVICE_KEY = None
    SENTIMENT_RETRY_DELAY = 0
