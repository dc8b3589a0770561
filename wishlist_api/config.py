import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'wishlist-default-secret')

    DB_HOST = os.getenv('DB_HOST', 'localhost')
    DB_PORT = int(os.getenv('DB_PORT', 3306))
    DB_USER = os.getenv('DB_USER', 'root')
    DB_PASSWORD = os.getenv('DB_PASSWORD', '')
    DB_NAME = os.getenv('DB_NAME', 'wishlist')

    # Pool sizing and timeouts (seconds unless noted)
    DB_POOL_NAME = os.getenv('DB_POOL_NAME', 'wishlist_pool')
    DB_POOL_SIZE = int(os.getenv('DB_POOL_SIZE', 5))
    DB_CONNECT_TIMEOUT = int(os.getenv('DB_CONNECT_TIMEOUT', 10))
    DB_ACQUIRE_TIMEOUT = float(os.getenv('DB_ACQUIRE_TIMEOUT', 5))
    DB_STATEMENT_TIMEOUT_MS = int(os.getenv('DB_STATEMENT_TIMEOUT_MS', 5000))
    DB_CONNECT_RETRIES = int(os.getenv('DB_CONNECT_RETRIES', 5))
    DB_CONNECT_BACKOFF = float(os.getenv('DB_CONNECT_BACKOFF', 1.0))
    DB_DRAIN_TIMEOUT = float(os.getenv('DB_DRAIN_TIMEOUT', 10))

    ADMIN_TOKEN = os.getenv('ADMIN_TOKEN', '')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    PORT = int(os.getenv('PORT', 3000))
