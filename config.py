import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./todo_auth.db")
    USE_IN_MEMORY_DB = bool(data.get("USE_IN_MEMORY_DB", False))
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENVIRONMENT = data.get("ENVIRONMENT", "development")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_ISSUER = data.get("JWT_ISSUER", "todo-api")
    JWT_AUDIENCE = data.get("JWT_AUDIENCE", "todo-frontend")
    ACCESS_TOKEN_EXPIRATION_MINUTES = int(data.get("ACCESS_TOKEN_EXPIRATION_MINUTES", 15))
    REFRESH_TOKEN_EXPIRATION_DAYS = int(data.get("REFRESH_TOKEN_EXPIRATION_DAYS", 30))
    GOOGLE_CLIENT_ID = data.get("GOOGLE_CLIENT_ID", "")
    RATE_LIMIT_ENABLED = bool(data.get("RATE_LIMIT_ENABLED", True))
    # Per client IP across the /auth endpoints
    RATE_LIMIT_AUTH_PERMIT_LIMIT = int(data.get("RATE_LIMIT_AUTH_PERMIT_LIMIT", 5))
    RATE_LIMIT_AUTH_WINDOW_SECONDS = int(data.get("RATE_LIMIT_AUTH_WINDOW_SECONDS", 60))
