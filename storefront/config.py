import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _csv(value, default):
    raw = value if value is not None else default
    return [part.strip().upper() for part in raw.split(",") if part.strip()]


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=1)

    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")
    STRIPE_API_VERSION = os.environ.get("STRIPE_API_VERSION") or None

    STORE_CURRENCY = os.environ.get("STORE_CURRENCY", "usd")
    STORE_ORIGIN = os.environ.get("STORE_ORIGIN", "http://localhost:3000")
    ALLOWED_SHIPPING_COUNTRIES = _csv(os.environ.get("ALLOWED_SHIPPING_COUNTRIES"), "US,CA")

    UPLOAD_SUBDIR = "static/uploads"
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER")  # defaults to <root>/<UPLOAD_SUBDIR>

    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_JSON = os.environ.get("LOG_JSON", "").lower() in {"1", "true", "yes"}

    @staticmethod
    def init_app(app):
        if not os.getenv("DATABASE_URL"):
            os.makedirs(app.instance_path, exist_ok=True)
            app.config.setdefault(
                "SQLALCHEMY_DATABASE_URI",
                f"sqlite:///{os.path.join(app.instance_path, 'storefront.db')}",
            )
        else:
            app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-jwt-secret"
    STRIPE_SECRET_KEY = "sk_test_dummy"
    STRIPE_WEBHOOK_SECRET = "whsec_test_secret"
    STORE_ORIGIN = "http://shop.test"
    LOG_LEVEL = "WARNING"

    @staticmethod
    def init_app(app):
        pass
