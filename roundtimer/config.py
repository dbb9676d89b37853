import os
from datetime import timedelta
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _int_env(name, default):
    return int(os.getenv(name, default))


class Config:
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "postgresql://localhost/roundtimer")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT bearer credentials
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "your-secret-key")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=1)
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_HEADER_NAME = "Authorization"
    JWT_HEADER_TYPE = "Bearer"

    CORS_ORIGINS = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5001",
    ).split(",")

    # Rate limiting (flask-limiter). Every observer polls the timer every few
    # seconds, so the default must leave room for that.
    RATELIMIT_ENABLED = os.getenv("RATELIMIT_ENABLED", "true").lower() in ["true", "1", "t"]
    RATELIMIT_STORAGE_URI = os.getenv("LIMITER_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "150 per minute;10000 per hour")

    # Timer defaults (seconds)
    DEFAULT_NUM_ROUNDS = _int_env("DEFAULT_NUM_ROUNDS", 10)
    DEFAULT_ROUND_DURATION = _int_env("DEFAULT_ROUND_DURATION", 180)
    DEFAULT_BREAK_DURATION = _int_env("DEFAULT_BREAK_DURATION", 90)
    ROUND_DURATION_MIN = _int_env("ROUND_DURATION_MIN", 30)
    ROUND_DURATION_MAX = _int_env("ROUND_DURATION_MAX", 900)
    BREAK_DURATION_MIN = _int_env("BREAK_DURATION_MIN", 0)
    BREAK_DURATION_MAX = _int_env("BREAK_DURATION_MAX", 600)

    # Background expiry sweep for events nobody is polling. 0 disables.
    TIMER_SWEEP_INTERVAL_SEC = _int_env("TIMER_SWEEP_INTERVAL_SEC", 30)
