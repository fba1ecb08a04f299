import os

from .config import (  # noqa: F401
    CACHE_ENABLED,
    EXCUSED_POLICY,
    GRADE_WEIGHT_POLICY,
    LOG_LEVEL,
    PASSING_THRESHOLD,
    QR_TOKEN_FUTURE_SKEW_MINUTES,
    QR_TOKEN_MAX_AGE_MINUTES,
    db_config_from_env,
    env_flag,
)

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config_from_env()

DEBUG = False

# Production expects the lecturer screen's rotating code on every check-in.
REQUIRE_QR_TOKEN = env_flag("REQUIRE_QR_TOKEN", "1")

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
