from .config import (  # noqa: F401
    EXCUSED_POLICY,
    GRADE_WEIGHT_POLICY,
    PASSING_THRESHOLD,
    QR_TOKEN_FUTURE_SKEW_MINUTES,
    QR_TOKEN_MAX_AGE_MINUTES,
    REQUIRE_QR_TOKEN,
    db_config_from_env,
)

SECRET_KEY = "test-secret"

DB_CONFIG = db_config_from_env(default_database="academic_test_db")

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

CACHE_ENABLED = False
AUTO_INIT_DB = False
AUTO_SEED_DB = False
