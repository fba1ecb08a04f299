"""Settings shared by every environment module."""

import os


def env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def db_config_from_env(*, default_password: str = "", default_database: str = "academic_db") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", default_database),
    }


# QR attendance tokens
QR_TOKEN_MAX_AGE_MINUTES = int(os.getenv("QR_TOKEN_MAX_AGE_MINUTES", "10"))
QR_TOKEN_FUTURE_SKEW_MINUTES = int(os.getenv("QR_TOKEN_FUTURE_SKEW_MINUTES", "5"))
REQUIRE_QR_TOKEN = env_flag("REQUIRE_QR_TOKEN", "0")

# Grading and attendance rules: raw | normalized, standard | excused_neutral
GRADE_WEIGHT_POLICY = os.getenv("GRADE_WEIGHT_POLICY", "raw")
EXCUSED_POLICY = os.getenv("EXCUSED_POLICY", "standard")
PASSING_THRESHOLD = float(os.getenv("PASSING_THRESHOLD", "60"))

CACHE_ENABLED = env_flag("CACHE_ENABLED", "1")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
