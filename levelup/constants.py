"""
Application constants and environment-driven configuration.
"""
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# ===== CONFIGURATION =====

DATABASE_URL = os.getenv("LEVELUP_DATABASE_URL", "sqlite:///./levelup.db")
API_KEY = os.getenv("LEVELUP_API_KEY", "your-secret-key-change-me")

DEFAULT_LOG_DIRECTORY_PROD = "/var/log/levelup"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "LEVELUP_CORS_ORIGINS", "http://localhost:5173,http://localhost:8080"
    ).split(",")
    if origin.strip()
]

# Daily reset boundary ("resets every day at 6 AM")
DAY_START_ENABLED = _env_bool("LEVELUP_DAY_START_ENABLED", True)
DAY_START_TIME = os.getenv("LEVELUP_DAY_START_TIME", "06:00")
AUTO_RESET_ENABLED = _env_bool("LEVELUP_AUTO_RESET_ENABLED", True)

# ===== ATTRIBUTES =====

ATTRIBUTE_BRAIN = "brain"
ATTRIBUTE_HEALTH = "health"
ATTRIBUTE_SKILL = "skill"
ATTRIBUTE_DISCIPLINE = "discipline"
ATTRIBUTE_FOCUS = "focus"

ATTRIBUTES = (
    ATTRIBUTE_BRAIN,
    ATTRIBUTE_HEALTH,
    ATTRIBUTE_SKILL,
    ATTRIBUTE_DISCIPLINE,
    ATTRIBUTE_FOCUS,
)

# ===== DIFFICULTY =====

DIFFICULTY_TRIVIAL = "trivial"
DIFFICULTY_EASY = "easy"
DIFFICULTY_MEDIUM = "medium"
DIFFICULTY_HARD = "hard"

DIFFICULTY_XP = {
    DIFFICULTY_TRIVIAL: 5,
    DIFFICULTY_EASY: 10,
    DIFFICULTY_MEDIUM: 15,
    DIFFICULTY_HARD: 20,
}
DEFAULT_DIFFICULTY_XP = 5

# ===== PROGRESSION CURVES =====

# Overall: required_xp(level) = (level * LEVEL_XP_BASE) ** LEVEL_XP_EXPONENT
LEVEL_XP_BASE = 100
LEVEL_XP_EXPONENT = 1.5

# Attribute: level = floor(sqrt(xp / ATTRIBUTE_XP_DIVISOR)) + 1
#            required = (ATTRIBUTE_XP_BASE * level) ** 2
ATTRIBUTE_XP_DIVISOR = 50
ATTRIBUTE_XP_BASE = 50

# Largest level accepted by the level lookup route
MAX_LEVEL = 10_000

# Highest threshold first
RANK_THRESHOLDS = (
    (50, "Universal Hunter"),
    (40, "Monarch"),
    (30, "Shadow"),
    (25, "S-Rank"),
    (20, "A-Rank"),
    (15, "B-Rank"),
    (10, "C-Rank"),
    (5, "D-Rank"),
)
DEFAULT_RANK = "E-Rank"

# ===== ROLES =====

ROLE_ADMIN = "admin"
ROLE_USER = "user"

# ===== CHANGE EVENTS =====

EVENT_INSERT = "INSERT"
EVENT_UPDATE = "UPDATE"
EVENT_DELETE = "DELETE"
