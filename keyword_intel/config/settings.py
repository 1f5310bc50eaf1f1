"""
Environment settings loaded from .env file.
"""
import os
from dotenv import load_dotenv

load_dotenv()


# --- Action engine ---
SPEND_NO_CONVERSION_THRESHOLD: float = float(os.getenv("SPEND_NO_CONVERSION_THRESHOLD", "250.0"))

# --- Leakage suggester ---
LEAKAGE_MIN_CLICKS: int = int(os.getenv("LEAKAGE_MIN_CLICKS", "25"))

# --- Account structure (ad groups, moves, proposed ad groups) ---
AD_GROUP_PURITY_OK: float = float(os.getenv("AD_GROUP_PURITY_OK", "0.85"))
AD_GROUP_PURITY_RESTRUCTURE: float = float(os.getenv("AD_GROUP_PURITY_RESTRUCTURE", "0.70"))
MOVE_MIN_COST: float = float(os.getenv("MOVE_MIN_COST", "50.0"))
NEW_AD_GROUP_MIN_COST: float = float(os.getenv("NEW_AD_GROUP_MIN_COST", "300.0"))
NEW_AD_GROUP_MIN_CLICKS: int = int(os.getenv("NEW_AD_GROUP_MIN_CLICKS", "200"))

# --- Executive brief ---
WORST_CPA_MIN_SPEND: float = float(os.getenv("WORST_CPA_MIN_SPEND", "500.0"))

# --- Batch ---
BATCH_MAX_WORKERS: int = int(os.getenv("BATCH_MAX_WORKERS", "1"))

# --- Snapshot repository ---
SNAPSHOT_BACKEND: str = os.getenv("SNAPSHOT_BACKEND", "memory")  # memory | redis

REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
SNAPSHOT_KEY_PREFIX: str = os.getenv("SNAPSHOT_KEY_PREFIX", "kwintel:snapshot")

# --- Logging ---
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
