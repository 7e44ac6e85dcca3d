"""Runtime settings read from the environment."""
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel


load_dotenv()


class Settings(BaseModel):
    data_dir: Path = Path("data")
    slack_webhook_url: str | None = None
    base_url: str = "http://localhost:3000"
    flag_retention_days: int = 30
    max_flags_per_issue: int = 3


def load_settings() -> Settings:
    """Build settings from environment variables, falling back to defaults."""
    values = {
        "data_dir": os.getenv("QC_DATA_DIR"),
        "slack_webhook_url": os.getenv("SLACK_WEBHOOK_URL"),
        "base_url": os.getenv("QC_BASE_URL"),
        "flag_retention_days": os.getenv("QC_FLAG_RETENTION_DAYS"),
        "max_flags_per_issue": os.getenv("QC_MAX_FLAGS_PER_ISSUE"),
    }
    return Settings(**{key: value for key, value in values.items() if value})
