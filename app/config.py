# -*- coding: utf-8 -*-


from pathlib import Path
from dataclasses import dataclass
import os

from dotenv import load_dotenv

# ============================================================================
# Load .env file for local environment configuration
# ============================================================================
load_dotenv()

# ============================================================================
# Read settings from environment variables (from .env or system)
# ============================================================================
_PROJECT_ROOT = Path(__file__).parent.parent

# Logging
_LOGS_DIR = Path(os.getenv("WIZARD_LOGS_DIR", str(_PROJECT_ROOT / "logs")))
_LOG_LEVEL = os.getenv("WIZARD_LOG_LEVEL", "INFO").upper()
_LOG_MAX_BYTES = int(os.getenv("WIZARD_LOG_MAX_BYTES", str(5 * 1024 * 1024)))
_LOG_BACKUP_COUNT = int(os.getenv("WIZARD_LOG_BACKUP_COUNT", "3"))

# Navigation
_SLUG_SEPARATOR = os.getenv("WIZARD_SLUG_SEPARATOR", "-")
_MAX_QUEUED_TRANSITIONS = int(os.getenv("WIZARD_MAX_QUEUED_TRANSITIONS", "16"))
_STRICT_STATE = os.getenv("WIZARD_STRICT_STATE", "true").lower() in ("true", "1", "yes")


@dataclass
class Config:
    """Application configuration."""

    # Application Info
    APP_NAME: str = "Wizard Flow"
    VERSION: str = "1.0.0"

    # Paths
    PROJECT_ROOT: Path = _PROJECT_ROOT
    LOGS_DIR: Path = _LOGS_DIR

    # Logging
    LOG_FILE: str = "wizard_flow.log"
    LOG_PATH: Path = LOGS_DIR / LOG_FILE
    LOG_LEVEL: str = _LOG_LEVEL  # Console level; the file always gets DEBUG
    LOG_MAX_BYTES: int = _LOG_MAX_BYTES
    LOG_BACKUP_COUNT: int = _LOG_BACKUP_COUNT

    # Definition building
    SLUG_SEPARATOR: str = _SLUG_SEPARATOR

    # Navigation engine
    # Transition requests issued from inside a lifecycle hook wait in this queue
    MAX_QUEUED_TRANSITIONS: int = _MAX_QUEUED_TRANSITIONS
    # False = drop unknown ids from a resumed State instead of rejecting it
    STRICT_STATE: bool = _STRICT_STATE

    # Log timestamp format
    DATETIME_FORMAT: str = "%Y-%m-%d %H:%M:%S"


# Transition identifiers
class Transitions:
    NEXT = "next"
    PREV = "prev"
    GOTO = "goto"
