"""
src/config.py

Runtime settings, read once from the environment.
"""


import logging
import os
from enum import Enum
from pathlib import Path


class Provider(str, Enum):

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


def _env_bool(name: str, default: bool) -> bool:

    raw = os.getenv(name)

    if raw is None:
        return default

    return raw.strip().lower() in ("1", "true", "yes", "on")


# Model
DEFAULT_PROVIDER: Provider = Provider(os.getenv("ASSISTANT_PROVIDER", Provider.OPENAI.value))
OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
ANTHROPIC_MODEL: str = os.getenv("ANTHROPIC_MODEL", "claude-3-5-sonnet-20240620")
MAX_TOKENS: int = int(os.getenv("MAX_TOKENS", "1000"))
TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.2"))

# Database
DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", "afl.sqlite3"))
DATABASE_URL: str = os.getenv("DATABASE_URL", "")     # Overrides DATABASE_PATH when set

# Loop and sandbox limits
MAX_TOOL_ROUNDS: int = int(os.getenv("MAX_TOOL_ROUNDS", "6"))
MAX_RESULT_ROWS: int = int(os.getenv("MAX_RESULT_ROWS", "0"))     # 0: no cap
STRICT_SQL: bool = _env_bool("STRICT_SQL", True)

# Prompt
DOMAIN_DESCRIPTION: str = os.getenv("DOMAIN_DESCRIPTION", "AFL players, games, teams, and history")

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = None) -> None:
    """Set up root logging for the API and UI entrypoints."""

    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
# EOF
