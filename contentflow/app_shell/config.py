import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from contentflow.rules.loader import load_rules
from contentflow.rules.models import Rules

DEFAULT_RULES_PATH = "rules.yaml"


@dataclass(frozen=True)
class Settings:
    rules_path: Path
    # Overrides the level from rules.yaml when set.
    log_level: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            rules_path=Path(os.environ.get("CONTENTFLOW_RULES_PATH", DEFAULT_RULES_PATH)),
            log_level=os.environ.get("CONTENTFLOW_LOG_LEVEL") or None,
        )


def validate_startup(settings: Settings) -> Rules:
    """
    Load the rules before anything else starts.
    Exits with status 1 when the file is missing or invalid.
    """
    if not settings.rules_path.exists():
        print(
            f"CRITICAL: Rules file not found: {settings.rules_path}",
            file=sys.stderr,
        )
        sys.exit(1)

    try:
        return load_rules(settings.rules_path)
    except ValueError as e:
        print(f"CRITICAL: {e}", file=sys.stderr)
        sys.exit(1)


def configure_logging(rules: Rules, settings: Settings) -> None:
    level = (settings.log_level or rules.logging.level).upper()
    logging.basicConfig(level=level, format=rules.logging.format)
