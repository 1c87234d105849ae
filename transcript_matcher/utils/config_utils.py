from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from ..settings import Settings

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def load_config(config_path: Optional[Path | str] = None) -> Settings:
    """Load settings from the config file with environment variable substitution."""
    env_path = PROJECT_ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_file = Path(config_path) if config_path else PROJECT_ROOT / "config" / "settings.yaml"
    if not config_file.exists():
        raise FileNotFoundError(f"Missing configuration file: {config_file}")

    raw_yaml = config_file.read_text(encoding="utf-8")

    # Replace environment variables ($VAR or ${VAR})
    expanded_yaml = _expand_env_vars(raw_yaml)

    config_dict = yaml.safe_load(expanded_yaml) or {}
    return Settings.from_dict(config_dict)


def _expand_env_vars(text: str) -> str:
    """Replace $VAR or ${VAR} with environment variable values."""
    def replacer(match):
        var_name = match.group(1) or match.group(2)
        return os.getenv(var_name, match.group(0))  # Keep original if not found

    pattern = r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)'
    return re.sub(pattern, replacer, text)
