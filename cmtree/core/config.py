"""
Configuration for cmtree.

Defines where trees are stored, which tree to open, and logging options.
Values can come from a .env file or CMTREE_* environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from cmtree.core.errors import InvalidConfiguration
from cmtree.crypto import HASHERS


ENV_PREFIX = "CMTREE_"


@dataclass
class TreeConfig:
    """Tree and storage configuration"""

    # Storage
    data_dir: Path = Path("data")
    db_name: str = "tree.db"

    # Tree parameters
    tree_name: str = "default"
    depth: int = 32
    hasher: str = "sha256"

    # Logging
    log_dir: Path = Path("logs")
    log_to_file: bool = False

    def __post_init__(self):
        """Validate parameters and normalize paths"""
        self.data_dir = Path(self.data_dir).expanduser()
        self.log_dir = Path(self.log_dir).expanduser()

        if not 1 <= self.depth <= 32:
            raise InvalidConfiguration(f"depth must be in [1, 32], got {self.depth}")
        if self.hasher.lower() not in HASHERS:
            raise InvalidConfiguration(
                f"Unknown hasher {self.hasher!r}, expected one of {sorted(HASHERS)}"
            )
        if not self.tree_name:
            raise InvalidConfiguration("tree_name must not be empty")

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(env_file: Optional[str] = None, **overrides) -> TreeConfig:
    """
    Load configuration from the environment.

    Args:
        env_file: Optional .env file to load first. Without it, python-dotenv
            searches for a .env file from the working directory upwards.
            Variables already set in the process environment take precedence.
        **overrides: Field values that win over the environment (None is ignored)

    Returns:
        TreeConfig instance

    Raises:
        InvalidConfiguration: if a value cannot be parsed or is out of range
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    values = {}
    env = {
        "data_dir": Path,
        "db_name": str,
        "tree_name": str,
        "depth": int,
        "hasher": str,
        "log_dir": Path,
        "log_to_file": _parse_bool,
    }
    for field_name, parse in env.items():
        raw = os.getenv(ENV_PREFIX + field_name.upper())
        if raw is None or raw == "":
            continue
        try:
            values[field_name] = parse(raw)
        except ValueError as e:
            raise InvalidConfiguration(
                f"Invalid {ENV_PREFIX}{field_name.upper()}={raw!r}: {e}"
            ) from e

    values.update({k: v for k, v in overrides.items() if v is not None})
    return TreeConfig(**values)
