"""Configuration management."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.yaml"


class Config(BaseModel):
    """Calendar configuration."""

    log_level: str = "INFO"
    hour_unit: float = Field(default=3.0, gt=0)
    min_event_hours: float = Field(default=1.5, ge=0)
    stack_offset: float = Field(default=0.5, ge=0)
    palette: list[str] = Field(
        default_factory=lambda: ["blue", "red", "green", "purple", "yellow", "pink"]
    )
    records_file: Optional[Path] = None
    snapshot_file: Path = Path("data/snapshot.json")
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    user_id: Optional[str] = None

    @field_validator("palette")
    @classmethod
    def _palette_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("palette must contain at least one color")
        return value

    @property
    def backend_key(self) -> Optional[str]:
        return self.supabase_key or os.environ.get("SUPABASE_KEY")


_config: Optional[Config] = None


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file."""
    global _config

    if _config is not None and config_path is None:
        return _config

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}. "
            "Copy config/config.yaml.example to config/config.yaml and fill in your settings."
        )

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    _config = Config(**data)
    return _config


def get_config() -> Config:
    """Get the loaded configuration, falling back to defaults when no file exists."""
    global _config

    if _config is None:
        try:
            return load_config()
        except FileNotFoundError:
            _config = Config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration."""
    global _config
    _config = None
