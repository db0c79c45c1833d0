from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from loudtag.models import WriteOptions

_TRUE_VALUES = ("true", "1", "yes")


class TaggingConfig(BaseModel):
    """Tag writing defaults."""

    extended: bool = Field(default=False)
    unit: Literal["dB", "LU"] = Field(default="dB")
    lowercase: bool = Field(default=False)
    strip: bool = Field(default=False)
    id3v2version: int = Field(default=4, ge=2, le=4)
    # Write REPLAYGAIN_* instead of R128_* to Opus files
    non_standard_opus: bool = Field(default=False)

    def to_write_options(self, do_album: bool = False) -> WriteOptions:
        return WriteOptions(
            do_album=do_album,
            extended=self.extended,
            unit=self.unit,
            lowercase=self.lowercase,
            strip=self.strip,
            id3v2version=self.id3v2version,
        )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING")  # DEBUG, INFO, WARNING, ERROR
    format: str = Field(default="%(message)s")  # time and level come from the rich handler
    hash_paths: bool = Field(default=False)


class Config(BaseModel):
    """
    Main configuration for loudtag.

    Loads from TOML file with optional environment variable overrides.
    """

    tagging: TaggingConfig = Field(default_factory=TaggingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """
        Load configuration from TOML file with environment variable overrides.

        Environment variables take precedence and follow the pattern:
        LOUDTAG_<SECTION>_<KEY> (e.g., LOUDTAG_TAGGING_ID3V2VERSION)

        All values are gathered into a single dictionary first, then validated
        by Pydantic to ensure consistent type checking and coercion.
        """
        config_dict: dict[str, object] = {}

        if config_path and config_path.exists():
            config_dict = tomllib.loads(config_path.read_text())

        config_dict = cls._merge_env_overrides(config_dict)
        return cls.model_validate(config_dict)

    @staticmethod
    def _section(config_dict: dict[str, object], name: str) -> dict[str, object]:
        section = config_dict.setdefault(name, {})
        if not isinstance(section, dict):
            section = {}
            config_dict[name] = section
        return section

    @classmethod
    def _merge_env_overrides(cls, config_dict: dict[str, object]) -> dict[str, object]:
        """
        Merge environment variable overrides into config dictionary.

        Returns a new dictionary with env vars applied, ready for Pydantic validation.
        """
        env_prefix = "LOUDTAG_"

        tagging = cls._section(config_dict, "tagging")
        for flag in ("extended", "lowercase", "strip", "non_standard_opus"):
            if value := os.getenv(f"{env_prefix}TAGGING_{flag.upper()}"):
                tagging[flag] = value.lower() in _TRUE_VALUES
        if unit := os.getenv(f"{env_prefix}TAGGING_UNIT"):
            tagging["unit"] = unit
        if id3v2version := os.getenv(f"{env_prefix}TAGGING_ID3V2VERSION"):
            tagging["id3v2version"] = id3v2version

        logging_config = cls._section(config_dict, "logging")
        if log_level := os.getenv(f"{env_prefix}LOGGING_LEVEL"):
            logging_config["level"] = log_level
        if log_format := os.getenv(f"{env_prefix}LOGGING_FORMAT"):
            logging_config["format"] = log_format
        if log_hash_paths := os.getenv(f"{env_prefix}LOGGING_HASH_PATHS"):
            logging_config["hash_paths"] = log_hash_paths.lower() in _TRUE_VALUES

        return config_dict


## Tests


def test_config_defaults():
    config = Config()
    assert config.tagging.extended is False
    assert config.tagging.unit == "dB"
    assert config.tagging.id3v2version == 4
    assert config.logging.level == "WARNING"


def test_config_from_dict():
    config = Config.model_validate({"tagging": {"extended": True, "unit": "LU"}})
    assert config.tagging.extended is True
    assert config.tagging.unit == "LU"


def test_config_load_nonexistent_file():
    config = Config.load(Path("/nonexistent/config.toml"))
    assert config.tagging.strip is False
    assert config.tagging.non_standard_opus is False
