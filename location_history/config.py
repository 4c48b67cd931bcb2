"""
Runtime settings for ingestion and filtering.

Settings are read from the environment, optionally seeded from a .env file
(python-dotenv). Explicit keyword arguments always win over the environment.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

ENV_PREFIX = "LOCATION_HISTORY_"


class Settings(BaseModel):
    # Speeds at or above this are treated as implausible travel
    max_speed_kmh: float = Field(300.0, gt=0)
    # Gaps longer than this make speed unknowable; such records are always kept
    max_gap_seconds: float = Field(600.0, gt=0)
    # Bounded size of the decoder -> consumer channel
    channel_size: int = Field(1024, ge=1)
    # Abort on the first unparsable record (False = log and skip it)
    strict: bool = True

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None, **overrides) -> "Settings":
        """
        Build settings from LOCATION_HISTORY_* environment variables.

        Args:
            env_file: Optional path to a .env file. When omitted, the nearest .env
                searching upwards from the working directory is used, if any.
            **overrides: Field values that take precedence over the environment.

        Returns:
            Validated Settings.

        Raises:
            pydantic.ValidationError: If a value cannot be parsed or is out of range.
        """
        dotenv_path = str(env_file) if env_file is not None else find_dotenv(usecwd=True)
        if dotenv_path:
            load_dotenv(dotenv_path)

        values = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw.strip()
        values.update(overrides)
        return cls(**values)
