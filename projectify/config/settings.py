"""Application settings loaded from YAML/JSON files and environment."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field

from .models import ExecutorConfig

logger = logging.getLogger(__name__)

ENV_REFERENCE_PATH = "PROJECTIFY_REFERENCE_PATH"
ENV_TEMPLATE_SHEET = "PROJECTIFY_TEMPLATE_SHEET"


class AppSettings(BaseModel):
    """Settings consumed by the CLI.

    Attributes:
        reference_path: File listing valid code types, one per line.
        executor:       Template layout used during execution.
    """

    reference_path: Optional[str] = Field(
        default=None, description="Path to the valid code types list (Codes.txt)."
    )
    executor: ExecutorConfig = Field(default_factory=ExecutorConfig)


def _load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load raw configuration from a YAML or JSON file."""
    if config_path is None:
        return {}
    path = Path(config_path)
    with open(path, encoding="utf-8") as f:
        if path.suffix in (".yaml", ".yml"):
            return yaml.safe_load(f) or {}
        return json.load(f)


def load_settings(config_path: Optional[str] = None) -> AppSettings:
    """Build :class:`AppSettings` from *config_path* plus environment overrides.

    Environment variables win over file values.
    """
    data = _load_config_file(config_path)
    executor_data = dict(data.get("executor") or {})

    reference_path = os.environ.get(ENV_REFERENCE_PATH) or data.get("reference_path")
    template_sheet = os.environ.get(ENV_TEMPLATE_SHEET)
    if template_sheet:
        executor_data["template_sheet"] = template_sheet

    settings = AppSettings(
        reference_path=reference_path,
        executor=ExecutorConfig(**executor_data),
    )
    logger.debug(f"Loaded settings: {settings.model_dump()}")
    return settings
