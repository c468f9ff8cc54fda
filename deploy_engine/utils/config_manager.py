"""Configuration management utilities."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from ..core.constants import ENV_PREFIX
from ..models.config import EngineSettings
from ..services.exceptions import ConfigError

logger = logging.getLogger(__name__)


class ConfigManager:
    """Loads engine settings from an optional JSON file and the environment.

    Environment variables named DEPLOY_ENGINE_<FIELD> override the file.
    """

    def __init__(self, config_file: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None):
        self.config_file = Path(config_file) if config_file else None
        self.environ = os.environ if environ is None else environ

    def _read_file(self) -> Dict[str, Any]:
        if not self.config_file or not self.config_file.exists():
            return {}
        try:
            data = json.loads(self.config_file.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable config file {self.config_file}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {self.config_file}: expected a JSON object")
            return {}
        return data

    def _read_env(self) -> Dict[str, str]:
        overrides = {}
        for field in EngineSettings.model_fields:
            value = self.environ.get(f"{ENV_PREFIX}{field.upper()}")
            if value is not None:
                overrides[field] = value
        return overrides

    def load_settings(self) -> EngineSettings:
        """Load settings: defaults, then file values, then environment.

        Raises:
            ConfigError: If a value fails validation
        """
        values = self._read_file()
        values.update(self._read_env())
        try:
            return EngineSettings(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid deploy engine settings: {e}") from e

    def save_settings(self, settings: EngineSettings) -> None:
        if not self.config_file:
            raise ConfigError("No config file configured")
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(settings.model_dump_json(indent=2))
