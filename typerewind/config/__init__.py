"""YAML configuration for TypeRewind.

The file only needs the keys it changes: whatever it leaves out is taken
from ``DEFAULTS``. Relative paths are anchored at the file's own directory.
"""

import copy
import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "typerewind.yaml"

DEFAULTS: Dict[str, Any] = {
    'recording': {
        'buffer_seconds': 10.0,
        'frames_per_second': 60.0,
    },
    'capture': {
        'source': 'synthetic',
        'frames_per_unit': 1,
        'width': 320,
        'height': 200,
        'monitor': 1,
    },
    'sink': {
        'queue_size': 256,
        'backpressure': 'block',
        'block_timeout': 1.0,
    },
    'rewind': {
        'max_ledger_depth': 256,
        'monitor_input': True,
    },
    'storage': {
        'data_directory': 'data',
    },
    'logging': {
        'level': 'INFO',
        'file_path': 'data/logs/typerewind.log',
        'console_output': True,
    },
}

PATH_KEYS = ('storage.data_directory', 'logging.file_path')

CHOICES = {
    'capture.source': ('synthetic', 'screen'),
    'sink.backpressure': ('block', 'drop'),
}


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(merged.get(key), dict):
            if value is None:
                # empty section in the file
                continue
            if isinstance(value, dict):
                merged[key] = _merge(merged[key], value)
                continue
        merged[key] = value
    return merged


class TypeRewindConfig:
    """Recording settings read from a YAML file and layered over defaults."""

    def __init__(self, config_path: Optional[str] = None):
        """Load and check a configuration file.

        Args:
            config_path: YAML file to read; typerewind.yaml in the working
                        directory when omitted

        Raises:
            FileNotFoundError: if the file does not exist
            ValueError: if the file is empty, malformed or holds bad choices
        """
        self.config_file = Path(config_path) if config_path else Path.cwd() / DEFAULT_CONFIG_FILENAME
        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = _merge(DEFAULTS, self._read_file())
        self._anchor_paths()
        self._check_choices()
        logger.info("Configuration loaded successfully")

    def _read_file(self) -> Dict[str, Any]:
        with open(self.config_file, 'r', encoding='utf-8') as f:
            try:
                loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not loaded:
            raise ValueError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")
        return loaded

    def _anchor_paths(self) -> None:
        for key_path in PATH_KEYS:
            value = self.get(key_path)
            if value and not os.path.isabs(value):
                self.set(key_path, str(self.config_file.parent / value))

    def _check_choices(self) -> None:
        for key_path, allowed in CHOICES.items():
            value = self.get(key_path)
            if value not in allowed:
                raise ValueError(f"{key_path} must be one of {', '.join(allowed)}, got {value!r}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """Look up a value by dot path, e.g. 'recording.buffer_seconds'."""
        value = self.config
        for key in key_path.split('.'):
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set a value by dot path, creating sections as needed."""
        *sections, leaf = key_path.split('.')
        target = self.config
        for key in sections:
            target = target.setdefault(key, {})
        target[leaf] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_buffer_capacity(self) -> int:
        """Number of frames the ring buffer holds: seconds x frame rate."""
        seconds = float(self.get('recording.buffer_seconds'))
        fps = float(self.get('recording.frames_per_second'))
        if seconds <= 0 or fps <= 0:
            raise ValueError(f"Buffer duration and frame rate must be positive (got {seconds}s at {fps} fps)")
        return max(1, int(seconds * fps))

    def get_data_directory(self) -> str:
        return str(Path(self.get('storage.data_directory')).absolute())
