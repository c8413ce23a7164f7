"""
Centralized configuration manager.
Loads the YAML config and provides dot-path access with defaults.

Built-in defaults are deep-merged under the file contents, so a partial
config.yaml only needs the keys it changes.
"""

import copy
import logging
import os

import yaml

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

DEFAULTS = {
    "camera": {
        "device_id": 0,
        "width": 800,
        "height": 600,
        "fps": 30,
        "flip_horizontal": True,
        "warmup_frames": 5,
    },
    "detection": {
        "model_path": "",
        "max_num_hands": 2,
        "min_detection_confidence": 0.7,
        "min_tracking_confidence": 0.7,
        "min_presence_confidence": 0.5,
    },
    "recording": {
        "interval_ms": 1000,
        "jpeg_quality": 0.9,
        "refresh_grace_s": 2.0,
    },
    "backend": {
        "base_url": "http://127.0.0.1:8000",
        "timeout_s": None,
    },
    "notices": {
        "ttl_s": 5.0,
    },
    "session": {
        "category": "vocales",
        "label": "A",
        "model_name": "lenguaje_senas_v1",
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "max_size_mb": 10,
        "backup_count": 3,
    },
    "overlay": {},
}

# Schema: sections and the expected type of their critical fields
_CONFIG_SCHEMA = {
    "camera": {
        "device_id": int,
        "width": int,
        "height": int,
    },
    "detection": {
        "max_num_hands": int,
        "min_detection_confidence": float,
        "min_tracking_confidence": float,
    },
    "recording": {
        "interval_ms": int,
        "jpeg_quality": float,
        "refresh_grace_s": float,
    },
    "backend": {
        "base_url": str,
    },
    "session": {
        "category": str,
        "label": str,
        "model_name": str,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Singleton configuration manager."""

    _instance = None
    _data = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = copy.deepcopy(DEFAULTS)
        return cls._instance

    def load(self, config_path=None):
        """Load configuration from a YAML file on top of the defaults."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "config.yaml")

        try:
            with open(config_path, "r") as f:
                file_data = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)
            file_data = {}

        self._data = _deep_merge(copy.deepcopy(DEFAULTS), file_data)
        self._validate()
        return self

    def override(self, key_path: str, value):
        """Set a single value by dot path; ``None`` leaves the current value."""
        if value is None:
            return
        keys = key_path.split(".")
        section = self._data
        for key in keys[:-1]:
            section = section.setdefault(key, {})
        section[keys[-1]] = value

    def _validate(self):
        """Validate critical config fields against schema."""
        warnings = []
        for section_name, fields in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if not isinstance(section, dict):
                warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
                continue
            for field_name, expected_type in fields.items():
                if field_name in section:
                    value = section[field_name]
                    # Allow int where float is expected
                    if expected_type is float and isinstance(value, (int, float)):
                        continue
                    if not isinstance(value, expected_type):
                        warnings.append(
                            f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                            f"got {type(value).__name__} ({value!r})"
                        )

        for w in warnings:
            logger.warning("Config validation: %s", w)
        return warnings

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'camera.width'."""
        value = self._data
        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_section(self, section: str) -> dict:
        return self._data.get(section, {})

    @property
    def camera(self) -> dict:
        return self.get_section("camera")

    @property
    def detection(self) -> dict:
        return self.get_section("detection")

    @property
    def recording(self) -> dict:
        return self.get_section("recording")

    @property
    def backend(self) -> dict:
        return self.get_section("backend")

    @property
    def session(self) -> dict:
        return self.get_section("session")

    @property
    def logging_options(self) -> dict:
        return self.get_section("logging")

    @property
    def base_dir(self) -> str:
        return _BASE_DIR

    @classmethod
    def reset(cls):
        """Reset singleton instance (for testing)."""
        cls._instance = None
        cls._data = {}
