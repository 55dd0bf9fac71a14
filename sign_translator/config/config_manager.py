"""
Configuration Management for the sign translator

Loads and provides access to configuration from config.json.
Every recognition threshold (extension ratios, angle cutoffs, confidence
floors, temporal windows) lives here instead of inline in the detectors.
Supports both plain values and the [value, description] format.
"""

import json
from typing import Dict, Any, Optional, Tuple
from pathlib import Path


DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.json"
DEFAULT_PATTERNS_PATH = Path(__file__).parent / "gesture_patterns.json"
DEFAULT_DICTIONARY_PATH = Path(__file__).parent / "gesture_dictionary.json"


class Config:
    """
    Singleton configuration manager that loads from config.json
    """
    _instance = None
    _config_data: Dict[str, Any] = {}
    _config_path: str = ""

    def __new__(cls, *args, **kwargs):
        # Extra args (e.g. Config(path)) pass through to __init__
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
        return cls._instance

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration from JSON file.

        Args:
            config_path: Path to config.json. If provided, force reload from
                         that path. If None, load from the default location
                         only on first initialization.
        """
        if config_path is not None:
            self._config_path = str(config_path)
            self.reload()
            return

        if not self._config_data:  # Only load once
            self._config_path = str(DEFAULT_CONFIG_PATH)
            self.reload()

    def reload(self):
        """Reload configuration from file."""
        try:
            with open(self._config_path, 'r') as f:
                self._config_data = json.load(f)
            print(f"✓ Loaded configuration from {self._config_path}")
        except FileNotFoundError:
            print(f"⚠ Config file not found: {self._config_path}")
            print("  Using default values")
            self._config_data = self._get_defaults()
        except json.JSONDecodeError as e:
            print(f"⚠ Error parsing config file: {e}")
            print("  Using default values")
            self._config_data = self._get_defaults()

    def save(self):
        """Save current configuration back to file."""
        try:
            with open(self._config_path, 'w') as f:
                json.dump(self._config_data, f, indent=2)
            print(f"✓ Saved configuration to {self._config_path}")
        except OSError as e:
            print(f"✗ Error saving config: {e}")

    def get(self, *keys, default=None) -> Any:
        """
        Get configuration value using dot notation.
        Handles both plain values and the [value, description] format.

        Examples:
            config.get('temporal', 'required_matches')  # Returns 3
            config.get('finger_extension', 'extension_ratio', 'index')

        Args:
            keys: Path to value
            default: Default value if path doesn't exist

        Returns:
            Configuration value or default
        """
        current = self._config_data
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        # [value, description] pairs; a bare list of values stays a list
        if _is_described(current):
            return current[0]

        return current

    def get_with_description(self, *keys, default=None) -> Tuple[Any, str]:
        """
        Get configuration value AND description.

        Returns:
            Tuple of (value, description) or (default, "")
        """
        current = self._config_data
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return (default, "")

        if _is_described(current):
            return (current[0], current[1])

        return (current, "")

    def set(self, *keys, value):
        """
        Set configuration value using dot notation.
        An existing description is kept.

        Example:
            config.set('temporal', 'required_matches', value=4)
        """
        if len(keys) == 0:
            return

        current = self._config_data
        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        existing = current.get(keys[-1])
        if _is_described(existing):
            current[keys[-1]] = [value, existing[1]]
        else:
            current[keys[-1]] = value

    def _get_defaults(self) -> Dict:
        """Return default configuration values."""
        return {
            "finger_extension": {
                "thumb_ratio": 0.8,
                "extension_ratio": {"index": 1.5, "middle": 1.7, "ring": 1.7, "pinky": 1.5},
                "straight_angle": {"index": 150.0, "middle": 160.0, "ring": 160.0, "pinky": 145.0},
                "curl_bent_angle": 70.0
            },
            "matching": {
                "finger_weights": {"thumb": 1.0, "index": 1.5, "middle": 1.1, "ring": 0.8, "pinky": 1.0},
                "missing_extension_penalty": 1.0,
                "extra_extension_penalty": 0.5,
                "curl_softening": 0.5,
                "negative_floor": 0.05,
                "confidence_floor": {"alphabet": 0.8, "phrase": 0.7, "word": 0.7},
                "motion_penalty": 0.15,
                "complexity_discount": 0.05,
                "two_handed_penalty": 0.05,
                "verification_fail_confidence": 0.01
            },
            "disambiguation": {
                "enabled": True,
                "u_spread_max": 0.25,
                "v_spread_min": 0.45,
                "palm_facing_min": 0.7,
                "hello_boost": 1.15,
                "suppress_factor": 0.5
            },
            "temporal": {
                "required_matches": 3,
                "reset_window_s": 2.0,
                "expiration_s": 5.0,
                "history_size": 5,
                "keep_after_confirm": 2,
                "cooldown_frames": 10,
                "sweep_interval_s": 1.0
            },
            "patterns": {
                "missing_policy": "definition"
            },
            "camera": {
                "index": 0,
                "width": 640,
                "height": 480
            },
            "performance": {
                "detection_interval_ms": 500,
                "min_detection_confidence": 0.7,
                "min_tracking_confidence": 0.5,
                "show_debug_info": False
            },
            "display": {
                "flip_horizontal": True,
                "show_window": True,
                "transcript_length": 12,
                "show_overlay": True,
                "max_candidates_shown": 3,
                "overlay_opacity": 0.6
            }
        }

    @property
    def data(self) -> Dict:
        """Get entire configuration dictionary."""
        return self._config_data


def _is_described(value) -> bool:
    """True for a [value, "description"] pair."""
    return isinstance(value, list) and len(value) == 2 and isinstance(value[1], str)


# Global configuration instance
config = Config()


def get_recognition_setting(section: str, param_name: str, default=None):
    """Get a recognition parameter from one of the config sections."""
    return config.get(section, param_name, default=default)


if __name__ == "__main__":
    print("\n=== Configuration Test ===\n")

    print("Finger extension:")
    print(f"  Thumb ratio: {config.get('finger_extension', 'thumb_ratio')}")
    print(f"  Index ratio: {config.get('finger_extension', 'extension_ratio', 'index')}")

    print("\nMatching:")
    print(f"  Alphabet floor: {config.get('matching', 'confidence_floor', 'alphabet')}")
    print(f"  Motion penalty: {get_recognition_setting('matching', 'motion_penalty')}")

    print("\nTemporal:")
    print(f"  Required matches: {config.get('temporal', 'required_matches')}")
    print(f"  Expiration: {config.get('temporal', 'expiration_s')}s")

    print("\n✓ Configuration system working!")
