# hcb/services/configuration_manager.py
"""
Contains the ConfigurationManager, the authoritative service for loading,
validating, migrating, and saving the application's YAML configuration.
"""
import copy
from typing import Any, Optional

import yaml

from hcb.config.constants import (
    DEFAULT_SETTINGS, LEGACY_SETTINGS_KEYS, SERVER_ADDRESS_SCHEMES
)
from hcb.session_context import SessionSignals


class ConfigurationManager:
    """
    A service that centralizes loading and saving of the settings used to
    create sessions.
    """

    def __init__(self, signals: Optional[SessionSignals] = None):
        """
        Initializes the ConfigurationManager.

        Args:
            signals: The signal bus to report configuration events on.
        """
        self.signals = signals if signals is not None else SessionSignals()
        self.settings: dict = copy.deepcopy(DEFAULT_SETTINGS)

    def load_config(self, filepath: str) -> dict:
        """
        Loads, validates, and migrates a configuration from a YAML file.
        A missing file is created with the defaults.

        Args:
            filepath: The path to the YAML file to load.

        Returns:
            The complete, validated settings dictionary.
        """
        loaded_raw = self._read_yaml_file(filepath)
        final_settings = copy.deepcopy(DEFAULT_SETTINGS)
        if isinstance(loaded_raw, dict):
            final_settings = loaded_raw
        elif loaded_raw not in (None, 'created'):
            self.signals.log_message.emit(
                f"Config {filepath} is not a mapping. Using defaults.")

        final_settings, changed1 = self._sanitize_settings(final_settings)
        final_settings, changed2 = self._validate_values(final_settings)
        self.settings = final_settings

        if (changed1 or changed2) and isinstance(loaded_raw, dict):
            self.signals.log_message.emit("Config auto-migrated. Re-saving.")
            self.save_config(filepath)
        return copy.deepcopy(self.settings)

    def save_config(self, filepath: str):
        """
        Saves only the settings that differ from the defaults.

        Args:
            filepath: The path to the YAML file to save.
        """
        settings_diff = self._get_diff(self.settings, DEFAULT_SETTINGS)
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                if settings_diff:
                    yaml.dump(settings_diff, f, sort_keys=False)
                else:
                    f.write('')
        except IOError as e:
            self.signals.log_message.emit(f"Error writing config: {e}")

    def set(self, key: str, value: Any):
        """
        Updates a single setting after validating it.

        Args:
            key: The setting key. Must be a known setting.
            value: The new value.

        Raises:
            KeyError: If the key is not a known setting.
            ValueError: If the value is invalid for the key.
        """
        if key not in DEFAULT_SETTINGS:
            raise KeyError(f"Unknown setting '{key}'.")
        candidate = dict(self.settings, **{key: value})
        validated, changed = self._validate_values(candidate)
        if changed:
            raise ValueError(f"Invalid value for '{key}': {value!r}")
        self.settings = validated

    def _read_yaml_file(self, filepath: str) -> Optional[Any]:
        """Reads and parses a YAML file, handling errors."""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f)
        except FileNotFoundError:
            self.signals.log_message.emit(
                f"Config file not found, creating with defaults: {filepath}")
            self.save_config(filepath)
            return 'created'
        except yaml.YAMLError as e:
            self.signals.log_message.emit(f"Error parsing {filepath}: {e}. Using defaults.")
            return None

    def _sanitize_settings(self, loaded_settings: dict) -> tuple[dict, bool]:
        """Migrates renamed keys, drops unknown ones, and fills in defaults."""
        final_settings, config_changed = {}, False
        temp_settings = dict(loaded_settings)
        for old, new in LEGACY_SETTINGS_KEYS.items():
            if old in temp_settings:
                value = temp_settings.pop(old)
                temp_settings.setdefault(new, value)
                config_changed = True
        for key in temp_settings:
            if key not in DEFAULT_SETTINGS:
                self.signals.log_message.emit(f"Dropping unknown setting '{key}'.")
                config_changed = True
        for key, default_value in DEFAULT_SETTINGS.items():
            if key not in temp_settings:
                final_settings[key] = copy.deepcopy(default_value)
            else:
                final_settings[key] = temp_settings[key]
        return final_settings, config_changed

    def _validate_values(self, settings: dict) -> tuple[dict, bool]:
        """Replaces values of the wrong type or range with defaults."""
        config_changed = False
        validators = {
            'server_address': lambda v: isinstance(v, str) and v.startswith(SERVER_ADDRESS_SCHEMES),
            'client_name': lambda v: isinstance(v, str) and bool(v.strip()),
            'scan_on_connect': lambda v: isinstance(v, bool),
            'loop_join_timeout_s': lambda v: _is_number(v) and v > 0,
            'default_fade_smoothness': lambda v: _is_number(v) and 0.1 <= v <= 1.0,
            'print_device_commands': lambda v: isinstance(v, bool),
        }
        for key, is_valid in validators.items():
            if not is_valid(settings.get(key)):
                self.signals.log_message.emit(
                    f"Invalid value for '{key}': {settings.get(key)!r}. Using default.")
                settings[key] = copy.deepcopy(DEFAULT_SETTINGS[key])
                config_changed = True
        return settings, config_changed

    def _get_diff(self, dict1: dict, dict2: dict) -> dict:
        """Returns the entries of dict1 that differ from dict2."""
        return {key: value for key, value in dict1.items()
                if key not in dict2 or value != dict2[key]}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
