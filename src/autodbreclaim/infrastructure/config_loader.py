"""
Configuration loader module.

Handles loading and validation of JSON configuration files:
- reclaim_config.json: threshold, remediation table and run settings
- sql_targets.json: SQL Server connection configurations
- credential files referenced from targets
"""

import json
import logging
import sys
from pathlib import Path
from typing import List

from pydantic import ValidationError

from autodbreclaim.domain.config import ReclaimSettings, ReclaimTarget
from autodbreclaim.domain.errors import ConfigError

logger = logging.getLogger(__name__)

SETTINGS_FILE = "reclaim_config.json"
TARGETS_FILE = "sql_targets.json"


class ConfigLoader:
    """
    Load and validate configuration files.

    Parses JSON and hands the data to the pydantic domain models for
    validation.
    """

    def __init__(self, config_dir: str | Path = "config"):
        """
        Initialize config loader.

        Args:
            config_dir: Directory containing configuration files.
                        Relative paths are anchored to the executable when frozen.
        """
        if getattr(sys, "frozen", False) and not Path(config_dir).is_absolute():
            self.config_dir = Path(sys.executable).parent / config_dir
        else:
            self.config_dir = Path(config_dir)

        logger.info("ConfigLoader initialized with directory: %s", self.config_dir)

    def _resolve(self, filename: str | Path) -> Path:
        path = Path(filename)
        return path if path.is_absolute() or path.parent != Path(".") else self.config_dir / path

    def _load_json_file(self, filepath: Path, required: bool = True) -> dict | None:
        """
        Load and parse a JSON file with clear error messages.

        Args:
            filepath: Path to JSON file
            required: If True, raises on a missing file. If False, returns None.

        Returns:
            Parsed JSON as dict, or None if optional file not found

        Raises:
            ConfigError: If the file is missing, unreadable, empty or malformed
        """
        if not filepath.exists():
            if required:
                raise ConfigError(
                    f"Configuration file not found: {filepath}\n"
                    f"Hint: Copy the .example.json file and customize it."
                )
            logger.debug("Optional config not found: %s", filepath)
            return None

        try:
            content = filepath.read_text(encoding="utf-8")
        except PermissionError as e:
            raise ConfigError(
                f"Cannot read config file (permission denied): {filepath}"
            ) from e

        if not content.strip():
            raise ConfigError(
                f"Configuration file is empty: {filepath}\n"
                f"Hint: Add valid JSON content or copy from .example.json"
            )

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Invalid JSON in config file: {filepath}\n"
                f"Error at line {e.lineno}, column {e.colno}: {e.msg}\n"
                f"Hint: Validate JSON syntax. Note: .json files cannot have comments."
            ) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a JSON object: {filepath}")
        return data

    def load_settings(self, filename: str | Path = SETTINGS_FILE) -> ReclaimSettings:
        """
        Load run settings. A missing file yields the defaults.

        Raises:
            ConfigError: If the file exists but is invalid
        """
        filepath = self._resolve(filename)
        logger.info("Loading reclaim settings from: %s", filepath)

        data = self._load_json_file(filepath, required=False)
        if data is None:
            logger.info("No settings file found, using defaults")
            return ReclaimSettings()

        try:
            settings = ReclaimSettings(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid reclaim settings in {filepath}:\n{e}") from e

        logger.info(
            "Loaded settings: threshold=%.2f table=%s",
            settings.threshold, settings.remediation_table,
        )
        return settings

    def load_sql_targets(self, filename: str | Path = TARGETS_FILE) -> List[ReclaimTarget]:
        """
        Load SQL Server target configurations.

        Args:
            filename: Config file name, or a path

        Returns:
            List of ReclaimTarget objects

        Raises:
            ConfigError: If config file is missing or invalid
        """
        filepath = self._resolve(filename)
        logger.info("Loading SQL targets from: %s", filepath)

        data = self._load_json_file(filepath, required=True)

        targets = []
        for index, item in enumerate(data.get("targets", [])):
            item = dict(item)
            credential_file = item.get("credential_file")
            if credential_file and not item.get("password"):
                creds = self._load_credential_file(credential_file)
                item["username"] = creds.get("username") or item.get("username")
                item["password"] = creds.get("password")

            try:
                target = ReclaimTarget(**item)
            except ValidationError as e:
                raise ConfigError(f"Invalid target #{index + 1} in {filepath}:\n{e}") from e
            targets.append(target)
            logger.debug("Loaded target: %s", target.display_name)

        ids = [t.id for t in targets]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ConfigError(f"Duplicate target ids in {filepath}: {', '.join(duplicates)}")

        logger.info("Loaded %d SQL Server targets", len(targets))
        return targets

    def _load_credential_file(self, filepath: str) -> dict:
        """
        Load credentials from a JSON file.

        Args:
            filepath: Path to credential file (relative to project root or absolute)

        Returns:
            Dictionary with 'username' and 'password' keys
        """
        path = Path(filepath)
        if not path.is_absolute():
            path = self.config_dir.parent / filepath

        logger.debug("Loading credentials from: %s", path)
        data = self._load_json_file(path, required=False)

        if data is None:
            logger.warning("Credential file not found: %s", filepath)
            return {}

        return {
            "username": data.get("username"),
            "password": data.get("password"),
        }

    def validate_config(self) -> List[str]:
        """
        Validate configuration files.

        Returns:
            List of error messages (empty when everything is valid)
        """
        errors = []
        try:
            self.load_settings()
        except ConfigError as e:
            errors.append(str(e))
        try:
            targets = self.load_sql_targets()
            for target in targets:
                if target.uses_sql_auth and target.credential is None:
                    errors.append(f"Target '{target.id}' uses SQL auth but has no username/password")
        except ConfigError as e:
            errors.append(str(e))

        if errors:
            logger.error("Configuration validation failed with %d error(s)", len(errors))
        else:
            logger.info("Configuration validation passed")
        return errors
