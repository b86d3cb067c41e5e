"""YAML-based driver settings.

Settings can live at the top level of a YAML document or under a
``drupal_driver:`` section, so the driver can share a file with the rest
of the harness configuration::

    drupal_driver:
      drupal_root: /var/www/drupal
      uri: http://localhost

``DRUPAL_ROOT`` and ``DRUPAL_URI`` environment variables override values
read from the file.

Usage::

    settings = load_settings("behat.yml")
    driver = DrupalDriver.from_settings(settings)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..core.exceptions import ConfigurationError
from ..core.runtime import RUNTIME_ENTRY_POINT_GROUP

logger = logging.getLogger(__name__)

SETTINGS_SECTION = "drupal_driver"
DEFAULT_URI = "http://localhost"
ENV_DRUPAL_ROOT = "DRUPAL_ROOT"
ENV_DRUPAL_URI = "DRUPAL_URI"


@dataclass(frozen=True)
class DriverSettings:
    """Settings needed to construct a ``DrupalDriver``.

    Attributes:
        drupal_root: Path to the Drupal root.
        uri: Site URI.
        runtime_entry_point_group: Entry-point group searched for native
            runtime factories.

    """

    drupal_root: str
    uri: str = DEFAULT_URI
    runtime_entry_point_group: str = RUNTIME_ENTRY_POINT_GROUP

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DriverSettings:
        """Build settings from a mapping, applying environment overrides.

        Raises:
            ConfigurationError: If ``drupal_root`` is missing.

        """
        section = data.get(SETTINGS_SECTION, data)
        if not isinstance(section, Mapping):
            raise ConfigurationError(
                f"'{SETTINGS_SECTION}' section must be a mapping",
                details={"type": type(section).__name__},
            )
        drupal_root = os.environ.get(ENV_DRUPAL_ROOT) or section.get("drupal_root")
        if not drupal_root:
            raise ConfigurationError(
                "Driver settings missing 'drupal_root'",
                details={"keys": sorted(section.keys())},
            )
        return cls(
            drupal_root=str(drupal_root),
            uri=str(os.environ.get(ENV_DRUPAL_URI) or section.get("uri") or DEFAULT_URI),
            runtime_entry_point_group=str(
                section.get("runtime_entry_point_group", RUNTIME_ENTRY_POINT_GROUP)
            ),
        )


def load_settings(path: str | Path) -> DriverSettings:
    """Load driver settings from a YAML file.

    Args:
        path: Path to the YAML document.

    Raises:
        ConfigurationError: If the file is missing, unparsable, or not a
            mapping.

    """
    settings_file = Path(path)
    if not settings_file.exists():
        raise ConfigurationError(f"Settings file not found: {settings_file}")
    try:
        with settings_file.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Invalid YAML in {settings_file}",
            details={"original_error": str(exc)},
        ) from exc
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            f"Settings file {settings_file} must contain a mapping",
            details={"type": type(raw).__name__},
        )
    settings = DriverSettings.from_dict(raw)
    logger.debug("Loaded driver settings from %s: root=%s", settings_file, settings.drupal_root)
    return settings
