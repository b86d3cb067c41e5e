"""Acquisition of the native Drupal runtime handle.

A runtime handle is the in-process object exposing one Drupal major
version's native primitives (``user_save``, ``node_save``,
``drupal_flush_all_caches`` and so on).  Bridges register a factory per
major version under the ``drupal_driver.runtimes`` entry-point group::

    [project.entry-points."drupal_driver.runtimes"]
    7 = "my_bridge.drupal7:create_runtime"

The factory is called as ``factory(drupal_root, uri)``.  Harnesses and
tests can bypass entry points entirely by passing any callable with the
``RuntimeLoader`` signature to the driver.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from importlib.metadata import entry_points
from typing import Any

from .base_core import Installation
from .exceptions import BootstrapException

logger = logging.getLogger(__name__)

RUNTIME_ENTRY_POINT_GROUP = "drupal_driver.runtimes"

RuntimeLoader = Callable[[int, Installation], Any]


class EntryPointRuntimeLoader:
    """Load runtime factories registered as package entry points.

    Args:
        group: Entry-point group to search.

    """

    def __init__(self, group: str = RUNTIME_ENTRY_POINT_GROUP) -> None:
        """Initialize the loader for an entry-point group."""
        self._group = group
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def group(self) -> str:
        """Return the entry-point group searched by this loader."""
        return self._group

    def available_versions(self) -> list[str]:
        """Return the version keys with a registered runtime factory."""
        return sorted(ep.name for ep in entry_points(group=self._group))

    def __call__(self, version: int, installation: Installation) -> Any:
        """Create the runtime handle for *version*.

        Raises:
            BootstrapException: If no factory is registered for the version
                or the factory fails.

        """
        matches = [ep for ep in entry_points(group=self._group) if ep.name == str(version)]
        if not matches:
            raise BootstrapException(
                f"No native runtime registered for Drupal {version}",
                site=installation.root,
                details={"group": self._group, "available": self.available_versions()},
            )
        entry_point = matches[0]
        try:
            factory = entry_point.load()
            runtime = factory(installation.root, installation.uri)
        except Exception as exc:
            raise BootstrapException(
                f"Failed to create native runtime for Drupal {version}",
                site=installation.root,
                details={"entry_point": entry_point.value, "original_error": str(exc)},
            ) from exc
        self._logger.debug("Loaded Drupal %s runtime from %s", version, entry_point.value)
        return runtime
