"""Factory for creating version-specific core instances.

Maps each supported Drupal major version to its ``BaseCore`` subclass
through a static registration table.  The driver resolves the version
once and asks the factory for exactly one core.

Usage::

    factory = CoreFactory()
    core = factory.create(7, installation, runtime)
"""

from __future__ import annotations

import logging
from typing import Any

from ..core.base_core import BaseCore, Installation, MajorVersion
from ..core.exceptions import BootstrapException
from .drupal6_core import Drupal6Core
from .drupal7_core import Drupal7Core
from .drupal8_core import Drupal8Core

logger = logging.getLogger(__name__)

CORE_REGISTRY: dict[int, type[BaseCore]] = {
    MajorVersion.DRUPAL_6: Drupal6Core,
    MajorVersion.DRUPAL_7: Drupal7Core,
    MajorVersion.DRUPAL_8: Drupal8Core,
}


class CoreFactory:
    """Factory for creating version-specific ``BaseCore`` instances.

    Args:
        custom_cores: Optional mapping of additional major versions to
            core classes for extensibility.

    """

    def __init__(
        self,
        custom_cores: dict[int, type[BaseCore]] | None = None,
    ) -> None:
        """Initialize the factory with an optional set of custom core mappings."""
        self._registry: dict[int, type[BaseCore]] = dict(CORE_REGISTRY)
        if custom_cores:
            self._registry.update(custom_cores)
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def register(self, version: int, core_cls: type[BaseCore]) -> None:
        """Register a core class for a major version.

        Args:
            version: Drupal major version number.
            core_cls: The core class to associate.

        """
        self._registry[int(version)] = core_cls
        self._logger.info("Registered core %s for Drupal %d", core_cls.__name__, version)

    def create(self, version: int, installation: Installation, runtime: Any) -> BaseCore:
        """Create the core for the given major version.

        Args:
            version: Drupal major version number.
            installation: The site the core operates on.
            runtime: Native runtime handle for that version.

        Returns:
            A core instance that has not been bootstrapped yet.

        Raises:
            BootstrapException: If no core is registered for the version.

        """
        core_cls = self._registry.get(int(version))
        if core_cls is None:
            supported = ", ".join(str(v) for v in self.supported_versions)
            raise BootstrapException(
                f"Unsupported Drupal version {version}. Supported: {supported}",
                site=installation.root,
                version=int(version),
            )
        self._logger.debug("Creating %s for %s", core_cls.__name__, installation.root)
        return core_cls(installation, runtime)

    @property
    def supported_versions(self) -> list[int]:
        """Return sorted list of supported major versions."""
        return sorted(int(v) for v in self._registry)
