"""Discovery of step-definition directories contributed by modules.

Harnesses auto-load sub-contexts shipped inside Drupal modules.  The
collector lists the directory of every enabled module so the harness can
search them.

Themes and the active install profile can contribute sub-contexts too.
Neither is collected yet; asking for them raises rather than returning a
silently incomplete list.
"""

from __future__ import annotations

import abc
import logging
import os
from typing import TYPE_CHECKING

from ..core.exceptions import UnsupportedOperationError

if TYPE_CHECKING:
    from .drupal_driver import DrupalDriver

logger = logging.getLogger(__name__)


class SubContextFinder(abc.ABC):
    """Interface for objects that can locate sub-context directories."""

    @abc.abstractmethod
    def get_sub_context_paths(self) -> list[str]:
        """Return directories that may contain sub-context definitions."""


class SubContextPathCollector:
    """Collect module directories of a bootstrapped Drupal site.

    Args:
        driver: The driver whose site is searched.  It is bootstrapped on
            first use if necessary.

    """

    def __init__(self, driver: DrupalDriver) -> None:
        """Initialize the collector for a driver."""
        self._driver = driver
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def get_paths(
        self,
        include_themes: bool = False,
        include_profile: bool = False,
    ) -> list[str]:
        """Return the absolute directory of every enabled module.

        Paths keep the order in which Drupal enumerates enabled modules.

        Raises:
            UnsupportedOperationError: If themes or the install profile
                are requested.

        """
        if include_themes:
            raise UnsupportedOperationError(
                "Theme sub-context discovery is not implemented", site=self._driver.uri
            )
        if include_profile:
            raise UnsupportedOperationError(
                "Install profile sub-context discovery is not implemented",
                site=self._driver.uri,
            )

        if not self._driver.is_bootstrapped():
            self._driver.bootstrap()

        core = self._driver.core
        root = self._driver.root
        paths = [os.path.join(root, core.module_path(module)) for module in core.module_list()]
        self._logger.debug("Collected %d module sub-context paths", len(paths))
        return paths
