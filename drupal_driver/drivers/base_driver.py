"""Abstract driver interface consumed by the test harness.

Every driver exposes the same operations regardless of how it reaches
the site under test, so step definitions can be written once.

Usage::

    driver = DrupalDriver("/var/www/drupal", "http://localhost")
    driver.bootstrap()
    user = driver.create_user({"name": "editor", "pass": "secret"})
    driver.add_user_role(user, "editor")
"""

from __future__ import annotations

import abc
from typing import Any

from ..core.base_core import LogEntry

DEFAULT_LOG_COUNT = 10


class BaseDriver(abc.ABC):
    """Abstract base class for all Drupal drivers."""

    @abc.abstractmethod
    def bootstrap(self) -> None:
        """Make the site's API callable.

        Raises:
            BootstrapException: If initialization fails.

        """

    @abc.abstractmethod
    def is_bootstrapped(self) -> bool:
        """Return ``True`` once ``bootstrap`` has completed."""

    @abc.abstractmethod
    def create_user(self, user: Any) -> Any:
        """Create an account and return the record with its uid."""

    @abc.abstractmethod
    def delete_user(self, user: Any) -> None:
        """Delete an account and its content."""

    @abc.abstractmethod
    def add_user_role(self, user: Any, role_name: str) -> None:
        """Grant a role by name.

        Raises:
            RoleNotFoundError: If the role does not exist.

        """

    @abc.abstractmethod
    def create_node(self, node: Any) -> Any:
        """Create content and return the record with its nid."""

    @abc.abstractmethod
    def clear_cache(self, cache_type: str | None = None) -> None:
        """Flush caches."""

    @abc.abstractmethod
    def fetch_log(
        self,
        count: int = DEFAULT_LOG_COUNT,
        log_type: str | None = None,
        severity: int | None = None,
    ) -> list[LogEntry]:
        """Return recent watchdog entries.

        Raises:
            UnsupportedOperationError: If the site offers no log access.

        """
