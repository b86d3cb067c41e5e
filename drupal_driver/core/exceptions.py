"""Custom exception hierarchy for the Drupal native driver.

All driver exceptions inherit from ``DrupalDriverError`` so a harness can
catch everything raised by the driver with a single clause while still
reacting to individual failure kinds.

Exception tree::

    DrupalDriverError
    ├── BootstrapException
    ├── RoleNotFoundError
    ├── UnsupportedOperationError
    ├── AdapterInvocationError
    └── ConfigurationError
"""

from __future__ import annotations


class DrupalDriverError(Exception):
    """Base exception for all Drupal driver errors.

    Attributes:
        message: Human-readable error description.
        site: Optional installation root or URI that triggered the error.
        version: Optional Drupal major version the driver was bound to.
        details: Optional mapping of additional contextual data.

    The rendered message reads ``[site, Drupal 7] message (key=value)``,
    leaving out whichever context is unknown.

    """

    def __init__(
        self,
        message: str,
        site: str | None = None,
        details: dict[str, object] | None = None,
        *,
        version: int | None = None,
    ) -> None:
        """Initialize with a message and optional site, version and details."""
        self.message = message
        self.site = site
        self.version = version
        self.details = details or {}
        super().__init__(self._format_message())

    @property
    def context(self) -> str:
        """Return the bracketed site and version prefix, or ``""``."""
        labels = [self.site] if self.site else []
        if self.version is not None:
            labels.append(f"Drupal {self.version}")
        return f"[{', '.join(labels)}]" if labels else ""

    def _format_message(self) -> str:
        text = f"{self.context} {self.message}".lstrip()
        if self.details:
            text += " (" + ", ".join(f"{k}={v}" for k, v in self.details.items()) + ")"
        return text


class BootstrapException(DrupalDriverError):
    """Raised when the installation cannot be identified or initialized.

    Fatal to the driver instance that raised it.

    Examples:
        - No version marker defines a ``VERSION`` constant
        - Non-numeric major version string
        - No core registered for the detected major version
        - No native runtime available for the detected major version
        - The native bootstrap call itself fails

    """


class RoleNotFoundError(DrupalDriverError):
    """Raised when a role name does not resolve to an existing role.

    Recoverable by the caller, e.g. by creating the role first.
    """


class UnsupportedOperationError(DrupalDriverError):
    """Raised when the bound core lacks the requested capability.

    Examples:
        - Watchdog access on Drupal 6 or 7
        - Theme or install profile sub-context discovery

    """


class AdapterInvocationError(DrupalDriverError):
    """Raised when a native Drupal call fails unexpectedly.

    The original exception is chained as ``__cause__`` and its text is
    recorded under ``details["original_error"]``.
    """


class ConfigurationError(DrupalDriverError):
    """Raised when driver settings are missing or malformed.

    Examples:
        - Settings file not found
        - YAML document is not a mapping
        - ``drupal_root`` not provided

    """
