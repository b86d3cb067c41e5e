"""Core module providing the core contract, version detection, and errors.

This module contains the foundational components of the Drupal driver
including the abstract base core, record types, the version resolver,
native runtime loading, and the custom exception hierarchy.
"""

from .exceptions import (
    AdapterInvocationError,
    BootstrapException,
    ConfigurationError,
    DrupalDriverError,
    RoleNotFoundError,
    UnsupportedOperationError,
)

__all__ = [
    "AdapterInvocationError",
    "BootstrapException",
    "ConfigurationError",
    "DrupalDriverError",
    "RoleNotFoundError",
    "UnsupportedOperationError",
]
