"""Version-specific Drupal core implementations.

Each core subclasses ``BaseCore`` and talks to one Drupal major version
through its native runtime handle.

The ``CoreFactory`` creates the correct core instance based on the major
version detected by the ``VersionResolver``.
"""

from .core_factory import CoreFactory
from .drupal6_core import Drupal6Core
from .drupal7_core import Drupal7Core
from .drupal8_core import Drupal8Core

__all__ = [
    "CoreFactory",
    "Drupal6Core",
    "Drupal7Core",
    "Drupal8Core",
]
