"""Drivers exposed to the test harness.

``DrupalDriver`` bootstraps Drupal in-process and forwards every
operation to the core bound for the detected major version.
"""

from .base_driver import BaseDriver
from .drupal_driver import DrupalDriver
from .subcontext import SubContextFinder, SubContextPathCollector

__all__ = [
    "BaseDriver",
    "DrupalDriver",
    "SubContextFinder",
    "SubContextPathCollector",
]
