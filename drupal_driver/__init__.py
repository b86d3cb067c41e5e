"""Drupal Native Driver.

Lets a test-automation harness manipulate a Drupal 6, 7, or 8 site
through the application's native in-process API.  The installed major
version is detected at runtime and every operation is routed to a
version-specific core behind a single driver interface.
"""

__version__ = "1.0.0"
