"""Drupal major version detection from the installation directory.

Probes version marker files in ascending version order and scans each
existing marker for a ``VERSION`` constant definition without executing
it.  When more than one marker defines a version, the marker probed last
wins.  Upgraded or nested installations can therefore resolve to the newer
version even when an older marker is still on disk.

Usage::

    resolver = VersionResolver()
    version = resolver.resolve("/var/www/drupal")  # -> 7
"""

from __future__ import annotations

import logging
import os
import re

from .exceptions import BootstrapException

logger = logging.getLogger(__name__)

# Ordered oldest to newest; later entries take precedence.
VERSION_MARKERS: tuple[tuple[str, int], ...] = (
    ("modules/system/system.module", 6),
    ("includes/bootstrap.inc", 7),
    ("core/includes/bootstrap.inc", 8),
)

VERSION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"""define\(\s*['"]VERSION['"]\s*,\s*['"]([^'"]+)['"]\s*\)"""),
    re.compile(r"""\bconst\s+VERSION\s*=\s*['"]([^'"]+)['"]"""),
    re.compile(r"""^\s*VERSION\s*=\s*['"]([^'"]+)['"]""", re.MULTILINE),
)


def read_version_constant(marker_path: str) -> str | None:
    """Return the ``VERSION`` constant defined in *marker_path*, if any."""
    with open(marker_path, encoding="utf-8", errors="replace") as fh:
        source = fh.read()
    for pattern in VERSION_PATTERNS:
        match = pattern.search(source)
        if match:
            return match.group(1)
    return None


def parse_major_version(version: str) -> int:
    """Extract the leading numeric component of a version string.

    Raises:
        BootstrapException: If the leading component is not numeric.

    """
    leading = version.split(".")[0].strip()
    if not leading.isdigit():
        raise BootstrapException(
            f"Unable to extract major Drupal core version from version string {version}.",
            details={"version": version},
        )
    return int(leading)


def resolve_major_version(drupal_root: str) -> int:
    """Determine the major Drupal version installed at *drupal_root*.

    Every marker that exists is scanned; the last ``VERSION`` definition
    found wins.

    Args:
        drupal_root: Real path of the Drupal root.

    Returns:
        The major version number, e.g. ``7``.

    Raises:
        BootstrapException: If a marker cannot be read, no marker defines a
            version, or the version string is not numeric.

    """
    version: str | None = None
    for relative_path, marker_version in VERSION_MARKERS:
        marker_path = os.path.join(drupal_root, *relative_path.split("/"))
        if not os.path.isfile(marker_path):
            continue
        try:
            defined = read_version_constant(marker_path)
        except OSError as exc:
            raise BootstrapException(
                f"Unable to read Drupal {marker_version} version marker",
                site=drupal_root,
                details={"marker": relative_path, "original_error": str(exc)},
            ) from exc
        if defined is None:
            logger.warning(
                "Drupal %d marker %s defines no VERSION; ignoring it",
                marker_version,
                relative_path,
            )
            continue
        logger.debug("Probed Drupal %d marker %s: %s", marker_version, relative_path, defined)
        version = defined

    if version is None:
        raise BootstrapException(
            "Unable to determine Drupal core version. Supported versions are 6, 7, and 8.",
            site=drupal_root,
        )
    return parse_major_version(version)


class VersionResolver:
    """Resolve and memoize the major version of Drupal installations.

    Each root is resolved at most once per resolver; later changes on disk
    are not observed.
    """

    def __init__(self) -> None:
        """Initialize an empty resolution cache."""
        self._cache: dict[str, int] = {}
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def resolve(self, drupal_root: str) -> int:
        """Return the major version of the installation at *drupal_root*.

        Raises:
            BootstrapException: See ``resolve_major_version``.

        """
        key = os.path.realpath(drupal_root)
        if key not in self._cache:
            self._cache[key] = resolve_major_version(key)
            self._logger.info("Detected Drupal %d at %s", self._cache[key], key)
        return self._cache[key]

