"""Shared pytest fixtures for the Drupal native driver.

Provides installation trees built under ``tmp_path``, fake native
runtimes for Drupal 6, 7 and 8, and drivers bound to them.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from drupal_driver.drivers.drupal_driver import DrupalDriver
from tests.fixtures.drupal_fake import (
    FakeDrupal6Runtime,
    FakeDrupal7Runtime,
    FakeDrupal8Runtime,
    SiteBuilder,
    loader_for,
    write_marker,
)

# ---------------------------------------------------------------------------
# Installation trees
# ---------------------------------------------------------------------------


@pytest.fixture
def make_site(tmp_path: Path) -> SiteBuilder:
    """Factory building a Drupal root with the given version markers."""

    def _make(*majors: int, name: str = "drupal", settings: bool = True, **versions: str) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for major in majors:
            write_marker(root, major, versions.get(f"d{major}"))
        if settings:
            site_dir = root / "sites" / "default"
            site_dir.mkdir(parents=True, exist_ok=True)
            (site_dir / "settings.php").write_text("<?php\n", encoding="utf-8")
        return root

    return _make


# ---------------------------------------------------------------------------
# Runtime fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def drupal6_runtime() -> FakeDrupal6Runtime:
    """Fake Drupal 6 runtime."""
    return FakeDrupal6Runtime()


@pytest.fixture
def drupal7_runtime() -> FakeDrupal7Runtime:
    """Fake Drupal 7 runtime."""
    return FakeDrupal7Runtime()


@pytest.fixture
def drupal8_runtime() -> FakeDrupal8Runtime:
    """Fake Drupal 8 runtime with a few watchdog entries."""
    runtime = FakeDrupal8Runtime()
    runtime.log = [
        {"wid": 1, "type": "user", "severity": 5, "message": "Session opened for %name.",
         "variables": {"%name": "admin"}, "timestamp": 1700000000},
        {"wid": 2, "type": "php", "severity": 3, "message": "Undefined index: @key",
         "variables": {"@key": "title"}, "timestamp": 1700000100},
        {"wid": 3, "type": "content", "severity": 5, "message": "article: added %title.",
         "variables": {"%title": "Hello"}, "timestamp": 1700000200},
    ]
    return runtime


# ---------------------------------------------------------------------------
# Driver fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def drupal6_driver(make_site: SiteBuilder, drupal6_runtime: FakeDrupal6Runtime) -> DrupalDriver:
    """Driver bound to a Drupal 6 site."""
    root = make_site(6, name="d6")
    return DrupalDriver(root, "http://localhost", runtime_loader=loader_for(drupal6_runtime))


@pytest.fixture
def drupal7_driver(make_site: SiteBuilder, drupal7_runtime: FakeDrupal7Runtime) -> DrupalDriver:
    """Driver bound to a Drupal 7 site (system.module present without VERSION)."""
    root = make_site(6, 7, name="d7", d6="")
    return DrupalDriver(root, "http://localhost", runtime_loader=loader_for(drupal7_runtime))


@pytest.fixture
def drupal8_driver(make_site: SiteBuilder, drupal8_runtime: FakeDrupal8Runtime) -> DrupalDriver:
    """Driver bound to a Drupal 8 site."""
    root = make_site(8, name="d8")
    return DrupalDriver(root, "http://localhost", runtime_loader=loader_for(drupal8_runtime))


# ---------------------------------------------------------------------------
# Pytest configuration
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
