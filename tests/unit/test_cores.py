"""Unit tests for the Drupal 6, 7 and 8 cores against fake runtimes."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from drupal_driver.core.base_core import Installation, LogSeverity, NodeRecord, UserRecord
from drupal_driver.core.exceptions import (
    AdapterInvocationError,
    BootstrapException,
    RoleNotFoundError,
    UnsupportedOperationError,
)
from drupal_driver.cores.drupal6_core import Drupal6Core
from drupal_driver.cores.drupal7_core import Drupal7Core
from drupal_driver.cores.drupal8_core import Drupal8Core
from tests.fixtures.drupal_fake import (
    FakeDrupal6Runtime,
    FakeDrupal7Runtime,
    FakeDrupal8Runtime,
    SiteBuilder,
)


@pytest.fixture
def installation(make_site: SiteBuilder) -> Installation:
    """Installation with a default settings.php."""
    return Installation(root=os.path.realpath(make_site(7)), uri="http://localhost")


@pytest.fixture
def d7_core(installation: Installation, drupal7_runtime: FakeDrupal7Runtime) -> Drupal7Core:
    """Drupal 7 core on a fake runtime."""
    return Drupal7Core(installation, drupal7_runtime)


@pytest.fixture
def d6_core(installation: Installation, drupal6_runtime: FakeDrupal6Runtime) -> Drupal6Core:
    """Drupal 6 core on a fake runtime."""
    return Drupal6Core(installation, drupal6_runtime)


@pytest.fixture
def d8_core(installation: Installation, drupal8_runtime: FakeDrupal8Runtime) -> Drupal8Core:
    """Drupal 8 core on a fake runtime."""
    return Drupal8Core(installation, drupal8_runtime)


class TestDrupal7Core:
    """Tests for the procedural Drupal 7 core."""

    def test_bootstrap_runs_full_phase(
        self, d7_core: Drupal7Core, drupal7_runtime: FakeDrupal7Runtime
    ) -> None:
        assert not d7_core.is_bootstrapped()
        d7_core.bootstrap()
        assert drupal7_runtime.bootstrap_phases == [7]
        assert d7_core.is_bootstrapped()

    def test_bootstrap_requires_settings(
        self, make_site: SiteBuilder, drupal7_runtime: FakeDrupal7Runtime
    ) -> None:
        root = make_site(7, name="nosettings", settings=False)
        core = Drupal7Core(Installation(root=str(root), uri="http://localhost"), drupal7_runtime)
        with pytest.raises(BootstrapException, match="settings.php"):
            core.bootstrap()
        assert drupal7_runtime.bootstrap_phases == []

    def test_bootstrap_failure_is_bootstrap_exception(
        self, d7_core: Drupal7Core, drupal7_runtime: FakeDrupal7Runtime
    ) -> None:
        drupal7_runtime.bootstrap_error = RuntimeError("database unavailable")
        with pytest.raises(BootstrapException) as exc_info:
            d7_core.bootstrap()
        assert exc_info.value.details["original_error"] == "database unavailable"
        assert not d7_core.is_bootstrapped()

    def test_user_create_keeps_plain_password(
        self, d7_core: Drupal7Core, drupal7_runtime: FakeDrupal7Runtime
    ) -> None:
        user = UserRecord(name="editor", mail="e@example.com", password="secret", status=1)
        d7_core.user_create(user)
        assert user.uid == 2
        assert user.password == "secret"
        assert drupal7_runtime.users[2]["pass"] == "$S$hash-of-secret"

    def test_user_create_refused(
        self, d7_core: Drupal7Core, drupal7_runtime: FakeDrupal7Runtime
    ) -> None:
        drupal7_runtime.user_save = lambda account, edit: False  # type: ignore[method-assign]
        with pytest.raises(AdapterInvocationError, match="refused"):
            d7_core.user_create(UserRecord(name="editor"))

    def test_user_create_non_numeric_uid(
        self, d7_core: Drupal7Core, drupal7_runtime: FakeDrupal7Runtime
    ) -> None:
        drupal7_runtime.user_save = lambda account, edit: {"uid": "u-2"}  # type: ignore[method-assign]
        user = UserRecord(name="editor")
        with pytest.raises(AdapterInvocationError, match="non-numeric uid") as exc_info:
            d7_core.user_create(user)
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert exc_info.value.version == 7
        assert user.uid is None

    def test_user_delete_cancels_with_delete_policy(
        self, d7_core: Drupal7Core, drupal7_runtime: FakeDrupal7Runtime
    ) -> None:
        user = d7_core.user_create(UserRecord(name="editor"))
        d7_core.user_delete(user)
        assert drupal7_runtime.cancelled == [(user.uid, "user_cancel_delete")]
        assert drupal7_runtime.batches == 1
        assert user.uid not in drupal7_runtime.users

    def test_user_add_role(
        self, d7_core: Drupal7Core, drupal7_runtime: FakeDrupal7Runtime
    ) -> None:
        user = d7_core.user_create(UserRecord(name="editor"))
        d7_core.user_add_role(user, "editor")
        assert drupal7_runtime.granted[user.uid] == {3}
        assert user.roles == ["editor"]

    def test_user_add_missing_role(
        self, d7_core: Drupal7Core, drupal7_runtime: FakeDrupal7Runtime
    ) -> None:
        user = d7_core.user_create(UserRecord(name="editor", roles=["authenticated user"]))
        with pytest.raises(RoleNotFoundError, match='No role "publisher" exists.'):
            d7_core.user_add_role(user, "publisher")
        assert user.roles == ["authenticated user"]
        assert not drupal7_runtime.granted[user.uid]

    def test_node_create_defaults_to_published(
        self, d7_core: Drupal7Core, drupal7_runtime: FakeDrupal7Runtime
    ) -> None:
        node = d7_core.node_create(NodeRecord(type="article", title="Hello"))
        assert node.nid == 1
        assert node.status == 1
        assert drupal7_runtime.nodes[1]["status"] == 1

    def test_node_create_keeps_unpublished(
        self, d7_core: Drupal7Core, drupal7_runtime: FakeDrupal7Runtime
    ) -> None:
        node = d7_core.node_create(NodeRecord(type="article", title="Draft", status=0))
        assert drupal7_runtime.nodes[node.nid]["status"] == 0

    def test_clear_cache_runs_in_root(
        self, d7_core: Drupal7Core, drupal7_runtime: FakeDrupal7Runtime
    ) -> None:
        before = os.getcwd()
        d7_core.clear_cache()
        assert drupal7_runtime.flush_cwd == d7_core.root
        assert os.getcwd() == before

    def test_clear_cache_restores_cwd_on_failure(
        self, d7_core: Drupal7Core, drupal7_runtime: FakeDrupal7Runtime
    ) -> None:
        drupal7_runtime.flush_error = RuntimeError("registry rebuild failed")
        before = os.getcwd()
        with pytest.raises(AdapterInvocationError):
            d7_core.clear_cache()
        assert drupal7_runtime.flush_cwd == d7_core.root
        assert os.getcwd() == before

    @pytest.mark.parametrize("count", [1, 10, 0, -5])
    def test_fetch_log_unsupported(self, d7_core: Drupal7Core, count: int) -> None:
        with pytest.raises(UnsupportedOperationError):
            d7_core.fetch_log(count, "php", 3)

    def test_module_enumeration(self, d7_core: Drupal7Core) -> None:
        assert d7_core.module_list() == ["system", "user", "node", "behat_steps"]
        assert d7_core.module_path("behat_steps") == "sites/all/modules/custom/behat_steps"


class TestDrupal6Core:
    """Tests for the Drupal 6 differences."""

    def test_bootstrap_phase(
        self, d6_core: Drupal6Core, drupal6_runtime: FakeDrupal6Runtime
    ) -> None:
        d6_core.bootstrap()
        assert drupal6_runtime.bootstrap_phases == [8]

    def test_user_delete_uses_user_delete(
        self, d6_core: Drupal6Core, drupal6_runtime: FakeDrupal6Runtime
    ) -> None:
        user = d6_core.user_create(UserRecord(name="editor"))
        d6_core.user_delete(user)
        assert drupal6_runtime.deleted == [user.uid]

    def test_role_resolved_from_user_roles(
        self, d6_core: Drupal6Core, drupal6_runtime: FakeDrupal6Runtime
    ) -> None:
        user = d6_core.user_create(UserRecord(name="editor"))
        d6_core.user_add_role(user, "editor")
        assert drupal6_runtime.granted[user.uid] == {3}

    def test_missing_role(self, d6_core: Drupal6Core) -> None:
        user = d6_core.user_create(UserRecord(name="editor"))
        with pytest.raises(RoleNotFoundError):
            d6_core.user_add_role(user, "publisher")
        assert user.roles == []

    def test_fetch_log_unsupported(self, d6_core: Drupal6Core) -> None:
        with pytest.raises(UnsupportedOperationError):
            d6_core.fetch_log()


class TestDrupal8Core:
    """Tests for the entity-based Drupal 8 core."""

    def test_always_reports_bootstrapped(
        self, d8_core: Drupal8Core, drupal8_runtime: FakeDrupal8Runtime
    ) -> None:
        assert d8_core.is_bootstrapped()
        d8_core.bootstrap()
        assert drupal8_runtime.kernel_uri == "http://localhost"

    def test_kernel_boot_failure(
        self, d8_core: Drupal8Core, drupal8_runtime: FakeDrupal8Runtime
    ) -> None:
        drupal8_runtime.bootstrap_error = RuntimeError("container missing")
        with pytest.raises(BootstrapException):
            d8_core.bootstrap()

    def test_user_create_entity(
        self, d8_core: Drupal8Core, drupal8_runtime: FakeDrupal8Runtime
    ) -> None:
        user = d8_core.user_create(UserRecord(name="editor", password="secret", status=1))
        assert user.uid == 2
        assert user.password == "secret"
        assert drupal8_runtime.users[2]["pass"] == "$S$hash-of-secret"

    def test_user_save_failure_wrapped(
        self, d8_core: Drupal8Core, drupal8_runtime: FakeDrupal8Runtime
    ) -> None:
        drupal8_runtime.save_error = RuntimeError("duplicate name")
        with pytest.raises(AdapterInvocationError, match="save") as exc_info:
            d8_core.user_create(UserRecord(name="editor"))
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_node_create_non_numeric_id(
        self, d8_core: Drupal8Core, drupal8_runtime: FakeDrupal8Runtime
    ) -> None:
        drupal8_runtime.store = lambda entity_type, values: "node-1"  # type: ignore[method-assign]
        with pytest.raises(AdapterInvocationError, match="non-numeric id") as exc_info:
            d8_core.node_create(NodeRecord(type="article", title="Hello"))
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_user_add_role_uses_entity_id(
        self, d8_core: Drupal8Core, drupal8_runtime: FakeDrupal8Runtime
    ) -> None:
        user = d8_core.user_create(UserRecord(name="editor"))
        d8_core.user_add_role(user, "Editor")
        assert drupal8_runtime.granted[user.uid] == {"editor"}
        with pytest.raises(RoleNotFoundError):
            d8_core.user_add_role(user, "Publisher")
        assert user.roles == ["Editor"]

    def test_user_delete(
        self, d8_core: Drupal8Core, drupal8_runtime: FakeDrupal8Runtime
    ) -> None:
        user = d8_core.user_create(UserRecord(name="editor"))
        d8_core.user_delete(user)
        assert drupal8_runtime.cancelled == [(user.uid, "user_cancel_delete")]
        assert drupal8_runtime.batches == 1

    def test_node_create_defaults_to_published(
        self, d8_core: Drupal8Core, drupal8_runtime: FakeDrupal8Runtime
    ) -> None:
        node = d8_core.node_create(NodeRecord(type="article", title="Hello"))
        assert drupal8_runtime.nodes[node.nid]["status"] == 1

    def test_fetch_log_newest_first(self, d8_core: Drupal8Core) -> None:
        entries = d8_core.fetch_log(2)
        assert [entry.wid for entry in entries] == [3, 2]
        assert entries[0].render() == "article: added Hello."

    def test_fetch_log_filters(self, d8_core: Drupal8Core) -> None:
        entries = d8_core.fetch_log(10, "user", LogSeverity.NOTICE)
        assert [entry.wid for entry in entries] == [1]
        assert entries[0].severity is LogSeverity.NOTICE
        assert d8_core.fetch_log(10, severity=LogSeverity.ERROR)[0].type == "php"

    @pytest.mark.parametrize("count", [0, -1, True])
    def test_fetch_log_rejects_bad_count(self, d8_core: Drupal8Core, count: int) -> None:
        with pytest.raises(ValueError, match="count"):
            d8_core.fetch_log(count)

    def test_fetch_log_malformed_row(
        self, d8_core: Drupal8Core, drupal8_runtime: FakeDrupal8Runtime
    ) -> None:
        drupal8_runtime.log = [{"wid": 9, "type": "php"}]
        with pytest.raises(AdapterInvocationError, match="Malformed"):
            d8_core.fetch_log()

    def test_clear_cache_runs_in_root(
        self,
        d8_core: Drupal8Core,
        drupal8_runtime: FakeDrupal8Runtime,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)
        d8_core.clear_cache("render")
        assert drupal8_runtime.flush_cwd == d8_core.root
        assert os.path.realpath(os.getcwd()) == os.path.realpath(tmp_path)
