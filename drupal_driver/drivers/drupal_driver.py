"""Driver that fully bootstraps Drupal and uses its native API.

``DrupalDriver`` is the object the test harness talks to.  On
construction it resolves the real Drupal root, detects the major
version, loads the native runtime for it and binds exactly one core.
Every operation is then forwarded to that core after the input is
validated and defaulted.  Generated ids are copied back into the
caller's record.  Failures are reported through the driver's exception
hierarchy.

Usage::

    driver = DrupalDriver("/var/www/drupal", "http://localhost")
    driver.bootstrap()
    user = driver.create_user({"name": "editor", "pass": "secret"})
    driver.add_user_role(user, "editor")
    driver.clear_cache()
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping, MutableMapping
from pathlib import Path
from typing import Any, TypeVar

from ..config.settings import DriverSettings, load_settings
from ..core.base_core import (
    BaseCore,
    BootstrapState,
    Installation,
    LogEntry,
    NodeRecord,
    UserRecord,
)
from ..core.exceptions import (
    AdapterInvocationError,
    BootstrapException,
    DrupalDriverError,
)
from ..core.runtime import EntryPointRuntimeLoader, RuntimeLoader
from ..core.version_resolver import VersionResolver
from ..cores.core_factory import CoreFactory
from .base_driver import DEFAULT_LOG_COUNT, BaseDriver
from .subcontext import SubContextFinder, SubContextPathCollector

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", UserRecord, NodeRecord)


class DrupalDriver(BaseDriver, SubContextFinder):
    """Drive a Drupal installation in-process through its native API.

    A driver never exists without a bound core: any failure while
    detecting the version, loading the runtime or binding the core makes
    the constructor raise ``BootstrapException``.

    Not safe for concurrent use.  Drupal's bootstrapped state is global
    to the process, so only one installation should be bootstrapped per
    process.

    Args:
        drupal_root: Path to the Drupal root; symlinks are resolved.
        uri: Site URI, e.g. ``http://localhost``.
        runtime_loader: Callable returning the native runtime handle for
            a major version.  Defaults to entry-point lookup.
        core_factory: Registration table of cores per major version.
        resolver: Version resolver to use.

    """

    def __init__(
        self,
        drupal_root: str | os.PathLike[str],
        uri: str,
        *,
        runtime_loader: RuntimeLoader | None = None,
        core_factory: CoreFactory | None = None,
        resolver: VersionResolver | None = None,
    ) -> None:
        """Resolve the installation and bind the matching core."""
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        root = os.path.realpath(drupal_root)
        if not os.path.isdir(root):
            raise BootstrapException(
                f"Drupal root {drupal_root} is not a directory",
                site=str(drupal_root),
            )
        self._installation = Installation(root=root, uri=uri)
        self._state = BootstrapState.NOT_BOOTSTRAPPED

        self._version = (resolver or VersionResolver()).resolve(root)

        factory = core_factory or CoreFactory()
        if self._version not in factory.supported_versions:
            supported = ", ".join(str(v) for v in factory.supported_versions)
            raise BootstrapException(
                f"Unsupported Drupal version {self._version}. Supported: {supported}",
                site=root,
                version=self._version,
            )

        loader = runtime_loader or EntryPointRuntimeLoader()
        try:
            runtime = loader(self._version, self._installation)
        except BootstrapException:
            raise
        except Exception as exc:
            raise BootstrapException(
                f"Failed to load native runtime for Drupal {self._version}",
                site=root,
                version=self._version,
                details={"original_error": str(exc)},
            ) from exc

        try:
            self._core: BaseCore = factory.create(self._version, self._installation, runtime)
        except BootstrapException:
            raise
        except Exception as exc:
            raise BootstrapException(
                f"Failed to bind core for Drupal {self._version}",
                site=root,
                version=self._version,
                details={"original_error": str(exc)},
            ) from exc
        self._subcontexts = SubContextPathCollector(self)
        self._logger.info(
            "Bound %s to %s (%s)", self._core.__class__.__name__, root, uri
        )

    @classmethod
    def from_settings(cls, settings: DriverSettings, **kwargs: Any) -> DrupalDriver:
        """Create a driver from ``DriverSettings``.

        Keyword arguments are passed to the constructor; a
        ``runtime_loader`` given here overrides the configured group.
        """
        kwargs.setdefault(
            "runtime_loader", EntryPointRuntimeLoader(settings.runtime_entry_point_group)
        )
        return cls(settings.drupal_root, settings.uri, **kwargs)

    @classmethod
    def from_config(cls, path: str | Path, **kwargs: Any) -> DrupalDriver:
        """Create a driver from a YAML settings file."""
        return cls.from_settings(load_settings(path), **kwargs)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(version={self._version}, root={self.root!r})"

    # -- Properties ---------------------------------------------------------

    @property
    def core(self) -> BaseCore:
        """Return the bound version-specific core."""
        return self._core

    @property
    def version(self) -> int:
        """Return the detected Drupal major version."""
        return self._version

    @property
    def installation(self) -> Installation:
        """Return the installation this driver operates on."""
        return self._installation

    @property
    def root(self) -> str:
        """Return the real path of the Drupal root."""
        return self._installation.root

    @property
    def uri(self) -> str:
        """Return the site URI."""
        return self._installation.uri

    @property
    def state(self) -> BootstrapState:
        """Return the driver's bootstrap state."""
        return self._state

    # -- Lifecycle ----------------------------------------------------------

    def bootstrap(self) -> None:
        """Bootstrap Drupal once; later calls are no-ops.

        Raises:
            BootstrapException: If the core fails to initialize.

        """
        if self._state is BootstrapState.BOOTSTRAPPED:
            self._logger.warning("Drupal at %s is already bootstrapped", self.root)
            return
        try:
            self._core.bootstrap()
        except BootstrapException:
            raise
        except Exception as exc:
            raise BootstrapException(
                f"Bootstrap failed: {exc}",
                site=self.uri,
                version=self._version,
            ) from exc
        self._state = BootstrapState.BOOTSTRAPPED
        self._logger.info("Bootstrapped Drupal %d at %s", self._version, self.root)

    def is_bootstrapped(self) -> bool:
        """Return the driver's own view of the bootstrap state.

        This reflects calls made through the driver, not changes made to
        Drupal behind its back.
        """
        return self._state is BootstrapState.BOOTSTRAPPED

    # -- Users --------------------------------------------------------------

    def create_user(self, user: UserRecord | MutableMapping[str, Any]) -> Any:
        """Create an account, defaulting its status to active.

        Args:
            user: A ``UserRecord`` or a mapping of user fields.

        Returns:
            The object passed in, with ``uid`` set.

        """
        record = self._coerce(user, UserRecord)
        record.apply_defaults()
        self._call("create_user", self._core.user_create, record)
        self._write_back(user, "uid", record.uid)
        return user

    def delete_user(self, user: UserRecord | Mapping[str, Any]) -> None:
        """Delete an account created earlier, together with its content."""
        record = self._coerce(user, UserRecord)
        self._require_id(record.uid, "uid")
        self._call("delete_user", self._core.user_delete, record)

    def add_user_role(self, user: UserRecord | MutableMapping[str, Any], role_name: str) -> None:
        """Grant the role named *role_name* to an existing account.

        Raises:
            RoleNotFoundError: If the role does not exist; the record's
                roles are left unchanged.

        """
        record = self._coerce(user, UserRecord)
        self._require_id(record.uid, "uid")
        if not role_name:
            raise ValueError("role_name must not be empty")
        self._call("add_user_role", self._core.user_add_role, record, role_name)
        self._write_back(user, "roles", list(record.roles))

    # -- Content ------------------------------------------------------------

    def create_node(self, node: NodeRecord | MutableMapping[str, Any]) -> Any:
        """Create content, defaulting its status to published.

        Args:
            node: A ``NodeRecord`` or a mapping of node fields.

        Returns:
            The object passed in, with ``nid`` set.

        """
        record = self._coerce(node, NodeRecord)
        record.apply_defaults()
        self._call("create_node", self._core.node_create, record)
        self._write_back(node, "nid", record.nid)
        return node

    # -- Maintenance --------------------------------------------------------

    def clear_cache(self, cache_type: str | None = None) -> None:
        """Flush all Drupal caches."""
        self._call("clear_cache", self._core.clear_cache, cache_type)

    def fetch_log(
        self,
        count: int = DEFAULT_LOG_COUNT,
        log_type: str | None = None,
        severity: int | None = None,
    ) -> list[LogEntry]:
        """Return recent watchdog entries.

        Raises:
            UnsupportedOperationError: If the bound core has no log access.

        """
        return self._call("fetch_log", self._core.fetch_log, count, log_type, severity)

    def get_sub_context_paths(self) -> list[str]:
        """Return the directories of all enabled modules.

        Bootstraps Drupal first if necessary.
        """
        return self._call("get_sub_context_paths", self._subcontexts.get_paths)

    # -- Internal helpers ---------------------------------------------------

    def _call(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        """Invoke a core operation and translate unexpected failures.

        Driver errors and caller errors (``ValueError``) propagate
        unchanged; anything else becomes ``AdapterInvocationError``.
        """
        try:
            return func(*args)
        except (DrupalDriverError, ValueError):
            raise
        except Exception as exc:
            self._logger.error("%s failed on %s: %s", operation, self.uri, exc)
            raise AdapterInvocationError(
                f"{operation} failed: {exc}",
                site=self.uri,
                details={"original_error": repr(exc)},
            ) from exc

    @staticmethod
    def _coerce(value: Any, record_cls: type[RecordT]) -> RecordT:
        if isinstance(value, record_cls):
            return value
        if isinstance(value, Mapping):
            return record_cls.from_mapping(value)
        raise TypeError(
            f"Expected {record_cls.__name__} or mapping, got {type(value).__name__}"
        )

    @staticmethod
    def _require_id(value: int | None, name: str) -> None:
        if value is None:
            raise ValueError(f"Record has no '{name}'; create it through the driver first")

    @staticmethod
    def _write_back(target: Any, key: str, value: Any) -> None:
        """Copy *value* into a caller-supplied mapping; records are updated in place."""
        if isinstance(target, MutableMapping):
            target[key] = value
