"""Abstract base class for version-specific Drupal cores.

Defines the capability contract every core must implement, the record
types passed across it, and concrete helpers shared by all cores such
as native call wrapping and the scoped working-directory switch used
while flushing caches.

Usage::

    core = Drupal7Core(installation, runtime)
    core.bootstrap()
    user = core.user_create(UserRecord(name="editor", mail="e@example.com"))
    core.user_add_role(user, "editor")
"""

from __future__ import annotations

import abc
import contextlib
import copy
import logging
import os
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Any, ClassVar
from urllib.parse import urlparse

from .exceptions import (
    AdapterInvocationError,
    BootstrapException,
    DrupalDriverError,
    RoleNotFoundError,
    UnsupportedOperationError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

USER_CANCEL_DELETE = "user_cancel_delete"
DEFAULT_SITE_DIRECTORY = "default"


class MajorVersion(IntEnum):
    """Supported Drupal major versions."""

    DRUPAL_6 = 6
    DRUPAL_7 = 7
    DRUPAL_8 = 8


class BootstrapState(StrEnum):
    """Bootstrap state tracked by the driver."""

    NOT_BOOTSTRAPPED = "not-bootstrapped"
    BOOTSTRAPPED = "bootstrapped"


class UserStatus(IntEnum):
    """Account status flag values."""

    BLOCKED = 0
    ACTIVE = 1


class NodeStatus(IntEnum):
    """Content publishing flag values."""

    NOT_PUBLISHED = 0
    PUBLISHED = 1


class LogSeverity(IntEnum):
    """Watchdog severity levels (RFC 5424)."""

    EMERGENCY = 0
    ALERT = 1
    CRITICAL = 2
    ERROR = 3
    WARNING = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7


@dataclass(frozen=True)
class Installation:
    """Immutable identity of the Drupal site under test.

    Attributes:
        root: Real, symlink-free absolute path of the Drupal root.
        uri: Site URI used to select the site directory and base URL.

    """

    root: str
    uri: str

    @property
    def host(self) -> str:
        """Return the host part of the site URI (``default`` if absent)."""
        parsed = urlparse(self.uri if "://" in self.uri else f"http://{self.uri}")
        return parsed.hostname or DEFAULT_SITE_DIRECTORY


def _coerce_status(value: Any, field_name: str) -> int | None:
    """Normalize a status flag to ``0``/``1`` or ``None`` when unset."""
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int) and value in (0, 1):
        return value
    raise ValueError(f"{field_name} must be 0 or 1, got {value!r}")


@dataclass
class UserRecord:
    """A Drupal user account as supplied by the harness.

    Attributes:
        name: Account name.
        mail: E-mail address.
        password: Plain-text password. Never replaced by the stored hash.
        status: ``1`` for active, ``0`` for blocked, ``None`` when unset.
        roles: Role names assigned through the driver.
        uid: Identity assigned by Drupal after creation.
        fields: Additional values forwarded verbatim to ``user_save``.

    """

    name: str
    mail: str = ""
    password: str | None = None
    status: int | None = None
    roles: list[str] = field(default_factory=list)
    uid: int | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    KNOWN_KEYS: ClassVar[frozenset[str]] = frozenset(
        {"name", "mail", "pass", "password", "status", "roles", "uid"}
    )

    def __post_init__(self) -> None:
        self.status = _coerce_status(self.status, "status")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> UserRecord:
        """Build a record from a flat mapping, keeping unknown keys in ``fields``."""
        if not data.get("name"):
            raise ValueError("User record requires a 'name'")
        return cls(
            name=str(data["name"]),
            mail=str(data.get("mail", "")),
            password=data.get("pass", data.get("password")),
            status=data.get("status"),
            roles=list(data.get("roles", [])),
            uid=data.get("uid"),
            fields={k: v for k, v in data.items() if k not in cls.KNOWN_KEYS},
        )

    def apply_defaults(self) -> UserRecord:
        """Default the status to active when not explicitly set."""
        if self.status is None:
            self.status = UserStatus.ACTIVE.value
        return self

    def to_edit(self) -> dict[str, Any]:
        """Return the ``$edit`` array passed to the native save call."""
        edit: dict[str, Any] = dict(self.fields)
        edit["name"] = self.name
        edit["mail"] = self.mail
        if self.password is not None:
            edit["pass"] = self.password
        if self.status is not None:
            edit["status"] = self.status
        if self.uid is not None:
            edit["uid"] = self.uid
        return edit


@dataclass
class NodeRecord:
    """A piece of Drupal content as supplied by the harness.

    Attributes:
        type: Content type machine name.
        title: Node title.
        body: Optional body text.
        uid: Author uid.
        status: ``1`` for published, ``0`` for unpublished, ``None`` when unset.
        nid: Identity assigned by Drupal after creation.
        fields: Additional values forwarded verbatim to ``node_save``.

    """

    type: str
    title: str
    body: str | None = None
    uid: int | None = None
    status: int | None = None
    nid: int | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    KNOWN_KEYS: ClassVar[frozenset[str]] = frozenset(
        {"type", "title", "body", "uid", "status", "nid"}
    )

    def __post_init__(self) -> None:
        self.status = _coerce_status(self.status, "status")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> NodeRecord:
        """Build a record from a flat mapping, keeping unknown keys in ``fields``."""
        missing = [key for key in ("type", "title") if not data.get(key)]
        if missing:
            raise ValueError(f"Node record requires {', '.join(repr(k) for k in missing)}")
        return cls(
            type=str(data["type"]),
            title=str(data["title"]),
            body=data.get("body"),
            uid=data.get("uid"),
            status=data.get("status"),
            nid=data.get("nid"),
            fields={k: v for k, v in data.items() if k not in cls.KNOWN_KEYS},
        )

    def apply_defaults(self) -> NodeRecord:
        """Default the status to published when not explicitly set."""
        if self.status is None:
            self.status = NodeStatus.PUBLISHED.value
        return self

    def to_values(self) -> dict[str, Any]:
        """Return the field values passed to the native save call."""
        values: dict[str, Any] = dict(self.fields)
        values["type"] = self.type
        values["title"] = self.title
        for key in ("body", "uid", "status", "nid"):
            value = getattr(self, key)
            if value is not None:
                values[key] = value
        return values


@dataclass(frozen=True)
class LogEntry:
    """Single watchdog entry.

    Attributes:
        wid: Watchdog entry id.
        type: Message category (usually the reporting module).
        severity: RFC 5424 severity level.
        message: Untranslated message with placeholders.
        variables: Placeholder substitutions for ``message``.
        timestamp: Unix timestamp of the entry.

    """

    wid: int
    type: str
    severity: LogSeverity
    message: str
    variables: dict[str, Any] = field(default_factory=dict)
    timestamp: int = 0

    def render(self) -> str:
        """Return the message with its placeholders substituted."""
        text = self.message
        for placeholder, value in self.variables.items():
            text = text.replace(placeholder, str(value))
        return text


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@contextlib.contextmanager
def working_directory(path: str) -> Iterator[str]:
    """Temporarily switch the process working directory to *path*.

    The previous directory is restored on every exit path, including
    exceptions raised inside the block.
    """
    previous = os.getcwd()
    os.chdir(path)
    try:
        yield path
    finally:
        os.chdir(previous)


def native_field(obj: Any, name: str) -> Any:
    """Read *name* from a native object that may be a mapping or an object."""
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


# ---------------------------------------------------------------------------
# Abstract base core
# ---------------------------------------------------------------------------


class BaseCore(abc.ABC):
    """Abstract base class for all version-specific Drupal cores.

    A core wraps the native runtime handle of one Drupal major version and
    exposes the uniform capability set the driver relies on.  Subclasses
    **must** implement every ``@abstractmethod``; ``clear_cache`` and
    ``fetch_log`` have shared implementations that cores may override.

    Args:
        installation: The site the core operates on.
        runtime: Native runtime handle exposing the version's primitives.

    """

    version: ClassVar[MajorVersion]

    def __init__(self, installation: Installation, runtime: Any) -> None:
        """Initialize the core with its installation and native runtime handle."""
        self._installation = installation
        self._runtime = runtime
        self._bootstrapped: bool = False
        self._logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(root={self.root!r}, uri={self.uri!r})"

    # -- Properties ---------------------------------------------------------

    @property
    def root(self) -> str:
        """Return the real path of the Drupal root."""
        return self._installation.root

    @property
    def uri(self) -> str:
        """Return the site URI."""
        return self._installation.uri

    @property
    def runtime(self) -> Any:
        """Return the native runtime handle."""
        return self._runtime

    # -- Abstract methods (version-specific) --------------------------------

    @abc.abstractmethod
    def bootstrap(self) -> None:
        """Fully bootstrap Drupal so its native API becomes callable.

        Not safe to call twice on every version; the driver guards it.

        Raises:
            BootstrapException: If initialization fails.

        """

    @abc.abstractmethod
    def user_create(self, user: UserRecord) -> UserRecord:
        """Save a new account and store the generated uid on *user*.

        The native save operates on a duplicate so the caller's password
        is never replaced by its hash.
        """

    @abc.abstractmethod
    def user_delete(self, user: UserRecord) -> None:
        """Cancel the account of *user*, deleting its content."""

    @abc.abstractmethod
    def user_add_role(self, user: UserRecord, role_name: str) -> None:
        """Grant the role named *role_name* to *user*.

        Raises:
            RoleNotFoundError: If no role with that name exists.

        """

    @abc.abstractmethod
    def node_create(self, node: NodeRecord) -> NodeRecord:
        """Save new content and store the generated nid on *node*."""

    # -- Shared implementations ---------------------------------------------

    def is_bootstrapped(self) -> bool:
        """Return the last-known bootstrap state.

        Out-of-band changes to the process-wide Drupal state are not
        detected.
        """
        return self._bootstrapped

    def clear_cache(self, cache_type: str | None = None) -> None:
        """Flush all caches from within the Drupal root.

        The registry requires the working directory to be the Drupal root;
        the previous directory is restored even if the flush fails.
        """
        self._logger.info("Flushing all caches for %s", self.uri)
        with working_directory(self.root):
            self._invoke("drupal_flush_all_caches")
        if cache_type is not None:
            self._logger.debug("Cache type '%s' requested, flushed all caches", cache_type)

    def module_list(self) -> list[str]:
        """Return enabled module names in Drupal's enumeration order."""
        modules = self._invoke("module_list")
        return [str(module) for module in modules]

    def module_path(self, module: str) -> str:
        """Return the path of *module* relative to the Drupal root."""
        return str(self._invoke("drupal_get_path", "module", module))

    def fetch_log(
        self,
        count: int = 10,
        log_type: str | None = None,
        severity: int | None = None,
    ) -> list[LogEntry]:
        """Return recent watchdog entries.

        Raises:
            UnsupportedOperationError: Unless the core overrides this method.

        """
        raise UnsupportedOperationError(
            f"No ability to access watchdog entries in {self!r}",
            site=self.uri,
            version=int(self.version),
        )

    # -- Internal helpers ---------------------------------------------------

    def _invoke(self, primitive: str, *args: Any, **kwargs: Any) -> Any:
        """Call a native primitive, wrapping unexpected failures.

        Raises:
            AdapterInvocationError: If the primitive is missing or raises
                anything outside the driver's exception hierarchy.

        """
        try:
            func = getattr(self._runtime, primitive)
        except AttributeError as exc:
            raise AdapterInvocationError(
                f"Native primitive '{primitive}' is not available",
                site=self.uri,
                version=int(self.version),
            ) from exc
        try:
            return func(*args, **kwargs)
        except DrupalDriverError:
            raise
        except Exception as exc:
            raise AdapterInvocationError(
                f"Native call '{primitive}' failed",
                site=self.uri,
                version=int(self.version),
                details={"original_error": str(exc)},
            ) from exc

    def _assign_role(self, user: UserRecord, role_name: str, role_id: Any) -> None:
        """Grant *role_id* to the account and record *role_name* on *user*."""
        self._invoke("user_multiple_role_edit", [user.uid], "add_role", role_id)
        if role_name not in user.roles:
            user.roles.append(role_name)
        self._logger.debug("Granted role '%s' to uid %s", role_name, user.uid)

    def _role_not_found(self, role_name: str) -> RoleNotFoundError:
        return RoleNotFoundError(
            f'No role "{role_name}" exists.', site=self.uri, version=int(self.version)
        )

    def _native_id(self, value: Any, key: str) -> int:
        """Convert an id reported by the native API to an int."""
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise AdapterInvocationError(
                f"Native save returned a non-numeric {key}: {value!r}",
                site=self.uri,
                version=int(self.version),
            ) from exc

    def _run_batch(self) -> None:
        """Process the batch queued by ``user_cancel`` non-progressively."""
        self._invoke("batch_process")

    def _duplicate(self, record: Any) -> Any:
        """Return a deep copy of *record* for native calls that mutate input."""
        return copy.deepcopy(record)

    def _site_directory(self) -> str:
        """Locate the site directory holding ``settings.php``.

        Mirrors Drupal's ``conf_path()`` lookup: ``sites/<host>`` first,
        then ``sites/default``.

        Raises:
            BootstrapException: If no ``settings.php`` can be found.

        """
        candidates = [self._installation.host, DEFAULT_SITE_DIRECTORY]
        for candidate in candidates:
            site_dir = os.path.join(self.root, "sites", candidate)
            if os.path.isfile(os.path.join(site_dir, "settings.php")):
                return site_dir
        raise BootstrapException(
            f"Could not find a Drupal settings.php file at "
            f"{os.path.join(self.root, 'sites', DEFAULT_SITE_DIRECTORY, 'settings.php')}",
            site=self.uri,
        )
