"""Drupal 8 core using the entity API.

Implements ``BaseCore`` for Drupal 8 installations.  Users and nodes are
created as entities (``entity_create`` followed by ``save()``), the
kernel is booted for the site URI, and watchdog entries are readable
through the runtime's dblog query.

Known limitation: once the kernel handle exists the core always reports
itself as bootstrapped, because the kernel offers no reliable way to
observe a later shutdown.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..core.base_core import (
    USER_CANCEL_DELETE,
    BaseCore,
    LogEntry,
    LogSeverity,
    MajorVersion,
    NodeRecord,
    UserRecord,
)
from ..core.exceptions import AdapterInvocationError, BootstrapException, DrupalDriverError

logger = logging.getLogger(__name__)


class Drupal8Core(BaseCore):
    """Drupal 8 core built on the entity API.

    Args:
        installation: The site the core operates on.
        runtime: Native Drupal 8 runtime handle.

    """

    version = MajorVersion.DRUPAL_8

    # -- Lifecycle ----------------------------------------------------------

    def bootstrap(self) -> None:
        """Validate the site directory and boot the kernel for the site URI.

        Raises:
            BootstrapException: If ``settings.php`` is missing or the
                kernel fails to boot.

        """
        site_dir = self._site_directory()
        self._logger.info("Booting Drupal 8 kernel for %s (%s)", self.uri, site_dir)
        try:
            self._invoke("bootstrap_kernel", self.uri)
        except AdapterInvocationError as exc:
            raise BootstrapException(
                "Drupal kernel boot failed",
                site=self.uri,
                details=exc.details,
            ) from exc
        self._bootstrapped = True

    def is_bootstrapped(self) -> bool:
        """Always ``True`` once the kernel handle exists."""
        return True

    # -- Users --------------------------------------------------------------

    def user_create(self, user: UserRecord) -> UserRecord:
        """Create and save a user entity, copying back only its id."""
        entity = self._invoke("entity_create", "user", self._duplicate(user.to_edit()))
        user.uid = self._save_entity(entity)
        self._logger.debug("Created user '%s' with uid %s", user.name, user.uid)
        return user

    def user_delete(self, user: UserRecord) -> None:
        """Cancel the account and delete its content."""
        self._invoke("user_cancel", {}, user.uid, USER_CANCEL_DELETE)
        self._run_batch()
        self._logger.debug("Cancelled uid %s", user.uid)

    def user_add_role(self, user: UserRecord, role_name: str) -> None:
        """Resolve *role_name* to a role entity id and grant it."""
        role = self._invoke("user_role_load_by_name", role_name)
        if not role:
            raise self._role_not_found(role_name)
        self._assign_role(user, role_name, self._entity_call(role, "id"))

    # -- Content ------------------------------------------------------------

    def node_create(self, node: NodeRecord) -> NodeRecord:
        """Create and save a node entity, defaulting to published."""
        node.apply_defaults()
        entity = self._invoke("entity_create", "node", self._duplicate(node.to_values()))
        node.nid = self._save_entity(entity)
        self._logger.debug("Created %s node '%s' with nid %s", node.type, node.title, node.nid)
        return node

    # -- Watchdog -----------------------------------------------------------

    def fetch_log(
        self,
        count: int = 10,
        log_type: str | None = None,
        severity: int | None = None,
    ) -> list[LogEntry]:
        """Return the *count* most recent watchdog entries, newest first.

        Args:
            count: Maximum number of entries to return.
            log_type: Only return entries of this type.
            severity: Only return entries of this severity level.

        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValueError(f"count must be a positive integer, got {count!r}")
        level = None if severity is None else LogSeverity(severity)
        rows = self._invoke("dblog_entries", count, log_type, level)
        entries = [self._to_log_entry(row) for row in rows or []]
        return entries[:count]

    # -- Internal helpers ---------------------------------------------------

    def _to_log_entry(self, row: Mapping[str, Any]) -> LogEntry:
        try:
            return LogEntry(
                wid=int(row["wid"]),
                type=str(row["type"]),
                severity=LogSeverity(int(row["severity"])),
                message=str(row["message"]),
                variables=dict(row.get("variables") or {}),
                timestamp=int(row.get("timestamp", 0)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise AdapterInvocationError(
                "Malformed watchdog row",
                site=self.uri,
                details={"original_error": str(exc)},
            ) from exc

    def _save_entity(self, entity: Any) -> int:
        self._entity_call(entity, "save")
        entity_id = self._entity_call(entity, "id")
        if entity_id is None:
            raise AdapterInvocationError("Entity save did not assign an id", site=self.uri)
        return self._native_id(entity_id, "id")

    def _entity_call(self, entity: Any, method: str) -> Any:
        """Call *method* on a native entity, wrapping unexpected failures."""
        try:
            return getattr(entity, method)()
        except DrupalDriverError:
            raise
        except Exception as exc:
            raise AdapterInvocationError(
                f"Entity method '{method}' failed",
                site=self.uri,
                details={"original_error": str(exc)},
            ) from exc
