"""Drupal 7 core using the procedural native API.

Implements ``BaseCore`` for Drupal 7 installations.  All operations go
through the runtime handle's procedural functions (``user_save``,
``user_cancel``, ``node_save`` and friends), mirroring how a module
would call them from within a fully bootstrapped request.

Usage::

    core = Drupal7Core(installation, runtime)
    core.bootstrap()
    account = core.user_create(UserRecord(name="editor", password="secret"))
"""

from __future__ import annotations

import logging
from typing import Any

from ..core.base_core import (
    USER_CANCEL_DELETE,
    BaseCore,
    MajorVersion,
    NodeRecord,
    UserRecord,
    native_field,
)
from ..core.exceptions import AdapterInvocationError, BootstrapException

logger = logging.getLogger(__name__)

DRUPAL_BOOTSTRAP_FULL = 7


class Drupal7Core(BaseCore):
    """Drupal 7 core built on the procedural API.

    Args:
        installation: The site the core operates on.
        runtime: Native Drupal 7 runtime handle.

    """

    version = MajorVersion.DRUPAL_7
    bootstrap_phase = DRUPAL_BOOTSTRAP_FULL

    # -- Lifecycle ----------------------------------------------------------

    def bootstrap(self) -> None:
        """Validate the site directory and run a full bootstrap.

        Raises:
            BootstrapException: If ``settings.php`` is missing or the
                native bootstrap fails.

        """
        site_dir = self._site_directory()
        self._logger.info("Bootstrapping Drupal %d site %s", self.version, site_dir)
        try:
            self._invoke("drupal_bootstrap", self.bootstrap_phase)
        except AdapterInvocationError as exc:
            raise BootstrapException(
                "Drupal bootstrap failed",
                site=self.uri,
                details=exc.details,
            ) from exc
        self._bootstrapped = True

    # -- Users --------------------------------------------------------------

    def user_create(self, user: UserRecord) -> UserRecord:
        """Save a new account via ``user_save``.

        ``user_save`` rewrites the password to its hash, so it receives a
        duplicate account and only the generated uid is copied back.
        """
        account = self._duplicate(user.to_edit())
        saved = self._invoke("user_save", account, user.to_edit())
        if saved is False:
            raise AdapterInvocationError(
                f"user_save refused account '{user.name}'",
                site=self.uri,
            )
        user.uid = self._saved_id(saved, account, "uid")
        self._logger.debug("Created user '%s' with uid %s", user.name, user.uid)
        return user

    def user_delete(self, user: UserRecord) -> None:
        """Cancel the account and delete its content."""
        self._invoke("user_cancel", {}, user.uid, USER_CANCEL_DELETE)
        self._run_batch()
        self._logger.debug("Cancelled uid %s", user.uid)

    def user_add_role(self, user: UserRecord, role_name: str) -> None:
        """Resolve *role_name* and grant it to the account."""
        self._assign_role(user, role_name, self._load_role_id(role_name))

    def _load_role_id(self, role_name: str) -> Any:
        role = self._invoke("user_role_load_by_name", role_name)
        if not role:
            raise self._role_not_found(role_name)
        return native_field(role, "rid")

    # -- Content ------------------------------------------------------------

    def node_create(self, node: NodeRecord) -> NodeRecord:
        """Save new content via ``node_save``, defaulting to published."""
        node.apply_defaults()
        native_node = self._duplicate(node.to_values())
        saved = self._invoke("node_save", native_node)
        node.nid = self._saved_id(saved, native_node, "nid")
        self._logger.debug("Created %s node '%s' with nid %s", node.type, node.title, node.nid)
        return node

    # -- Internal helpers ---------------------------------------------------

    def _saved_id(self, saved: Any, passed: dict[str, Any], key: str) -> int:
        """Read the generated id from the save result or the mutated input."""
        value = native_field(saved, key)
        if value is None:
            value = passed.get(key)
        if value is None:
            raise AdapterInvocationError(
                f"Native save did not assign a {key}",
                site=self.uri,
            )
        return self._native_id(value, key)
