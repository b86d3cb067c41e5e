"""Drupal 6 core.

Drupal 6 shares most of its procedural API with Drupal 7.  It differs in
three places: it has more bootstrap phases, it has no
``user_role_load_by_name`` and it has no ``user_cancel``.  Roles are
therefore resolved by scanning ``user_roles()``, and accounts are removed
with ``user_delete``, which always deletes the account's content.
"""

from __future__ import annotations

import logging
from typing import Any

from ..core.base_core import MajorVersion, UserRecord
from .drupal7_core import Drupal7Core

logger = logging.getLogger(__name__)

DRUPAL_BOOTSTRAP_FULL = 8


class Drupal6Core(Drupal7Core):
    """Drupal 6 core built on the procedural API."""

    version = MajorVersion.DRUPAL_6
    bootstrap_phase = DRUPAL_BOOTSTRAP_FULL

    def user_delete(self, user: UserRecord) -> None:
        """Delete the account and its content via ``user_delete``."""
        self._invoke("user_delete", {}, user.uid)
        self._logger.debug("Deleted uid %s", user.uid)

    def _load_role_id(self, role_name: str) -> Any:
        roles = self._invoke("user_roles") or {}
        for rid, name in roles.items():
            if name == role_name:
                return rid
        raise self._role_not_found(role_name)
