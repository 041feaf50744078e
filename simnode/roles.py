"""Role index derived from node state and persisted to the config store."""

from __future__ import annotations

import json
import logging
import threading
from typing import Dict, Protocol, Set

from simnode.errors import RolePersistenceError
from simnode.store import NODE_ROLE, NodeValueStore

logger = logging.getLogger(__name__)

ROLES_PATH = "/roles.json"
# unconditional overwrite
ANY_VERSION = -1


class ConfigStore(Protocol):
	def set_data(self, path: str, data: bytes, version: int) -> object:
		...


class RoleTracker:
	"""
	Keeps ``roles_path`` in the config store equal to role -> [node ids].

	Every recomputation takes a fresh snapshot of the store inside the
	tracker's lock, so concurrent role changes serialize their writes and the
	last write always reflects the newest assignments.
	"""

	def __init__(self, store: NodeValueStore, config_store: ConfigStore, roles_path: str = ROLES_PATH) -> None:
		self.store = store
		self.config_store = config_store
		self.roles_path = roles_path
		self._lock = threading.Lock()

	def attach(self) -> "RoleTracker":
		"""
		Subscribe to role changes of the store.

		A store has at most one tracker; when another one is already attached
		it is returned instead, so a role change is persisted exactly once.
		"""
		existing = self.store.bind_role_tracker(self, self._on_role_changed)
		if existing is not self and existing.roles_path != self.roles_path:
			logger.warning(
				f"Store already persists roles to {existing.roles_path}, ignoring {self.roles_path}"
			)
		return existing

	def _on_role_changed(self, node: str) -> None:
		self.recompute_and_persist()

	def roles(self) -> Dict[str, Set[str]]:
		"""Current role -> nodes mapping, without persisting it."""
		roles: Dict[str, Set[str]] = {}
		for node, value in self.store.values_for_key(NODE_ROLE).items():
			for role in value.members():
				if role is None:
					continue
				roles.setdefault(str(role), set()).add(node)
		return roles

	@staticmethod
	def serialize(roles: Dict[str, Set[str]]) -> bytes:
		payload = {role: sorted(nodes) for role, nodes in roles.items()}
		return json.dumps(payload, sort_keys=True, indent=2).encode("utf-8")

	def recompute_and_persist(self) -> Dict[str, Set[str]]:
		with self._lock:
			roles = self.roles()
			data = self.serialize(roles)
			try:
				self.config_store.set_data(self.roles_path, data, ANY_VERSION)
			except Exception as e:
				logger.error(f"Failed to save roles to {self.roles_path}: {e}")
				raise RolePersistenceError(self.roles_path, roles, e) from e
			logger.debug(f"Saved {len(roles)} roles to {self.roles_path}")
			return roles
