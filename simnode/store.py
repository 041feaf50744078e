"""Thread-safe per-node key/value state for the simulated cluster."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional

from simnode.values import NodeValue, wrap

logger = logging.getLogger(__name__)

NODE_ROLE = "nodeRole"

RoleListener = Callable[[str], None]


class NodeValueStore:
    """
    Mapping of node id -> {key: value} shared by the simulation harness.

    Mutations on a node are applied under a store-wide lock and readers always
    get copies, so nobody observes a half-applied update. Any mutation that
    sets, adds or removes ``nodeRole`` notifies the role listeners after the
    lock is released and before the call returns.
    """

    def __init__(self, initial: Optional[Mapping[str, Mapping[str, Any]]] = None) -> None:
        self._lock = threading.RLock()
        self._nodes: Dict[str, Dict[str, NodeValue]] = {}
        self._role_listeners: List[RoleListener] = []
        # set by the RoleTracker that persists this store's roles
        self.role_tracker: Optional[Any] = None
        if initial:
            for node, values in initial.items():
                self._nodes[node] = {k: wrap(v) for k, v in values.items()}
        logger.info(f"NodeValueStore initialized with {len(self._nodes)} nodes")

    # -------- signal --------

    def subscribe(self, listener: RoleListener) -> None:
        """Register a callable invoked with the node id on every role change."""
        with self._lock:
            self._role_listeners.append(listener)

    def bind_role_tracker(self, tracker: Any, listener: RoleListener) -> Any:
        """Install ``tracker`` unless one is already bound; returns the bound one."""
        with self._lock:
            if self.role_tracker is None:
                self.role_tracker = tracker
                self._role_listeners.append(listener)
            return self.role_tracker

    def _role_changed(self, node: str) -> None:
        with self._lock:
            listeners = list(self._role_listeners)
        logger.debug(f"role changed on {node}, notifying {len(listeners)} listeners")
        for listener in listeners:
            listener(node)

    # -------- mutations --------

    def set_all(self, node: str, values: Mapping[str, Any]) -> None:
        """Replace the whole mapping of ``node``."""
        fresh = {k: wrap(v) for k, v in values.items()}
        with self._lock:
            previous = self._nodes.get(node)
            self._nodes[node] = fresh
        if NODE_ROLE in fresh or (previous is not None and NODE_ROLE in previous):
            self._role_changed(node)

    def set_one(self, node: str, key: str, value: Any) -> None:
        with self._lock:
            self._nodes.setdefault(node, {})[key] = wrap(value)
        if key == NODE_ROLE:
            self._role_changed(node)

    def merge_add(self, node: str, key: str, value: Any) -> None:
        """
        Add ``value`` under ``key``.

        A missing key stores the value as is; an existing scalar becomes a set
        of the old and new values; an existing set gains the new value.
        """
        with self._lock:
            values = self._nodes.setdefault(node, {})
            existing = values.get(key)
            values[key] = wrap(value) if existing is None else existing.add_value(value)
        if key == NODE_ROLE:
            self._role_changed(node)

    def remove_one(self, node: str, key: str) -> Any:
        """Remove one key of ``node``; returns its former value or None."""
        with self._lock:
            values = self._nodes.get(node)
            if values is None:
                return None
            removed = values.pop(key, None)
        if removed is None:
            return None
        if key == NODE_ROLE:
            self._role_changed(node)
        return removed.unwrap()

    def remove_all(self, node: str) -> Optional[Dict[str, Any]]:
        """Remove ``node`` entirely; returns its former mapping or None."""
        with self._lock:
            removed = self._nodes.pop(node, None)
        if removed is None:
            return None
        if NODE_ROLE in removed:
            self._role_changed(node)
        return {k: v.unwrap() for k, v in removed.items()}

    # -------- reads --------

    def get(self, node: str, key: str) -> Any:
        with self._lock:
            value = self._nodes.get(node, {}).get(key)
        return None if value is None else value.unwrap()

    def get_node(self, node: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            values = self._nodes.get(node)
            if values is None:
                return None
            return {k: v.unwrap() for k, v in values.items()}

    def get_all(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {node: {k: v.unwrap() for k, v in values.items()} for node, values in self._nodes.items()}

    def values_for_key(self, key: str) -> Dict[str, NodeValue]:
        """Snapshot of ``key`` across all nodes that carry it."""
        with self._lock:
            return {node: values[key] for node, values in self._nodes.items() if key in values}

    def nodes(self) -> List[str]:
        with self._lock:
            return list(self._nodes.keys())

    def __contains__(self, node: object) -> bool:
        with self._lock:
            return node in self._nodes

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)
