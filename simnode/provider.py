"""Simulated node-state provider consumed by autoscaling policies."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from simnode.cluster import LiveNodes, ReplicaInfo, ReplicaTopology
from simnode.errors import InvalidTagsError
from simnode.metrics import MetricsResolver, is_metrics_tag
from simnode.replicas import ReplicaIndexer
from simnode.roles import ROLES_PATH, ConfigStore, RoleTracker
from simnode.store import NodeValueStore

logger = logging.getLogger(__name__)


class SimNodeStateProvider:
    """
    Answers per-node value and replica queries for a synthetic cluster.

    Plain tags are looked up in the node value store; ``metrics:`` tags are
    resolved against the replicas the topology places on the node. Nodes that
    are no longer live lose their stored values on the next query.
    """

    def __init__(
        self,
        live_nodes: LiveNodes,
        config_store: ConfigStore,
        topology: ReplicaTopology,
        store: Optional[NodeValueStore] = None,
        node_values: Optional[Mapping[str, Mapping[str, Any]]] = None,
        roles_path: str = ROLES_PATH,
    ) -> None:
        """
        Args:
            live_nodes: Live membership, read only
            config_store: Sink for the role index
            topology: Source of replicas per node
            store: Shared value store; a new one is built when omitted
            node_values: Initial values for a new store
            roles_path: Config store path of the role index
        """
        self.live_nodes = live_nodes
        self.topology = topology
        self.store = store if store is not None else NodeValueStore(node_values)
        self.roles = RoleTracker(self.store, config_store, roles_path).attach()
        self.metrics = MetricsResolver(topology)
        self.replicas = ReplicaIndexer(topology)

    # -------- simulator setup methods --------

    def sim_get_node_value(self, node: str, key: str) -> Any:
        return self.store.get(node, key)

    def sim_set_node_values(self, node: str, values: Mapping[str, Any]) -> None:
        self.store.set_all(node, values)

    def sim_set_node_value(self, node: str, key: str, value: Any) -> None:
        self.store.set_one(node, key, value)

    def sim_add_node_value(self, node: str, key: str, value: Any) -> None:
        self.store.merge_add(node, key, value)

    def sim_remove_node_value(self, node: str, key: str) -> Any:
        return self.store.remove_one(node, key)

    def sim_remove_node_values(self, node: str) -> Optional[Dict[str, Any]]:
        return self.store.remove_all(node)

    def sim_get_all_node_values(self) -> Dict[str, Dict[str, Any]]:
        return self.store.get_all()

    # -------- provider interface --------

    def get_node_values(self, node: str, tags: Iterable[str]) -> Dict[str, Any]:
        tags = list(tags)
        logger.debug(f"-- requested values for {node}: {tags}")
        if not self.live_nodes.is_live(node):
            self.store.remove_all(node)
            return {}
        if not tags:
            return {}
        metrics: Optional[bool] = None
        for tag in tags:
            is_metrics = is_metrics_tag(tag)
            if metrics is not None and metrics != is_metrics:
                raise InvalidTagsError(tags)
            metrics = is_metrics
        if metrics:
            return self.get_metrics_values(node, tags)
        values = self.store.get_node(node)
        if values is None:
            return {}
        wanted = set(tags)
        return {k: v for k, v in values.items() if k in wanted}

    def get_metrics_values(self, node: str, tags: Iterable[str]) -> Dict[str, Any]:
        return self.metrics.get_metrics_values(node, tags)

    def get_replica_info(
        self,
        node: str,
        keys: Optional[Iterable[str]] = None,
    ) -> Dict[str, Dict[str, List[ReplicaInfo]]]:
        return self.replicas.get_replica_info(node, keys)

    def close(self) -> None:
        pass

    def __enter__(self) -> "SimNodeStateProvider":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
