"""Build a simulated cluster from a YAML scenario file.

Scenario layout::

    live_nodes: [node1:8983_solr, node2:8983_solr]
    node_values:
      node1:8983_solr: {freedisk: 100, nodeRole: overseer}
    replicas:
      - node: node1:8983_solr
        collection: c1
        shard: shard1
        core: c1_shard1_replica_n1
        name: core_node1
        variables: {INDEX.sizeInBytes: 12345}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

from simnode.cluster import LiveNodeSet, ReplicaInfo, SimClusterState
from simnode.config import SimNodeConfig, load_config, read_yaml
from simnode.distrib import DistribStateManager
from simnode.errors import ScenarioError
from simnode.provider import SimNodeStateProvider

logger = logging.getLogger(__name__)


@dataclass
class SimCluster:
    """Everything a policy test needs, wired together."""
    live_nodes: LiveNodeSet
    topology: SimClusterState
    config_store: DistribStateManager
    provider: SimNodeStateProvider
    config: SimNodeConfig


def build_cluster(
    live_nodes: Iterable[str] = (),
    node_values: Optional[Mapping[str, Mapping[str, Any]]] = None,
    replicas: Iterable[ReplicaInfo] = (),
    config: Optional[SimNodeConfig] = None,
) -> SimCluster:
    """
    Wire collaborators and a provider together.

    Node values are installed through the store, so a scenario that assigns
    roles has its role index persisted before this returns.
    """
    config = config or SimNodeConfig()
    live = LiveNodeSet(live_nodes)
    topology = SimClusterState()
    for replica in replicas:
        topology.add_replica(replica)
    config_store = DistribStateManager()
    provider = SimNodeStateProvider(live, config_store, topology, roles_path=config.roles_path)
    for node, values in (node_values or {}).items():
        provider.sim_set_node_values(node, values)
    logger.info(
        f"Built simulated cluster: {len(live)} live nodes, "
        f"{len(provider.store)} nodes with values"
    )
    return SimCluster(live, topology, config_store, provider, config)


def load_scenario(path: str, config: Optional[SimNodeConfig] = None) -> SimCluster:
    data = read_yaml(Path(path))
    live_nodes = data.get("live_nodes") or []
    if not isinstance(live_nodes, list):
        raise ScenarioError(f"{path}: 'live_nodes' must be a list")
    node_values = data.get("node_values") or {}
    if not isinstance(node_values, dict) or not all(isinstance(v, dict) for v in node_values.values()):
        raise ScenarioError(f"{path}: 'node_values' must map node ids to mappings")
    replicas = [_replica_from_dict(path, r) for r in data.get("replicas") or []]
    return build_cluster(
        live_nodes=[str(n) for n in live_nodes],
        node_values={str(n): dict(v) for n, v in node_values.items()},
        replicas=replicas,
        config=config or load_config(),
    )


def _replica_from_dict(path: str, entry: Any) -> ReplicaInfo:
    if not isinstance(entry, dict):
        raise ScenarioError(f"{path}: replica entries must be mappings, got {entry!r}")
    missing: List[str] = [k for k in ("node", "collection", "shard", "core") if not entry.get(k)]
    if missing:
        raise ScenarioError(f"{path}: replica {entry!r} is missing {', '.join(missing)}")
    return ReplicaInfo(
        name=str(entry.get("name") or entry["core"]),
        core=str(entry["core"]),
        collection=str(entry["collection"]),
        shard=str(entry["shard"]),
        node=str(entry["node"]),
        type=str(entry.get("type", "NRT")),
        variables=dict(entry.get("variables") or {}),
    )
