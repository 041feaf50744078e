"""
Simulated node-state provider for autoscaling tests.

Modules:
- values: scalar / set value variants and the merge-add rule
- store: thread-safe node -> {key: value} state with a role-changed signal
- roles: role -> nodes index persisted to the config store
- metrics: synthetic metrics tag parsing and resolution
- replicas: replica grouping by collection and shard
- provider: query entry point used by policies
- cluster, distrib: in-memory collaborators (live nodes, topology, config store)
- config, scenario: YAML configuration and scenario loading
"""

from simnode.cluster import LiveNodeSet, ReplicaInfo, SimClusterState
from simnode.distrib import DistribStateManager
from simnode.errors import (
    BadVersionError,
    InvalidTagsError,
    RolePersistenceError,
    ScenarioError,
    SimNodeError,
)
from simnode.provider import SimNodeStateProvider
from simnode.store import NODE_ROLE, NodeValueStore

__all__ = [
    'BadVersionError',
    'DistribStateManager',
    'InvalidTagsError',
    'LiveNodeSet',
    'NODE_ROLE',
    'NodeValueStore',
    'ReplicaInfo',
    'RolePersistenceError',
    'ScenarioError',
    'SimClusterState',
    'SimNodeError',
    'SimNodeStateProvider',
]
