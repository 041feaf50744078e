"""In-memory cluster collaborators: replicas, live nodes and topology."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass
class ReplicaInfo:
    """A simulated shard copy hosted on a node."""
    name: str  # e.g. core_node1
    core: str  # node-local core name, e.g. c1_shard1_replica_n1
    collection: str
    shard: str
    node: str
    type: str = "NRT"  # NRT | TLOG | PULL
    variables: Dict[str, Any] = field(default_factory=dict)


class LiveNodes(Protocol):
    def is_live(self, node: str) -> bool:
        ...


class ReplicaTopology(Protocol):
    def replicas_on_node(self, node: str) -> Optional[List[ReplicaInfo]]:
        ...


class LiveNodeSet:
    """Set of live node ids, owned by the harness and only read by the provider."""

    def __init__(self, nodes: Optional[Iterable[str]] = None) -> None:
        self._lock = threading.Lock()
        self._nodes = set(nodes or ())

    def add(self, node: str) -> None:
        with self._lock:
            self._nodes.add(node)

    def discard(self, node: str) -> None:
        with self._lock:
            self._nodes.discard(node)

    def is_live(self, node: str) -> bool:
        with self._lock:
            return node in self._nodes

    def __contains__(self, node: object) -> bool:
        return self.is_live(node)  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(sorted(self._nodes))

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)


class SimClusterState:
    """Replica placement per node."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._replicas: Dict[str, List[ReplicaInfo]] = {}

    def add_replica(self, replica: ReplicaInfo) -> None:
        with self._lock:
            self._replicas.setdefault(replica.node, []).append(replica)
        logger.debug(f"Added replica {replica.core} ({replica.collection}/{replica.shard}) on {replica.node}")

    def remove_replica(self, node: str, core: str) -> Optional[ReplicaInfo]:
        with self._lock:
            replicas = self._replicas.get(node) or []
            for i, r in enumerate(replicas):
                if r.core == core:
                    return replicas.pop(i)
        return None

    def remove_node(self, node: str) -> List[ReplicaInfo]:
        with self._lock:
            return self._replicas.pop(node, [])

    def replicas_on_node(self, node: str) -> Optional[List[ReplicaInfo]]:
        """Replicas hosted on ``node``, or None when the node hosts nothing yet."""
        with self._lock:
            replicas = self._replicas.get(node)
            return None if replicas is None else list(replicas)
