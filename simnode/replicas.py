from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from simnode.cluster import ReplicaInfo, ReplicaTopology


class ReplicaIndexer:
	"""Groups the replicas of a node by collection, then by shard."""

	def __init__(self, topology: ReplicaTopology) -> None:
		self.topology = topology

	def get_replica_info(
		self,
		node: str,
		keys: Optional[Iterable[str]] = None,
	) -> Dict[str, Dict[str, List[ReplicaInfo]]]:
		"""
		Return collection -> shard -> replicas for ``node``.

		Args:
			node: Node id
			keys: Accepted for interface compatibility; does not filter

		Returns:
			Nested grouping, empty when the node hosts no replicas
		"""
		replicas = self.topology.replicas_on_node(node)
		if not replicas:
			return {}
		grouped: Dict[str, Dict[str, List[ReplicaInfo]]] = {}
		for r in replicas:
			grouped.setdefault(r.collection, {}).setdefault(r.shard, []).append(r)
		return grouped
