"""Resolution of synthetic per-replica metrics tags.

Tag grammar::

	metrics:solr.core.<collection>.<shard>.<replicaSuffix>:<stat>[:<subStat>]

The stat is looked up in the variables of the matching replica; when it is
missing there, the full tag is tried as a key of the same variables, which is
where precomputed synthetic metrics live.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from simnode.cluster import ReplicaInfo, ReplicaTopology

logger = logging.getLogger(__name__)

METRICS_PREFIX = "metrics:"
CORE_REGISTRY_PREFIX = "solr.core."


@dataclass(frozen=True)
class MetricsTag:
	tag: str
	collection: str
	shard: str
	replica_suffix: str
	stat_key: str

	def matches(self, replica: ReplicaInfo) -> bool:
		return (
			replica.collection == self.collection
			and replica.shard == self.shard
			and replica.core.endswith(self.replica_suffix)
		)


def is_metrics_tag(tag: str) -> bool:
	return tag.startswith(METRICS_PREFIX)


def _split(text: str, sep: str) -> List[str]:
	# trailing empty components carry no information
	parts = text.split(sep)
	while parts and not parts[-1]:
		parts.pop()
	return parts


def parse_metrics_tag(tag: str) -> Optional[MetricsTag]:
	"""Parse ``tag``; logs a warning and returns None when it is malformed."""
	parts = _split(tag, ":")
	if len(parts) < 3 or parts[0] != "metrics":
		logger.warning(f"Invalid metrics: tag: {tag}")
		return None
	if not parts[1].startswith(CORE_REGISTRY_PREFIX):
		logger.warning(f"Unsupported metric type: {tag}")
		return None
	registry = parts[1][len(CORE_REGISTRY_PREFIX):].split(".")
	if len(registry) != 3 or not all(registry):
		logger.warning(f"Invalid registry name: {parts[1]}")
		return None
	collection, shard, replica_suffix = registry
	# compound stat names carry their own colon
	stat_key = parts[2] if len(parts) == 3 else f"{parts[2]}:{parts[3]}"
	return MetricsTag(tag, collection, shard, replica_suffix, stat_key)


class MetricsResolver:
	def __init__(self, topology: ReplicaTopology) -> None:
		self.topology = topology

	def get_metrics_values(self, node: str, tags: Iterable[str]) -> Dict[str, Any]:
		replicas = self.topology.replicas_on_node(node)
		if not replicas:
			return {}
		# stable visiting order when more than one replica matches
		replicas = sorted(replicas, key=lambda r: r.core)
		values: Dict[str, Any] = {}
		for tag in tags:
			parsed = parse_metrics_tag(tag)
			if parsed is None:
				continue
			value = self._resolve(parsed, [r for r in replicas if parsed.matches(r)])
			if value is not None:
				values[tag] = value
		return values

	def _resolve(self, parsed: MetricsTag, matches: List[ReplicaInfo]) -> Any:
		if len(matches) > 1:
			logger.warning(
				f"{len(matches)} replicas match {parsed.tag}: "
				f"{[r.core for r in matches]}, using the first with a value"
			)
		for replica in matches:
			value = replica.variables.get(parsed.stat_key)
			if value is None:
				value = replica.variables.get(parsed.tag)
			if value is not None:
				return value
		return None
