"""
Query a simulated cluster scenario from the shell.

Usage:
    python tools/query_node.py scenarios/example.yaml node1:8983_solr freedisk nodeRole
    python tools/query_node.py scenarios/example.yaml node1:8983_solr --replicas
    python tools/query_node.py scenarios/example.yaml --roles

Prints JSON on stdout. Metrics tags and plain tags cannot be mixed in one
query.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import Any, List, Optional

from simnode.config import load_config
from simnode.errors import SimNodeError
from simnode.scenario import load_scenario


def _json_default(obj: Any) -> Any:
	if isinstance(obj, (set, frozenset)):
		return sorted(obj, key=str)
	if hasattr(obj, "__dataclass_fields__"):
		return asdict(obj)
	raise TypeError(f"not JSON serializable: {type(obj).__name__}")


def main(argv: Optional[List[str]] = None) -> int:
	parser = argparse.ArgumentParser(description="Query simulated node state")
	parser.add_argument("scenario", help="scenario YAML file")
	parser.add_argument("node", nargs="?", help="node id")
	parser.add_argument("tags", nargs="*", help="plain or metrics: tags")
	parser.add_argument("--config", default=None, help="simnode config YAML")
	parser.add_argument("--replicas", action="store_true", help="print replicas grouped by collection/shard")
	parser.add_argument("--roles", action="store_true", help="print the persisted role index")
	args = parser.parse_args(argv)

	config = load_config(args.config)
	logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO), stream=sys.stderr)

	try:
		cluster = load_scenario(args.scenario, config=config)
		if args.roles:
			entry = cluster.config_store.get_data(config.roles_path)
			out: Any = json.loads(entry.data.decode("utf-8")) if entry else {}
		elif not args.node:
			parser.error("node is required unless --roles is given")
		elif args.replicas:
			out = cluster.provider.get_replica_info(args.node, args.tags)
		else:
			out = cluster.provider.get_node_values(args.node, args.tags)
	except SimNodeError as e:
		print(f"error: {e}", file=sys.stderr)
		return 1

	print(json.dumps(out, indent=2, sort_keys=True, default=_json_default))
	return 0


if __name__ == "__main__":
	sys.exit(main())
