"""Configuration for the simulated node-state provider."""

from __future__ import annotations

import os
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from simnode.errors import ScenarioError
from simnode.roles import ROLES_PATH

logger = logging.getLogger(__name__)

ENV_CONFIG = "SIMNODE_CONFIG"
ENV_ROLES_PATH = "SIMNODE_ROLES_PATH"
ENV_LOG_LEVEL = "SIMNODE_LOG_LEVEL"


@dataclass
class SimNodeConfig:
	roles_path: str = ROLES_PATH
	log_level: str = "INFO"

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)


def load_config(path: Optional[str] = None) -> SimNodeConfig:
	"""
	Load configuration from YAML, then apply environment overrides.

	Args:
		path: YAML file; defaults to $SIMNODE_CONFIG when set

	Returns:
		SimNodeConfig with defaults for anything not given
	"""
	cfg = SimNodeConfig()
	path = path or os.getenv(ENV_CONFIG)
	if path:
		data = read_yaml(Path(path))
		section = data.get("simnode", data) or {}
		if not isinstance(section, dict):
			raise ScenarioError(f"{path}: 'simnode' section must be a mapping")
		cfg.roles_path = str(section.get("roles_path", cfg.roles_path))
		cfg.log_level = str(section.get("log_level", cfg.log_level)).upper()
		logger.info(f"Loaded simnode config from {path}")

	cfg.roles_path = os.getenv(ENV_ROLES_PATH, cfg.roles_path)
	cfg.log_level = os.getenv(ENV_LOG_LEVEL, cfg.log_level).upper()
	return cfg


def read_yaml(path: Path) -> Dict[str, Any]:
	try:
		data = yaml.safe_load(path.read_text(encoding="utf-8"))
	except yaml.YAMLError as e:
		raise ScenarioError(f"{path}: invalid YAML: {e}") from e
	if data is None:
		return {}
	if not isinstance(data, dict):
		raise ScenarioError(f"{path}: top level must be a mapping")
	return data
