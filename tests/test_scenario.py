import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))
sys.path.append(str(ROOT / "tools"))

import pytest

from simnode.config import SimNodeConfig, load_config
from simnode.errors import ScenarioError
from simnode.scenario import build_cluster, load_scenario
from query_node import main as query_main

EXAMPLE = ROOT / "scenarios" / "example.yaml"
SIZE_TAG = "metrics:solr.core.c1.shard1.replica_n1:INDEX.sizeInBytes"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SIMNODE_CONFIG", "SIMNODE_ROLES_PATH", "SIMNODE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_load_config_defaults():
    cfg = load_config()
    assert cfg.roles_path == "/roles.json"
    assert cfg.log_level == "INFO"


def test_load_config_file_and_env(tmp_path, monkeypatch):
    path = tmp_path / "simnode.yaml"
    path.write_text("simnode:\n  roles_path: /a/roles.json\n  log_level: debug\n")
    cfg = load_config(str(path))
    assert cfg.to_dict() == {"roles_path": "/a/roles.json", "log_level": "DEBUG"}

    monkeypatch.setenv("SIMNODE_ROLES_PATH", "/b/roles.json")
    monkeypatch.setenv("SIMNODE_CONFIG", str(path))
    assert load_config().roles_path == "/b/roles.json"


def test_load_config_rejects_bad_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ScenarioError):
        load_config(str(path))


def test_example_scenario():
    cluster = load_scenario(str(EXAMPLE))
    provider = cluster.provider

    assert provider.get_node_values("node1:8983_solr", ["freedisk", "missing"]) == {"freedisk": 120.5}
    assert provider.get_node_values("node3:8983_solr", ["sysprop.zone"]) == {"sysprop.zone": {"east", "west"}}
    assert provider.get_node_values("node1:8983_solr", [SIZE_TAG]) == {SIZE_TAG: 12345}

    grouped = provider.get_replica_info("node1:8983_solr", [])
    assert set(grouped["c1"]) == {"shard1", "shard2"}

    roles = json.loads(cluster.config_store.get_data("/roles.json").data)
    assert roles == {"overseer": ["node1:8983_solr"]}


def test_build_cluster_with_custom_roles_path():
    cluster = build_cluster(
        live_nodes=["n1"],
        node_values={"n1": {"nodeRole": "overseer"}},
        config=SimNodeConfig(roles_path="/custom/roles.json"),
    )
    assert cluster.live_nodes.is_live("n1")
    assert cluster.config_store.has_data("/custom/roles.json")


@pytest.mark.parametrize(
    "body",
    [
        "live_nodes: n1\n",
        "node_values:\n  n1: 5\n",
        "replicas:\n  - node: n1\n    collection: c1\n",
        "replicas:\n  - just-a-string\n",
    ],
)
def test_malformed_scenarios(tmp_path, body):
    path = tmp_path / "scenario.yaml"
    path.write_text(body)
    with pytest.raises(ScenarioError):
        load_scenario(str(path))


def test_cli_node_values(capsys):
    assert query_main([str(EXAMPLE), "node1:8983_solr", "freedisk", "nodeRole"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out == {"freedisk": 120.5, "nodeRole": "overseer"}


def test_cli_replicas_and_roles(capsys):
    assert query_main([str(EXAMPLE), "node2:8983_solr", "--replicas"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["c1"]["shard1"][0]["type"] == "TLOG"

    assert query_main([str(EXAMPLE), "--roles"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out == {"overseer": ["node1:8983_solr"]}


def test_cli_mixed_tags_exit_code(capsys):
    assert query_main([str(EXAMPLE), "node1:8983_solr", "freedisk", SIZE_TAG]) == 1
    assert "mixed tags" in capsys.readouterr().err
