import json
import sys
import threading
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest

from simnode.distrib import DistribStateManager
from simnode.errors import BadVersionError, RolePersistenceError
from simnode.roles import ROLES_PATH, RoleTracker
from simnode.store import NODE_ROLE, NodeValueStore


class FailingConfigStore:
    def set_data(self, path, data, version):
        raise ConnectionError("config store unreachable")


class RecordingConfigStore:
    def __init__(self):
        self.writes = []

    def set_data(self, path, data, version):
        self.writes.append((path, data, version))


def persisted_roles(config_store, path=ROLES_PATH):
    entry = config_store.get_data(path)
    assert entry is not None, "role index should have been written"
    return json.loads(entry.data.decode("utf-8"))


@pytest.fixture
def tracked():
    store = NodeValueStore()
    config_store = DistribStateManager()
    tracker = RoleTracker(store, config_store).attach()
    return store, config_store, tracker


def test_set_change_and_remove_roles(tracked):
    store, config_store, _ = tracked

    store.set_one("n1", NODE_ROLE, "overseer")
    store.set_all("n2", {NODE_ROLE: "overseer", "cores": 1})
    assert persisted_roles(config_store) == {"overseer": ["n1", "n2"]}

    store.set_one("n1", NODE_ROLE, "coordinator")
    assert persisted_roles(config_store) == {"coordinator": ["n1"], "overseer": ["n2"]}

    store.remove_all("n2")
    assert persisted_roles(config_store) == {"coordinator": ["n1"]}

    store.remove_one("n1", NODE_ROLE)
    assert persisted_roles(config_store) == {}


def test_merge_added_roles_count_for_each_role(tracked):
    store, config_store, _ = tracked
    store.merge_add("n1", NODE_ROLE, "overseer")
    store.merge_add("n1", NODE_ROLE, "coordinator")
    assert persisted_roles(config_store) == {"coordinator": ["n1"], "overseer": ["n1"]}


def test_write_is_unconditional_at_fixed_path():
    sink = RecordingConfigStore()
    store = NodeValueStore()
    RoleTracker(store, sink).attach()

    store.set_one("n1", NODE_ROLE, "overseer")
    path, data, version = sink.writes[-1]
    assert path == "/roles.json"
    assert version == -1
    assert json.loads(data) == {"overseer": ["n1"]}


def test_custom_roles_path():
    store = NodeValueStore()
    config_store = DistribStateManager()
    RoleTracker(store, config_store, roles_path="/sim/roles.json").attach()
    store.set_one("n1", NODE_ROLE, "overseer")
    assert persisted_roles(config_store, "/sim/roles.json") == {"overseer": ["n1"]}
    assert not config_store.has_data(ROLES_PATH)


def test_roles_are_overwritten_each_time(tracked):
    store, config_store, _ = tracked
    store.set_one("n1", NODE_ROLE, "overseer")
    store.set_one("n2", NODE_ROLE, "overseer")
    assert config_store.get_data(ROLES_PATH).version == 1


def test_persistence_failure_is_fatal():
    store = NodeValueStore()
    RoleTracker(store, FailingConfigStore()).attach()

    with pytest.raises(RolePersistenceError) as excinfo:
        store.set_one("n1", NODE_ROLE, "overseer")
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert excinfo.value.roles == {"overseer": {"n1"}}
    assert excinfo.value.path == ROLES_PATH


def test_roles_without_persisting(tracked):
    store, config_store, tracker = tracked
    store.set_one("n1", "freedisk", 1)
    assert tracker.roles() == {}
    assert not config_store.has_data(ROLES_PATH)


def test_concurrent_role_changes_end_consistent(tracked):
    store, config_store, tracker = tracked

    def worker(i):
        node = f"n{i}"
        for role in ("a", "b", "c"):
            store.set_one(node, NODE_ROLE, role)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    expected = {"c": sorted(f"n{i}" for i in range(10))}
    assert persisted_roles(config_store) == expected
    assert {r: sorted(n) for r, n in tracker.roles().items()} == expected


def test_distrib_state_manager_versions():
    config_store = DistribStateManager()
    first = config_store.set_data("/x", b"1", -1)
    assert first.version == 0
    second = config_store.set_data("/x", b"2", 0)
    assert second.version == 1
    with pytest.raises(BadVersionError):
        config_store.set_data("/x", b"3", 0)
    with pytest.raises(BadVersionError):
        config_store.set_data("/new", b"3", 5)
    assert config_store.get_data("/x").data == b"2"
    assert config_store.list_paths() == ["/x"]
    assert config_store.remove_data("/x")
    assert config_store.get_data("/x") is None


def test_second_tracker_reuses_the_bound_one():
    store = NodeValueStore()
    first_sink = RecordingConfigStore()
    second_sink = RecordingConfigStore()
    first = RoleTracker(store, first_sink).attach()
    second = RoleTracker(store, second_sink, roles_path="/other/roles.json").attach()

    assert second is first
    assert store.role_tracker is first
    store.set_one("n1", NODE_ROLE, "overseer")
    assert len(first_sink.writes) == 1
    assert second_sink.writes == []
