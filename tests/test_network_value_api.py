"""
Tests for the Network Value API Layer
=====================================
Covers the audited operations, the lookups, the audit log, algorithm
versioning and error envelopes.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from api.algorithm_registry import (
    deprecate_version,
    get_current_version,
    list_versions,
    register_version,
)
from api.audit_log import AuditLogEntry
from api.network_value_api import NetworkValueAPI
from api.response_envelope import error_envelope, success_envelope
from engine.network_value_engine import NetworkValueEngine
from models.base import Base
from models.network import Connection, FlowNode


# -----------------------------------------------------------------------
#  Fixtures
# -----------------------------------------------------------------------

@pytest.fixture
def db_session():
    """In-memory SQLite session with all tables created."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def api(db_session):
    return NetworkValueAPI(db_session, caller_identity="test-harness")


@pytest.fixture
def network():
    nodes = [
        {"id": "a", "value": 100, "active_rate": 1.0, "name": "Alpha"},
        {"id": "b", "value": 100, "active_rate": 1.0},
        {"id": "c", "value": 100, "active_rate": 1.0},
    ]
    connections = [{"id": "c1", "source_id": "a", "target_id": "b", "synergy": "standard"}]
    return nodes, connections


# -----------------------------------------------------------------------
#  compute_network_value
# -----------------------------------------------------------------------

class TestComputeNetworkValue:

    def test_values_and_breakdown(self, api, network):
        nodes, connections = network
        resp = api.compute_network_value(nodes, connections, "simple")

        assert resp.status == "ok"
        assert resp.ok
        assert resp.operation == "compute_network_value"
        assert resp.api_version == "1.0.0"
        assert resp.data["standalone_value"] == 30000
        assert resp.data["connected_value"] == pytest.approx(50000)
        assert resp.data["multiplier"] == pytest.approx(5 / 3)
        assert resp.data["integration_coefficient"] == 1.0
        assert len(resp.data["groups"]) == 2
        assert resp.data["display"]["connected_value"] == "50.0K"
        assert resp.data["skipped_connection_ids"] == []

    def test_summary_mentions_integration(self, api, network):
        nodes, connections = network
        resp = api.compute_network_value(nodes, connections, "full")
        assert "'full'" in resp.summary
        assert "multiplier" in resp.summary

    def test_accepts_model_objects(self, api):
        nodes = [FlowNode(id="a", value=100), FlowNode(id="b", value=100)]
        connections = [Connection(id="c1", source_id="a", target_id="b", synergy="excellent")]
        resp = api.compute_network_value(nodes, connections, "full")
        assert resp.status == "ok"
        assert resp.data["multiplier"] == pytest.approx(4.5)

    def test_empty_network(self, api):
        resp = api.compute_network_value([], [])
        assert resp.status == "ok"
        assert resp.data["standalone_value"] == 0
        assert resp.data["connected_value"] == 0
        assert resp.data["multiplier"] == 1

    def test_dangling_connection_is_reported(self, api, network):
        nodes, connections = network
        connections = connections + [{"id": "c9", "source_id": "a", "target_id": "ghost"}]
        resp = api.compute_network_value(nodes, connections)
        assert resp.status == "ok"
        assert resp.data["skipped_connection_ids"] == ["c9"]
        assert resp.data["connected_value"] == pytest.approx(50000)

    def test_duplicate_nodes_counted_once(self, api, network):
        nodes, connections = network
        resp = api.compute_network_value(nodes + [{"id": "a", "value": 999}], connections)
        assert resp.data["node_count"] == 3
        assert resp.summary.startswith("3 node(s)")
        assert resp.data["standalone_value"] == 30000

    def test_huge_values_give_a_valuation(self, api):
        nodes = [{"id": "a", "value": 1e200}, {"id": "b", "value": 1e200}]
        connections = [{"id": "c1", "source_id": "a", "target_id": "b"}]
        resp = api.compute_network_value(nodes, connections, "full")
        assert resp.status == "ok"
        assert resp.data["multiplier"] == 1.0

    def test_custom_engine_tables(self, db_session, network):
        engine = NetworkValueEngine(integration_coefficients={"simple": 2.0, "moderate": 3.0, "full": 4.0})
        api = NetworkValueAPI(db_session, engine=engine)
        nodes, connections = network
        resp = api.compute_network_value(nodes, connections, "simple")
        assert resp.data["connected_value"] == pytest.approx(40000 * 2.0 + 10000)

    def test_audit_entry_written(self, api, db_session, network):
        nodes, connections = network
        resp = api.compute_network_value(nodes, connections)
        entry = db_session.get(AuditLogEntry, resp.audit_id)
        assert entry is not None
        assert entry.operation == "compute_network_value"
        assert entry.status == "success"
        assert entry.caller_identity == "test-harness"
        assert entry.algorithm_version == "1.0.0"


# -----------------------------------------------------------------------
#  Error envelopes
# -----------------------------------------------------------------------

class TestErrors:

    def test_unknown_integration_level(self, api, db_session, network):
        nodes, connections = network
        resp = api.compute_network_value(nodes, connections, "cosmic")
        assert resp.status == "error"
        assert resp.data is None
        assert "cosmic" in resp.summary
        entry = db_session.get(AuditLogEntry, resp.audit_id)
        assert entry.status == "error"
        assert entry.error_detail

    def test_unknown_synergy_level(self, api):
        nodes = [{"id": "a", "value": 1}, {"id": "b", "value": 1}]
        connections = [{"id": "c1", "source_id": "a", "target_id": "b", "synergy": "stellar"}]
        resp = api.compute_network_value(nodes, connections)
        assert resp.status == "error"

    def test_node_without_id(self, api):
        resp = api.compute_connected_groups([{"value": 1}], [])
        assert resp.status == "error"
        assert resp.audit_id

    def test_unparseable_node_is_audited_not_raised(self, api, db_session):
        resp = api.compute_network_value(nodes=[None])
        assert resp.status == "error"
        entry = db_session.get(AuditLogEntry, resp.audit_id)
        assert entry.status == "error"
        assert entry.to_dict()["request_payload"]["nodes"] == ["None"]

    def test_unparseable_connection_is_audited_not_raised(self, api):
        resp = api.compute_connected_groups([{"id": "a", "value": 1}], [42])
        assert resp.status == "error"
        assert resp.audit_id

    def test_unknown_preset(self, api):
        resp = api.evaluate_preset("friendster")
        assert resp.status == "error"
        assert "friendster" in resp.summary


# -----------------------------------------------------------------------
#  compute_connected_groups / evaluate_preset / lookups
# -----------------------------------------------------------------------

def test_connected_groups(api, network):
    nodes, connections = network
    resp = api.compute_connected_groups(nodes, connections)
    assert resp.status == "ok"
    assert {frozenset(g) for g in resp.data["groups"]} == {frozenset({"a", "b"}), frozenset({"c"})}
    assert resp.data["group_count"] == 2
    assert resp.data["singleton_count"] == 1


def test_evaluate_preset(api):
    resp = api.evaluate_preset("line", "moderate")
    assert resp.status == "ok"
    assert resp.data["preset"]["id"] == "line"
    assert resp.data["integration_level"] == "moderate"
    assert resp.data["multiplier"] > 1
    assert resp.summary.startswith("Preset 'LINE'")


def test_list_levels(api):
    levels = api.list_levels()
    assert [s["level"] for s in levels["synergy_levels"]] == ["standard", "good", "excellent"]
    assert [i["coefficient"] for i in levels["integration_levels"]] == [1.0, 1.3, 1.5]


def test_list_presets(api):
    presets = api.list_presets()
    assert {p["id"] for p in presets} == {"line", "mercari", "uber", "phone"}
    assert all(p["nodes"] for p in presets)


def test_query_audit_log(api, network):
    nodes, connections = network
    api.compute_network_value(nodes, connections)
    api.compute_connected_groups(nodes, connections)
    api.evaluate_preset("does-not-exist")

    records = api.query_audit_log()
    assert len(records) == 3
    assert {r["status"] for r in records} == {"success", "error"}

    only_groups = api.query_audit_log(operation="compute_connected_groups")
    assert len(only_groups) == 1
    assert only_groups[0]["request_payload"]["nodes"][0]["id"] == "a"

    future = api.query_audit_log(since=datetime.utcnow() + timedelta(days=1))
    assert future == []


# -----------------------------------------------------------------------
#  Algorithm registry and envelopes
# -----------------------------------------------------------------------

def test_version_registry_lifecycle():
    op = "test_only_operation"
    register_version(op, "1.0.0", "first")
    register_version(op, "2.0.0", "second", effective_from=datetime.utcnow() + timedelta(hours=1))
    assert get_current_version(op).version == "1.0.0"

    register_version(op, "1.1.0", "patch")
    assert get_current_version(op).version == "1.1.0"

    deprecate_version(op, "1.1.0")
    assert get_current_version(op).version == "1.0.0"
    assert len(list_versions(op)) == 3

    with pytest.raises(KeyError):
        deprecate_version(op, "9.9.9")


def test_unknown_operation_has_no_version():
    with pytest.raises(KeyError):
        get_current_version("not-an-operation")


def test_envelopes_serialise():
    ok = success_envelope("op", "1.0.0", {"x": 1}, "fine", "audit-1", metadata={"k": "v"})
    err = error_envelope("op", "1.0.0", "boom", "audit-2")
    assert ok.to_dict()["metadata"] == {"k": "v"}
    assert ok.to_dict()["summary"] == "fine"
    assert err.to_dict()["status"] == "error"
    assert "metadata" not in err.to_dict()
