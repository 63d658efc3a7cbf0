import itertools

from engine.connectivity import find_connected_groups, unique_nodes
from models.network import Connection, FlowNode


def _nodes(*ids):
    return [FlowNode(id=i, value=100, active_rate=1.0) for i in ids]


def _as_sets(groups):
    return {frozenset(g) for g in groups}


def test_empty_input_yields_no_groups():
    assert find_connected_groups([], []) == []


def test_isolated_nodes_are_singletons():
    groups = find_connected_groups(_nodes("a", "b", "c"), [])
    assert _as_sets(groups) == {frozenset({"a"}), frozenset({"b"}), frozenset({"c"})}


def test_groups_are_a_partition():
    nodes = _nodes("a", "b", "c", "d", "e", "f")
    connections = [
        Connection("c1", "a", "b"),
        Connection("c2", "c", "d"),
        Connection("c3", "d", "e"),
    ]
    groups = find_connected_groups(nodes, connections)
    flat = [node_id for g in groups for node_id in g]
    assert sorted(flat) == ["a", "b", "c", "d", "e", "f"]
    assert len(flat) == len(set(flat))
    assert _as_sets(groups) == {frozenset({"a", "b"}), frozenset({"c", "d", "e"}), frozenset({"f"})}


def test_transitive_connections_merge_regardless_of_order():
    nodes = _nodes("a", "b", "c")
    ab = Connection("c1", "a", "b")
    bc = Connection("c2", "c", "b")
    for ordering in ([ab, bc], [bc, ab]):
        assert _as_sets(find_connected_groups(nodes, ordering)) == {frozenset({"a", "b", "c"})}


def test_permuting_inputs_keeps_the_same_groups():
    nodes = _nodes("a", "b", "c", "d", "e")
    connections = [
        Connection("c1", "a", "c"),
        Connection("c2", "b", "d"),
        Connection("c3", "d", "e"),
    ]
    expected = _as_sets(find_connected_groups(nodes, connections))
    for node_perm in itertools.permutations(nodes):
        for conn_perm in itertools.permutations(connections):
            assert _as_sets(find_connected_groups(list(node_perm), list(conn_perm))) == expected


def test_dangling_connection_is_ignored():
    nodes = _nodes("a", "b")
    connections = [Connection("c1", "a", "ghost"), Connection("c2", "ghost", "phantom")]
    groups = find_connected_groups(nodes, connections)
    assert _as_sets(groups) == {frozenset({"a"}), frozenset({"b"})}


def test_self_loop_does_not_change_grouping():
    groups = find_connected_groups(_nodes("a", "b"), [Connection("c1", "a", "a")])
    assert _as_sets(groups) == {frozenset({"a"}), frozenset({"b"})}


def test_groups_follow_node_order():
    nodes = _nodes("x", "y", "z")
    groups = find_connected_groups(nodes, [Connection("c1", "z", "x")])
    assert groups == [["x", "z"], ["y"]]


def test_duplicate_node_ids_keep_first_occurrence():
    first = FlowNode(id="a", value=10)
    second = FlowNode(id="a", value=99)
    kept = unique_nodes([first, second, FlowNode(id="b", value=1)])
    assert [n.id for n in kept] == ["a", "b"]
    assert kept[0] is first
    assert find_connected_groups([first, second], []) == [["a"]]


def test_large_chain_collapses_into_one_group():
    ids = [f"n{i}" for i in range(2000)]
    nodes = _nodes(*ids)
    connections = [Connection(f"c{i}", ids[i], ids[i + 1]) for i in range(len(ids) - 1)]
    groups = find_connected_groups(nodes, connections)
    assert len(groups) == 1
    assert set(groups[0]) == set(ids)
