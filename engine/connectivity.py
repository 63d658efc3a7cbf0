import logging
from typing import Dict, Iterable, List

from networkx.utils import UnionFind

from models.network import Connection, FlowNode

logger = logging.getLogger(__name__)


def unique_nodes(nodes: Iterable[FlowNode]) -> List[FlowNode]:
    """
    Drops repeated node ids, keeping the first occurrence.
    """
    seen: Dict[str, FlowNode] = {}
    for node in nodes:
        if node.id in seen:
            logger.warning("Duplicate node id %r ignored", node.id)
            continue
        seen[node.id] = node
    return list(seen.values())


def find_connected_groups(nodes: Iterable[FlowNode], connections: Iterable[Connection]) -> List[List[str]]:
    """
    Partitions node ids into connected components.

    Every node id appears in exactly one group; isolated nodes form singleton
    groups. Connections that point at unknown ids, or at the same node on
    both ends, are skipped. Groups are listed in order of their first member's
    position in ``nodes`` and members keep that order too.
    """
    node_ids = [n.id for n in unique_nodes(nodes)]
    if not node_ids:
        return []

    known = set(node_ids)
    uf = UnionFind(node_ids)
    for conn in connections:
        if conn.source_id not in known or conn.target_id not in known:
            logger.debug("Skipping dangling connection %r (%s -> %s)", conn.id, conn.source_id, conn.target_id)
            continue
        if conn.source_id == conn.target_id:
            logger.debug("Skipping self-loop connection %r on %s", conn.id, conn.source_id)
            continue
        uf.union(conn.source_id, conn.target_id)

    groups: Dict[str, List[str]] = {}
    for node_id in node_ids:
        groups.setdefault(uf[node_id], []).append(node_id)
    return list(groups.values())
