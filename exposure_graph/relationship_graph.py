"""Relationship graph construction and impact analysis.

Every function takes the relationship list it works on and returns new
derived structures. Nothing here validates relationship types: invalid
edges built elsewhere are rendered as-is (see ``exposure_graph.validator``).
"""

from collections import deque
from typing import get_args

import networkx as nx
from loguru import logger

from exposure_graph.schema import (
    AssetRelationship,
    AttackPath,
    DiscoveryMethod,
    ImpactAnalysis,
    RelationshipConfidence,
    RelationshipGraph,
    RelationshipGraphEdge,
    RelationshipGraphNode,
    RelationshipStats,
    RelationshipType,
)

DEPENDS_ON: RelationshipType = "depends_on"


def get_asset_relationships(
    relationships: list[AssetRelationship], asset_id: str
) -> list[AssetRelationship]:
    """Relationships where the asset is either the source or the target."""
    return [
        rel
        for rel in relationships
        if rel.source_asset_id == asset_id or rel.target_asset_id == asset_id
    ]


def get_outgoing_relationships(
    relationships: list[AssetRelationship], asset_id: str
) -> list[AssetRelationship]:
    """Relationships where the asset is the source."""
    return [rel for rel in relationships if rel.source_asset_id == asset_id]


def get_incoming_relationships(
    relationships: list[AssetRelationship], asset_id: str
) -> list[AssetRelationship]:
    """Relationships where the asset is the target."""
    return [rel for rel in relationships if rel.target_asset_id == asset_id]


def get_relationships_by_type(
    relationships: list[AssetRelationship], relationship_type: RelationshipType
) -> list[AssetRelationship]:
    return [rel for rel in relationships if rel.type == relationship_type]


def get_dependent_assets(relationships: list[AssetRelationship], asset_id: str) -> list[str]:
    """Get the assets that depend on an asset (who needs me).

    Only direct depends_on relationships are followed; see
    ``analyze_impact`` for the transitive closure.

    Args:
        relationships: Relationship list to scan.
        asset_id: The asset being depended on.

    Returns:
        Distinct source asset ids, in first-seen order.
    """
    dependents = [
        rel.source_asset_id
        for rel in relationships
        if rel.target_asset_id == asset_id and rel.type == DEPENDS_ON
    ]
    return list(dict.fromkeys(dependents))


def get_dependencies(relationships: list[AssetRelationship], asset_id: str) -> list[str]:
    """Get the assets an asset depends on (what I need).

    Args:
        relationships: Relationship list to scan.
        asset_id: The depending asset.

    Returns:
        Distinct target asset ids, in first-seen order.
    """
    dependencies = [
        rel.target_asset_id
        for rel in relationships
        if rel.source_asset_id == asset_id and rel.type == DEPENDS_ON
    ]
    return list(dict.fromkeys(dependencies))


def analyze_impact(
    relationships: list[AssetRelationship],
    asset_id: str,
    critical_weight: int = 8,
) -> ImpactAnalysis:
    """Find every asset that transitively depends on ``asset_id``.

    Walks depends_on relationships backwards, breadth first, so each
    impacted asset is reported at its shortest distance from the source.
    A visited set keeps dependency cycles from looping; the source asset
    itself is never reported as impacted.

    Args:
        relationships: Relationship list to analyze.
        asset_id: The asset whose loss is being assessed.
        critical_weight: Traversed dependencies with an impact weight at
            or above this value count as critical paths.

    Returns:
        An ImpactAnalysis for the asset. All counts are zero when nothing
        depends on it.
    """
    # target -> relationships pointing at it
    dependents_of: dict[str, list[AssetRelationship]] = {}
    for rel in relationships:
        if rel.type == DEPENDS_ON:
            dependents_of.setdefault(rel.target_asset_id, []).append(rel)

    depth: dict[str, int] = {asset_id: 0}
    queue: deque[str] = deque([asset_id])
    critical_paths = 0

    while queue:
        current = queue.popleft()
        for rel in dependents_of.get(current, []):
            if rel.impact_weight >= critical_weight:
                critical_paths += 1
            if rel.source_asset_id in depth:
                continue
            depth[rel.source_asset_id] = depth[current] + 1
            queue.append(rel.source_asset_id)

    directly = [node for node, level in depth.items() if level == 1]
    transitively = [node for node, level in depth.items() if level >= 2]

    return ImpactAnalysis(
        source_asset_id=asset_id,
        directly_impacted=directly,
        transitively_impacted=transitively,
        total_impacted_count=len(directly) + len(transitively),
        critical_paths_count=critical_paths,
        max_depth=max(depth.values()),
    )


def get_relationship_stats(relationships: list[AssetRelationship]) -> RelationshipStats:
    """Count relationships by type, confidence and discovery method.

    Every confidence level and discovery method is present in the result,
    with zero counts where nothing matched. Types only appear once used.

    Args:
        relationships: Relationship list to summarize.

    Returns:
        RelationshipStats. ``average_impact_weight`` is 0.0 for an empty list.
    """
    by_type: dict[RelationshipType, int] = {}
    by_confidence: dict[RelationshipConfidence, int] = dict.fromkeys(
        get_args(RelationshipConfidence), 0
    )
    by_discovery_method: dict[DiscoveryMethod, int] = dict.fromkeys(
        get_args(DiscoveryMethod), 0
    )
    total_impact_weight = 0

    for rel in relationships:
        by_type[rel.type] = by_type.get(rel.type, 0) + 1
        by_confidence[rel.confidence] += 1
        by_discovery_method[rel.discovery_method] += 1
        total_impact_weight += rel.impact_weight

    average = total_impact_weight / len(relationships) if relationships else 0.0

    return RelationshipStats(
        total_relationships=len(relationships),
        by_type=by_type,
        by_confidence=by_confidence,
        by_discovery_method=by_discovery_method,
        average_impact_weight=average,
    )


def build_relationship_graph(
    relationships: list[AssetRelationship],
    asset_id: str | None = None,
) -> RelationshipGraph:
    """Build a relationship graph for visualization.

    Nodes are deduplicated by asset id. The first relationship mentioning
    an asset decides its name and type; later relationships carrying a
    different name for the same id are logged and ignored. Each
    relationship becomes exactly one edge, labelled with its type in
    plain words. Cycles are kept.

    Args:
        relationships: Relationship list to build from.
        asset_id: Optional asset to focus on. When given, only
            relationships touching this asset are included.

    Returns:
        A RelationshipGraph with nodes in first-seen order.

    Example:
        >>> graph = build_relationship_graph(relationships, asset_id="api-001")
        >>> [edge.label for edge in graph.edges]
        ['depends on', 'runs on']
    """
    relevant = (
        get_asset_relationships(relationships, asset_id) if asset_id else relationships
    )

    node_map: dict[str, RelationshipGraphNode] = {}
    edges: list[RelationshipGraphEdge] = []

    for rel in relevant:
        endpoints = (
            (rel.source_asset_id, rel.source_asset_name, rel.source_asset_type),
            (rel.target_asset_id, rel.target_asset_name, rel.target_asset_type),
        )
        for node_id, name, node_type in endpoints:
            existing = node_map.get(node_id)
            if existing is None:
                node_map[node_id] = RelationshipGraphNode(id=node_id, name=name, type=node_type)
            elif existing.name != name:
                logger.debug(
                    f"Asset {node_id} seen as '{name}' in {rel.id}, keeping '{existing.name}'"
                )

        edges.append(
            RelationshipGraphEdge(
                id=rel.id,
                source=rel.source_asset_id,
                target=rel.target_asset_id,
                type=rel.type,
                label=rel.type.replace("_", " "),
                impact_weight=rel.impact_weight,
            )
        )

    return RelationshipGraph(nodes=list(node_map.values()), edges=edges)


def get_attack_paths_for_asset(attack_paths: list[AttackPath], asset_id: str) -> list[AttackPath]:
    """Attack paths that start at, end at, or pass through an asset."""
    return [
        path
        for path in attack_paths
        if path.entry_point.id == asset_id
        or path.target_asset.id == asset_id
        or any(step.asset_id == asset_id for step in path.steps)
    ]


def to_networkx(graph: RelationshipGraph) -> nx.MultiDiGraph:
    """Convert a RelationshipGraph into a NetworkX multi-digraph.

    A multigraph keeps parallel relationships between the same two assets
    (e.g. ``depends_on`` and ``sends_data_to``) as separate edges, keyed
    by relationship id.

    Args:
        graph: The RelationshipGraph to convert.

    Returns:
        A NetworkX MultiDiGraph with node and edge attributes populated.
    """
    G = nx.MultiDiGraph()

    for node in graph.nodes:
        G.add_node(node.id, label=node.name, type=node.type)

    for edge in graph.edges:
        G.add_edge(
            edge.source,
            edge.target,
            key=edge.id,
            label=edge.label,
            type=edge.type,
            impact_weight=edge.impact_weight,
        )

    return G
