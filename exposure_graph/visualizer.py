"""Relationship graph visualization module.

This module provides functionality to render a RelationshipGraph
as a directed graph image using NetworkX and matplotlib.
"""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import networkx as nx  # noqa: E402

from exposure_graph.relationship_graph import to_networkx  # noqa: E402
from exposure_graph.schema import RelationshipGraph  # noqa: E402

# Node color mapping by asset type category
NODE_COLORS: dict[str, str] = {
    # External attack surface
    "domain": "#f97316",
    "certificate": "#f97316",
    "ip_address": "#f97316",
    # Applications
    "website": "#3b82f6",
    "api": "#3b82f6",
    "api_collection": "#3b82f6",
    "api_endpoint": "#3b82f6",
    "mobile": "#3b82f6",
    "mobile_app": "#3b82f6",
    "service": "#3b82f6",
    "application": "#3b82f6",
    "endpoint": "#3b82f6",
    # Cloud
    "cloud_account": "#8b5cf6",
    "compute": "#8b5cf6",
    "storage": "#8b5cf6",
    "serverless": "#8b5cf6",
    # Infrastructure
    "host": "#10b981",
    "server": "#10b981",
    "container": "#10b981",
    "database": "#ef4444",
    "network": "#10b981",
    "load_balancer": "#10b981",
    "k8s_cluster": "#06b6d4",
    "k8s_workload": "#06b6d4",
    # Code and identity
    "repository": "#64748b",
    "container_image": "#64748b",
    "credential": "#eab308",
    "identity_provider": "#eab308",
}

# Default output path for the rendered graph
OUTPUT_PATH: Path = Path("visuals/relationship_graph.png")


def render_graph(graph: RelationshipGraph, output_path: Path = OUTPUT_PATH) -> None:
    """Render a RelationshipGraph as a directed graph image.

    Builds a directed NetworkX graph from the RelationshipGraph, applies
    node colors based on asset type, scales edge width by impact weight,
    and saves the visualization to disk.

    Args:
        graph: The RelationshipGraph to visualize.
        output_path: Path where the image will be saved.
            Defaults to visuals/relationship_graph.png.

    Raises:
        OSError: If the output directory cannot be created or file cannot be written.
    """
    G = _build_drawing_graph(graph)
    _render_and_save(G, graph, output_path)


def _build_drawing_graph(graph: RelationshipGraph) -> nx.DiGraph:
    """Collapse parallel relationships into one drawable edge per asset pair.

    Labels of parallel relationships are joined with ``/`` and the edge
    keeps the highest impact weight among them.
    """
    multi = to_networkx(graph)
    G = nx.DiGraph()
    G.add_nodes_from(multi.nodes(data=True))

    for source, target, data in multi.edges(data=True):
        if G.has_edge(source, target):
            existing = G.edges[source, target]
            existing["label"] = f"{existing['label']} / {data['label']}"
            existing["impact_weight"] = max(existing["impact_weight"], data["impact_weight"])
        else:
            G.add_edge(source, target, label=data["label"], impact_weight=data["impact_weight"])

    return G


def _render_and_save(
    G: nx.DiGraph,
    graph: RelationshipGraph,
    output_path: Path,
) -> None:
    """Render the NetworkX graph and save to an image file.

    Args:
        G: The NetworkX DiGraph to render.
        graph: The original RelationshipGraph (used for color mapping).
        output_path: Path where the image will be saved.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(14, 9))

    pos = nx.spring_layout(G, seed=42)

    node_ids = [node.id for node in graph.nodes]
    node_colors = [NODE_COLORS.get(node.type, "gray") for node in graph.nodes]
    node_labels = {node.id: node.name for node in graph.nodes}

    nx.draw_networkx_nodes(
        G,
        pos,
        nodelist=node_ids,
        node_color=node_colors,
        node_size=1800,
        alpha=0.9,
        ax=ax,
    )

    nx.draw_networkx_labels(
        G,
        pos,
        labels=node_labels,
        font_size=7,
        font_weight="bold",
        ax=ax,
    )

    edge_list = list(G.edges())
    edge_widths = [0.5 + G.edges[edge]["impact_weight"] / 4 for edge in edge_list]
    nx.draw_networkx_edges(
        G,
        pos,
        edgelist=edge_list,
        width=edge_widths,
        edge_color="gray",
        arrows=True,
        arrowsize=18,
        ax=ax,
    )

    edge_labels = {edge: G.edges[edge]["label"] for edge in edge_list}
    nx.draw_networkx_edge_labels(
        G,
        pos,
        edge_labels=edge_labels,
        font_size=6,
        ax=ax,
    )

    ax.set_title("Asset Relationship Graph", fontsize=14, fontweight="bold")
    ax.axis("off")

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
