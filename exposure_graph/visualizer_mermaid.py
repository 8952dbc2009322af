"""Mermaid diagram generation module.

This module provides functionality to render a RelationshipGraph, or a
pipeline's derived edges, as Mermaid flowchart diagrams for lightweight
visualization, plus a standalone HTML page embedding the relationship
diagram.
"""

import html
from pathlib import Path

from exposure_graph.pipeline_layout import steps_to_edges
from exposure_graph.pipeline_schema import END_NODE_ID, START_NODE_ID, PipelineStep
from exposure_graph.relationship_types import get_asset_type_label
from exposure_graph.schema import RelationshipGraph, RelationshipGraphNode

# Default output paths for the Mermaid diagrams
OUTPUT_PATH: Path = Path("visuals/relationship_graph.mmd")
PIPELINE_OUTPUT_PATH: Path = Path("visuals/pipeline.mmd")

MERMAID_CDN = "https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.min.js"

# Asset types drawn as cylinders / hexagons / stadiums
_DATA_STORE_TYPES = {"database", "storage"}
_EDGE_TYPES = {"domain", "ip_address", "certificate", "load_balancer", "identity_provider"}
_CODE_TYPES = {"repository", "container_image"}


def _escape_mermaid_label(text: str) -> str:
    """Escape special characters in text for Mermaid compatibility.

    Args:
        text: Raw text that may contain special characters.

    Returns:
        Escaped text safe for use in Mermaid labels.
    """
    text = text.replace('"', "'")
    text = text.replace("`", "'")
    text = text.replace("#", "")
    text = text.replace("&", "and")
    text = text.replace("<", "")
    text = text.replace(">", "")
    text = text.replace("[", "(")
    text = text.replace("]", ")")
    text = text.replace("{", "(")
    text = text.replace("}", ")")
    text = text.replace("|", "-")
    # Truncate very long labels
    if len(text) > 60:
        text = text[:57] + "..."
    return text


def _assign_mermaid_ids(raw_ids: list[str], prefix: str) -> dict[str, str]:
    """Map raw ids to positional Mermaid identifiers (``n0``, ``n1``, ...).

    Raw asset and step ids may contain Mermaid syntax characters or be
    reserved words such as ``end``, and cleaning them is lossy. Repeated
    raw ids map to the same identifier.
    """
    id_map: dict[str, str] = {}
    for raw_id in raw_ids:
        if raw_id not in id_map:
            id_map[raw_id] = f"{prefix}{len(id_map)}"
    return id_map


def _get_node_shape(node: RelationshipGraphNode, node_id: str) -> str:
    """Get the Mermaid shape syntax for a node based on its asset type.

    Args:
        node: The node to get shape syntax for.
        node_id: Mermaid identifier to declare the node under.

    Returns:
        A string with the node ID and label in the matching shape:
        - database, storage: cylinder [("label")]
        - internet-facing entry points: hexagon {{"label"}}
        - repositories and images: stadium (["label"])
        - anything else: rectangle ["label"]
    """
    label = f"{_escape_mermaid_label(node.name)}<br/><small>{get_asset_type_label(node.type)}</small>"

    if node.type in _DATA_STORE_TYPES:
        return f'{node_id}[("{label}")]'
    if node.type in _EDGE_TYPES:
        return f'{node_id}{{{{"{label}"}}}}'
    if node.type in _CODE_TYPES:
        return f'{node_id}(["{label}"])'
    return f'{node_id}["{label}"]'


def _generate_mermaid_content(
    graph: RelationshipGraph,
    direction: str = "LR",
    critical_weight: int = 8,
) -> str:
    """Generate Mermaid diagram content from a RelationshipGraph.

    Nodes are declared under positional ids. Edges at or above
    ``critical_weight`` are drawn thick.

    Args:
        graph: The RelationshipGraph to render.
        direction: Mermaid flowchart direction (LR or TD).
        critical_weight: Impact weight from which an edge is critical.

    Returns:
        Mermaid diagram content as a string.
    """
    node_ids = _assign_mermaid_ids(
        [node.id for node in graph.nodes]
        + [endpoint for edge in graph.edges for endpoint in (edge.source, edge.target)],
        prefix="n",
    )
    lines: list[str] = [f"flowchart {direction}", ""]

    lines.append("    %% Assets")
    for node in graph.nodes:
        lines.append(f"    {_get_node_shape(node, node_ids[node.id])}")

    lines.append("")
    lines.append("    %% Relationships")
    for edge in graph.edges:
        arrow = "==>" if edge.impact_weight >= critical_weight else "-->"
        lines.append(
            f"    {node_ids[edge.source]} {arrow}|{_escape_mermaid_label(edge.label)}| "
            f"{node_ids[edge.target]}"
        )

    return "\n".join(lines)


def render_mermaid(
    graph: RelationshipGraph,
    output_path: Path = OUTPUT_PATH,
    critical_weight: int = 8,
) -> None:
    """Render a RelationshipGraph as a Mermaid flowchart diagram.

    Args:
        graph: The RelationshipGraph to visualize.
        output_path: Path where the Mermaid file will be saved.
            Defaults to visuals/relationship_graph.mmd.
        critical_weight: Impact weight from which an edge is drawn thick.

    Raises:
        OSError: If the output directory cannot be created or file cannot be written.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    content = _generate_mermaid_content(graph, critical_weight=critical_weight)
    output_path.write_text(content + "\n", encoding="utf-8")


def render_mermaid_html(
    graph: RelationshipGraph,
    output_path: Path,
    title: str = "Asset Relationships",
    critical_weight: int = 8,
) -> None:
    """Render a RelationshipGraph as an HTML page with an embedded Mermaid diagram.

    Args:
        graph: The RelationshipGraph to visualize.
        output_path: Path where the HTML file will be saved.
        title: Page heading.
        critical_weight: Impact weight from which an edge is drawn thick.

    Raises:
        OSError: If the output directory cannot be created or file cannot be written.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    mermaid_content = _generate_mermaid_content(graph, critical_weight=critical_weight)
    node_count = len(graph.nodes)
    edge_count = len(graph.edges)
    safe_title = html.escape(title)

    html_template = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{safe_title} ({node_count} assets)</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            background: #f5f5f5;
            color: #333;
            margin: 0;
        }}
        header {{
            background: linear-gradient(135deg, #1a1a2e 0%, #16213e 100%);
            color: white;
            padding: 1rem 2rem;
            display: flex;
            justify-content: space-between;
            align-items: center;
        }}
        .stat {{
            background: rgba(255,255,255,0.15);
            padding: 0.5rem 1rem;
            border-radius: 6px;
            margin-left: 0.75rem;
        }}
        main {{
            overflow: auto;
            padding: 2rem;
        }}
    </style>
</head>
<body>
    <header>
        <h1>{safe_title}</h1>
        <div>
            <span class="stat">{node_count} assets</span>
            <span class="stat">{edge_count} relationships</span>
        </div>
    </header>
    <main>
        <pre class="mermaid">
{html.escape(mermaid_content, quote=False)}
        </pre>
    </main>
    <script src="{MERMAID_CDN}"></script>
    <script>mermaid.initialize({{ startOnLoad: true, maxTextSize: 500000, securityLevel: 'loose' }});</script>
</body>
</html>
"""
    output_path.write_text(html_template, encoding="utf-8")


def _generate_pipeline_mermaid(steps: list[PipelineStep]) -> str:
    """Generate a left-to-right Mermaid flowchart of a pipeline.

    Uses the same derived edges as the visual builder, Start and End
    anchors included; the empty-pipeline placeholder is drawn dotted.
    """
    node_ids = {
        START_NODE_ID: START_NODE_ID,
        END_NODE_ID: END_NODE_ID,
        **_assign_mermaid_ids([step.id for step in steps], prefix="s"),
    }
    lines: list[str] = ["flowchart LR", ""]

    lines.append(f"    {START_NODE_ID}((Start))")
    for step in steps:
        lines.append(f'    {node_ids[step.id]}["{_escape_mermaid_label(step.name)}"]')
    lines.append(f"    {END_NODE_ID}((End))")

    lines.append("")
    for edge in steps_to_edges(steps):
        arrow = "-.->" if edge.dashed else "-->"
        lines.append(f"    {node_ids[edge.source]} {arrow} {node_ids[edge.target]}")

    return "\n".join(lines)


def render_pipeline_mermaid(steps: list[PipelineStep], output_path: Path = PIPELINE_OUTPUT_PATH) -> None:
    """Render a pipeline's steps as a Mermaid flowchart diagram.

    Args:
        steps: Pipeline steps.
        output_path: Path where the Mermaid file will be saved.
            Defaults to visuals/pipeline.mmd.

    Raises:
        OSError: If the output directory cannot be created or file cannot be written.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(_generate_pipeline_mermaid(steps) + "\n", encoding="utf-8")
