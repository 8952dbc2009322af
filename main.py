"""Main orchestration module for exposure-graph.

This module coordinates the end-to-end workflow:
1. Load asset relationships
2. Validate (or repair) them against the relationship constraint table
3. Build the relationship graph, statistics and impact analysis, save JSON
4. Render relationship visualizations (Mermaid, HTML, PNG)
5. Load the pipeline, derive its layout and edges, save JSON and Mermaid

Paths and options come from environment variables (see exposure_graph.config).
"""

import json
import sys
from pathlib import Path

from pydantic import ValidationError

from exposure_graph.config import Config, load_config
from exposure_graph.input_loader import load_attack_paths, load_pipeline, load_relationships
from exposure_graph.log import configure_logging
from exposure_graph.pipeline_layout import (
    calculate_auto_layout,
    default_end_position,
    default_start_position,
    find_dependency_cycles,
    resolve_node_positions,
    steps_to_edges,
)
from exposure_graph.relationship_graph import (
    analyze_impact,
    build_relationship_graph,
    get_attack_paths_for_asset,
    get_relationship_stats,
)
from exposure_graph.schema import AssetRelationship, AttackPath
from exposure_graph.validator import (
    validate_and_repair_relationships,
    validate_pipeline_steps,
    validate_relationships,
)
from exposure_graph.visualizer_mermaid import (
    render_mermaid,
    render_mermaid_html,
    render_pipeline_mermaid,
)

GRAPH_JSON_NAME = "relationship_graph.json"
PIPELINE_JSON_NAME = "pipeline_layout.json"


def save_json(document: dict, output_path: Path) -> None:
    """Save a JSON document to disk.

    Args:
        document: JSON-serializable document.
        output_path: Path where the JSON file will be written.

    Raises:
        OSError: If the file cannot be written.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(document, indent=2), encoding="utf-8")


def build_relationship_report(
    relationships: list[AssetRelationship],
    attack_paths: list[AttackPath],
    config: Config,
) -> dict:
    """Assemble graph, statistics and per-asset impact into one JSON document."""
    graph = build_relationship_graph(relationships)
    stats = get_relationship_stats(relationships)

    impact = {}
    for node in graph.nodes:
        analysis = analyze_impact(relationships, node.id, config.critical_impact_weight)
        if analysis.total_impacted_count:
            impact[node.id] = analysis.model_dump(mode="json", by_alias=True)

    paths_by_asset = {
        node.id: [path.id for path in get_attack_paths_for_asset(attack_paths, node.id)]
        for node in graph.nodes
    }

    return {
        "graph": graph.model_dump(mode="json", by_alias=True, exclude_none=True),
        "stats": stats.model_dump(mode="json", by_alias=True),
        "impact": impact,
        "attackPaths": {asset: ids for asset, ids in paths_by_asset.items() if ids},
    }


def run_relationships(config: Config) -> None:
    """Stages 1-4: relationship graph."""
    print(f"[1/5] Loading relationships from {config.relationships_path}...")
    relationships = load_relationships(config.relationships_path)
    print(f"      Loaded {len(relationships)} relationships")

    attack_paths: list[AttackPath] = []
    if config.attack_paths_path.exists():
        attack_paths = load_attack_paths(config.attack_paths_path)
        print(f"      Loaded {len(attack_paths)} attack paths")

    print("[2/5] Validating relationships...")
    if config.repair_relationships:
        relationships = validate_and_repair_relationships(relationships)
    else:
        validate_relationships(relationships)
    print(f"      Validation passed: {len(relationships)} relationships")

    print("[3/5] Building relationship graph...")
    report = build_relationship_report(relationships, attack_paths, config)
    graph_path = config.output_dir / GRAPH_JSON_NAME
    save_json(report, graph_path)
    print(
        f"      {len(report['graph']['nodes'])} assets, {len(report['graph']['edges'])} edges, "
        f"average impact {report['stats']['averageImpactWeight']:.1f}"
    )
    print(f"      Saved to {graph_path}")

    print("[4/5] Rendering relationship visualizations...")
    graph = build_relationship_graph(relationships)
    render_mermaid(
        graph,
        config.visuals_dir / "relationship_graph.mmd",
        critical_weight=config.critical_impact_weight,
    )
    render_mermaid_html(
        graph,
        config.visuals_dir / "relationship_graph.html",
        critical_weight=config.critical_impact_weight,
    )
    if config.render_png:
        # matplotlib is only imported when a PNG is requested
        from exposure_graph.visualizer import render_graph

        render_graph(graph, config.visuals_dir / "relationship_graph.png")
    print(f"      Diagrams saved to {config.visuals_dir}")


def run_pipeline(config: Config) -> None:
    """Stage 5: pipeline layout."""
    print(f"[5/5] Laying out pipeline from {config.pipeline_path}...")
    if not config.pipeline_path.exists():
        print("      No pipeline file, skipped")
        return

    pipeline = load_pipeline(config.pipeline_path)
    # Logs a warning per dangling key and per cycle
    validate_pipeline_steps(pipeline.steps)

    cycles = find_dependency_cycles(pipeline.steps)

    auto_layout = calculate_auto_layout(pipeline.steps, config)
    document = {
        "pipelineId": pipeline.id,
        "autoLayout": {step_id: pos.model_dump() for step_id, pos in auto_layout.items()},
        "positions": {
            step_id: pos.model_dump()
            for step_id, pos in resolve_node_positions(pipeline.steps, config).items()
        },
        "startPosition": (pipeline.ui_start_position or default_start_position(config)).model_dump(),
        "endPosition": (
            pipeline.ui_end_position or default_end_position(pipeline.steps, config)
        ).model_dump(),
        "edges": [edge.model_dump() for edge in steps_to_edges(pipeline.steps)],
        "cycles": cycles,
    }

    layout_path = config.output_dir / PIPELINE_JSON_NAME
    save_json(document, layout_path)
    render_pipeline_mermaid(pipeline.steps, config.visuals_dir / "pipeline.mmd")
    print(f"      {len(pipeline.steps)} steps, {len(document['edges'])} edges")
    print(f"      Saved to {layout_path}")


def main() -> int:
    """Run the exposure-graph workflow.

    Returns:
        Exit code: 0 on success, 1 on failure.
    """
    try:
        config = load_config()
        configure_logging(config.log_level)

        run_relationships(config)
        run_pipeline(config)

        print("\n✓ Completed successfully")
        return 0

    except FileNotFoundError as e:
        print(f"\n✗ File not found: {e}", file=sys.stderr)
        return 1

    except ValidationError as e:
        print(f"\n✗ Invalid input: {e}", file=sys.stderr)
        return 1

    except ValueError as e:
        print(f"\n✗ Validation error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
