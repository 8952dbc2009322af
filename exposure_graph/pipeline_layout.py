"""Pipeline dependency layout and edge derivation.

This module turns a list of pipeline steps into what the visual builder
draws:

- a column (level) per step, using longest-path leveling so a step is
  always drawn to the right of everything it depends on
- canvas positions for every step, left to right by level
- the edge list, including synthetic Start and End anchors

Nothing in here raises on user-edited data. Dangling ``depends_on`` keys
are dropped, orphans and cycle members fall back to level 0.
"""

from collections import deque

import networkx as nx
from loguru import logger

from exposure_graph.config import Config
from exposure_graph.pipeline_schema import (
    END_NODE_ID,
    START_NODE_ID,
    FlowEdge,
    PipelineStep,
    UIPosition,
)

# Edge colours of the builder canvas
START_EDGE_COLOR = "#10b981"
DEPENDENCY_EDGE_COLOR = "#3b82f6"
END_EDGE_COLOR = "#ef4444"
PLACEHOLDER_EDGE_COLOR = "#94a3b8"

# Offset of the first level column from the Start anchor
FIRST_COLUMN_OFFSET = 100

# Vertical offset of Start/End anchors from the baseline
ANCHOR_Y_OFFSET = 50

# Position used when a step has neither a saved nor a computed position
FALLBACK_X = 200


def _is_root(step: PipelineStep) -> bool:
    return not step.depends_on


def compute_levels(steps: list[PipelineStep]) -> dict[str, int]:
    """Assign a level (column index) to every step key.

    Runs a breadth-first relaxation from the root steps (no dependencies).
    A step's level is the longest dependency chain leading to it, so under
    a diamond A -> (B, C) -> D, D lands one column after both B and C.

    No relaxation raises a level above ``len(steps) - 1``, the longest
    chain an acyclic pipeline can have, so dependency cycles reachable
    from a root terminate instead of re-queuing forever.

    Args:
        steps: Pipeline steps.

    Returns:
        Mapping of step_key to level. Steps unreachable from any root
        (orphans, cycle members) get level 0.
    """
    levels: dict[str, int] = {}
    if not steps:
        return levels

    max_level = len(steps) - 1
    queue: deque[tuple[str, int]] = deque()

    for step in steps:
        if _is_root(step):
            levels[step.step_key] = 0
            queue.append((step.step_key, 0))

    while queue:
        step_key, level = queue.popleft()
        new_level = level + 1
        if new_level > max_level:
            continue

        for step in steps:
            if step_key not in step.depends_on:
                continue
            current = levels.get(step.step_key)
            if current is None or new_level > current:
                levels[step.step_key] = new_level
                queue.append((step.step_key, new_level))

    for step in steps:
        levels.setdefault(step.step_key, 0)

    return levels


def calculate_auto_layout(
    steps: list[PipelineStep],
    config: Config | None = None,
) -> dict[str, UIPosition]:
    """Calculate canvas positions for steps from their dependency graph.

    Steps are grouped into columns by level. Each column is stacked
    vertically and centred on the baseline, then clamped so no node sits
    above it.

    Args:
        steps: Pipeline steps.
        config: Layout constants. Defaults to ``Config()``.

    Returns:
        Mapping of step id (not key) to position, in step order.

    Example:
        >>> positions = calculate_auto_layout(steps)
        >>> positions["step-a"]
        UIPosition(x=150.0, y=100.0)
    """
    config = config or Config()
    positions: dict[str, UIPosition] = {}

    if not steps:
        return positions

    levels = compute_levels(steps)

    level_groups: dict[int, list[PipelineStep]] = {}
    for step in steps:
        level_groups.setdefault(levels[step.step_key], []).append(step)

    node_height = config.layout_node_height
    column_width = config.layout_node_width + config.layout_horizontal_gap
    row_height = node_height + config.layout_vertical_gap

    for level, steps_in_level in level_groups.items():
        x = config.layout_origin_x + FIRST_COLUMN_OFFSET + level * column_width
        total_height = (
            len(steps_in_level) * node_height
            + (len(steps_in_level) - 1) * config.layout_vertical_gap
        )
        start_y = config.layout_origin_y - total_height / 2 + node_height / 2

        for index, step in enumerate(steps_in_level):
            y = start_y + index * row_height
            positions[step.id] = UIPosition(x=x, y=max(config.layout_origin_y, y))

    return {step.id: positions[step.id] for step in steps if step.id in positions}


def steps_to_edges(steps: list[PipelineStep]) -> list[FlowEdge]:
    """Derive the builder canvas edges from step dependencies.

    Produces, in this order:
    1. Start -> every root step (no dependencies)
    2. dependency -> dependent for every ``depends_on`` key that resolves
       to a step; unresolved keys are dropped
    3. every leaf step (nobody depends on it) -> End
    4. a single dashed Start -> End placeholder when there are no steps

    Args:
        steps: Pipeline steps.

    Returns:
        FlowEdge list. Ids are ``f"{source}-{target}"`` and therefore
        stable across calls with the same steps.
    """
    edges: list[FlowEdge] = []

    for step in steps:
        if _is_root(step):
            edges.append(_edge(START_NODE_ID, step.id, "start", START_EDGE_COLOR))

    # First step wins if a key is duplicated, matching a front-to-back search
    steps_by_key: dict[str, PipelineStep] = {}
    for step in steps:
        steps_by_key.setdefault(step.step_key, step)

    seen_edge_ids: set[str] = set()
    for step in steps:
        for depends_on_key in step.depends_on:
            source_step = steps_by_key.get(depends_on_key)
            if source_step is None:
                logger.debug(f"Step '{step.step_key}' depends on unknown key '{depends_on_key}'")
                continue
            edge = _edge(source_step.id, step.id, "dependency", DEPENDENCY_EDGE_COLOR)
            # A key listed twice still draws one edge
            if edge.id in seen_edge_ids:
                continue
            seen_edge_ids.add(edge.id)
            edges.append(edge)

    referenced_keys = {key for step in steps for key in step.depends_on}
    for step in steps:
        if step.step_key not in referenced_keys:
            edges.append(_edge(step.id, END_NODE_ID, "end", END_EDGE_COLOR))

    if not steps:
        edges.append(
            _edge(START_NODE_ID, END_NODE_ID, "placeholder", PLACEHOLDER_EDGE_COLOR, dashed=True)
        )

    return edges


def _edge(source: str, target: str, kind: str, color: str, dashed: bool = False) -> FlowEdge:
    return FlowEdge(
        id=f"{source}-{target}",
        source=source,
        target=target,
        kind=kind,  # type: ignore[arg-type]
        dashed=dashed,
        color=color,
    )


def find_dependency_cycles(steps: list[PipelineStep]) -> list[list[str]]:
    """Find dependency cycles among steps.

    The layout tolerates cycles; this is for surfacing them to whoever
    authored the pipeline. A step depending on itself is a cycle of one.

    Args:
        steps: Pipeline steps.

    Returns:
        Each cycle as a list of step keys, in a deterministic order.
    """
    G = nx.DiGraph()
    known_keys = {step.step_key for step in steps}
    G.add_nodes_from(known_keys)
    for step in steps:
        for depends_on_key in step.depends_on:
            if depends_on_key in known_keys:
                G.add_edge(depends_on_key, step.step_key)

    cycles = [_rotate_to_min(cycle) for cycle in nx.simple_cycles(G)]
    return sorted(cycles)


def _rotate_to_min(cycle: list[str]) -> list[str]:
    start = cycle.index(min(cycle))
    return cycle[start:] + cycle[:start]


def resolve_node_positions(
    steps: list[PipelineStep],
    config: Config | None = None,
) -> dict[str, UIPosition]:
    """Positions to draw steps at: saved ``ui_position`` first, auto-layout otherwise."""
    config = config or Config()
    auto_positions = calculate_auto_layout(steps, config)
    fallback = UIPosition(x=FALLBACK_X, y=config.layout_origin_y)
    return {
        step.id: step.ui_position or auto_positions.get(step.id, fallback)
        for step in steps
    }


def default_start_position(config: Config | None = None) -> UIPosition:
    config = config or Config()
    return UIPosition(x=config.layout_origin_x, y=config.layout_origin_y + ANCHOR_Y_OFFSET)


def default_end_position(
    steps: list[PipelineStep],
    config: Config | None = None,
) -> UIPosition:
    """Place the End anchor one column to the right of the rightmost step.

    Args:
        steps: Pipeline steps, with or without saved positions.
        config: Layout constants. Defaults to ``Config()``.

    Returns:
        End anchor position.
    """
    config = config or Config()
    if steps:
        max_x = max(position.x for position in resolve_node_positions(steps, config).values())
    else:
        max_x = config.layout_origin_x + FIRST_COLUMN_OFFSET

    return UIPosition(
        x=max_x + config.layout_node_width + config.layout_horizontal_gap,
        y=config.layout_origin_y + ANCHOR_Y_OFFSET,
    )
