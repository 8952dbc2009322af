"""Edit operations of the pipeline visual builder.

Canvas gestures translate into changes of the step list. Every operation
takes the current steps and returns a new list of new step objects; the
input list and its steps are never mutated. Unknown ids, and gestures
the canvas does not allow (into Start, out of End), return an unchanged
copy of the list.

Edges touching Start or End are never stored: they are re-derived from
``depends_on`` by ``pipeline_layout.steps_to_edges``.
"""

import re
import secrets
import string
from typing import Any

from loguru import logger

from exposure_graph.pipeline_schema import (
    END_NODE_ID,
    START_NODE_ID,
    PipelineStep,
    UIPosition,
)

# Same alphabet as nanoid: URL-safe, 64 symbols
_ID_ALPHABET = string.ascii_letters + string.digits + "_-"

DEFAULT_STEP_TIMEOUT_SECONDS = 3600


def slugify(text: str, max_length: int = 40) -> str:
    """Turn text into an ASCII identifier of at most ``max_length`` characters.

    Lowercases, keeps only ``[a-z0-9]``, whitespace and hyphens, collapses
    whitespace/underscore/hyphen runs into one hyphen and trims hyphens
    from both ends.

    Example:
        >>> slugify("Nuclei  Scan_v2!")
        'nuclei-scanv2'
    """
    if not text:
        return ""
    slug = text.lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    slug = slug.strip("-")
    return slug[:max_length]


def _random_suffix(length: int) -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def generate_step_key(name: str) -> str:
    """Generate a step key such as ``semgrep-V1StGXnO`` from a tool or step name."""
    slug = slugify(name, 40)
    suffix = _random_suffix(8)
    return f"{slug}-{suffix}" if slug else f"step-{suffix}"


def generate_temp_step_id() -> str:
    """Generate a client-side id for an unsaved step; the server replaces it on save."""
    return f"temp-{_random_suffix(12)}"


def _find(steps: list[PipelineStep], step_id: str) -> PipelineStep | None:
    return next((step for step in steps if step.id == step_id), None)


def _replace(
    steps: list[PipelineStep], step_id: str, updates: dict[str, Any]
) -> list[PipelineStep]:
    return [
        step.model_copy(update=updates, deep=True) if step.id == step_id else step.model_copy(deep=True)
        for step in steps
    ]


def _copy(steps: list[PipelineStep]) -> list[PipelineStep]:
    return [step.model_copy(deep=True) for step in steps]


def connect(steps: list[PipelineStep], source_id: str, target_id: str) -> list[PipelineStep]:
    """Apply a drag-connection from ``source_id`` to ``target_id``.

    - into Start, out of End, or onto itself: rejected
    - from Start: the target becomes a root (its ``depends_on`` is cleared)
    - into End: nothing to store
    - step to step: the source's key is appended to the target's
      ``depends_on`` unless already present

    Args:
        steps: Current steps.
        source_id: Node id the connection starts from (step id or ``__start__``).
        target_id: Node id the connection ends at (step id or ``__end__``).

    Returns:
        The updated step list.
    """
    if source_id == END_NODE_ID or target_id == START_NODE_ID or source_id == target_id:
        logger.debug(f"Rejected connection {source_id} -> {target_id}")
        return _copy(steps)

    target = _find(steps, target_id)

    if source_id == START_NODE_ID:
        if target is None or not target.depends_on:
            return _copy(steps)
        return _replace(steps, target_id, {"depends_on": []})

    if target_id == END_NODE_ID:
        return _copy(steps)

    source = _find(steps, source_id)
    if source is None or target is None:
        return _copy(steps)

    if source.step_key in target.depends_on:
        return _copy(steps)

    return _replace(steps, target_id, {"depends_on": [*target.depends_on, source.step_key]})


def disconnect(steps: list[PipelineStep], source_id: str, target_id: str) -> list[PipelineStep]:
    """Apply the deletion of the edge ``source_id`` -> ``target_id``.

    Start and End edges are derived, so deleting them changes nothing.
    """
    if source_id == START_NODE_ID or target_id == END_NODE_ID:
        return _copy(steps)

    source = _find(steps, source_id)
    target = _find(steps, target_id)
    if source is None or target is None:
        return _copy(steps)

    remaining = [key for key in target.depends_on if key != source.step_key]
    return _replace(steps, target_id, {"depends_on": remaining})


def delete_step(steps: list[PipelineStep], step_id: str) -> list[PipelineStep]:
    """Remove a step, strip its key from every ``depends_on`` and renumber ``order``.

    Args:
        steps: Current steps.
        step_id: Id of the step to delete.

    Returns:
        The remaining steps with ``order`` set to their 1-based position.
    """
    deleted = _find(steps, step_id)
    if deleted is None:
        return _copy(steps)

    remaining = [step for step in steps if step.id != step_id]
    return [
        step.model_copy(
            update={
                "depends_on": [key for key in step.depends_on if key != deleted.step_key],
                "order": position,
            },
            deep=True,
        )
        for position, step in enumerate(remaining, start=1)
    ]


def update_step(steps: list[PipelineStep], step_id: str, **updates: Any) -> list[PipelineStep]:
    """Apply field updates to one step.

    Renaming ``step_key`` through this function does not touch other steps;
    use ``rename_step_key`` to keep dependencies intact.
    """
    if _find(steps, step_id) is None:
        return _copy(steps)
    return _replace(steps, step_id, updates)


def rename_step_key(steps: list[PipelineStep], step_id: str, new_key: str) -> list[PipelineStep]:
    """Rename a step's key and rewrite every ``depends_on`` that referenced it.

    Args:
        steps: Current steps.
        step_id: Id of the step to rename.
        new_key: The new key.

    Returns:
        The updated step list. Unchanged when ``new_key`` is blank or
        already used by another step.
    """
    step = _find(steps, step_id)
    new_key = new_key.strip()
    if step is None or not new_key or new_key == step.step_key:
        return _copy(steps)

    if any(other.step_key == new_key for other in steps if other.id != step_id):
        logger.warning(f"Step key '{new_key}' is already used, rename of '{step.step_key}' ignored")
        return _copy(steps)

    old_key = step.step_key
    renamed: list[PipelineStep] = []
    for other in steps:
        updates: dict[str, Any] = {
            "depends_on": [new_key if key == old_key else key for key in other.depends_on]
        }
        if other.id == step_id:
            updates["step_key"] = new_key
        renamed.append(other.model_copy(update=updates, deep=True))
    return renamed


def move_step(steps: list[PipelineStep], step_id: str, position: UIPosition) -> list[PipelineStep]:
    """Persist a dragged node's position onto its step."""
    return update_step(steps, step_id, ui_position=position)


def add_step(
    steps: list[PipelineStep],
    name: str,
    position: UIPosition,
    tool: str | None = None,
    capabilities: list[str] | None = None,
) -> list[PipelineStep]:
    """Append a new scanner step dropped onto the canvas.

    The key is generated from the tool name when one is given, otherwise
    from the step name. The step starts as a root with no dependencies.

    Args:
        steps: Current steps.
        name: Display name of the new step.
        position: Drop position.
        tool: Scanner tool, if the step was dragged from a tool palette entry.
        capabilities: Capabilities of that tool.

    Returns:
        The step list with the new step appended.
    """
    new_step = PipelineStep(
        id=generate_temp_step_id(),
        step_key=generate_step_key(tool or name),
        name=name,
        description="",
        order=len(steps) + 1,
        ui_position=position,
        node_type="scanner",
        tool=tool or "",
        capabilities=list(capabilities or []),
        timeout_seconds=DEFAULT_STEP_TIMEOUT_SECONDS,
        depends_on=[],
    )
    return [*_copy(steps), new_step]
