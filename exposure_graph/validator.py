"""Relationship and pipeline validation module.

This module checks the integrity of data arriving from the remote API or
from hand-edited files, beyond what the Pydantic schemas enforce:

- relationship ids are unique
- every relationship's (type, source type, target type) triple is allowed
  by the constraint table
- pipeline step keys are present and unique and every step is named

Strict validators raise ValueError. ``validate_and_repair_relationships``
drops offending relationships instead.
"""

from loguru import logger

from exposure_graph.pipeline_layout import find_dependency_cycles
from exposure_graph.pipeline_schema import PipelineStep
from exposure_graph.relationship_types import is_valid_relationship
from exposure_graph.schema import AssetRelationship


def validate_relationships(relationships: list[AssetRelationship]) -> None:
    """Validate a relationship list.

    Performs the following validations:
      1. All relationship ids must be unique.
      2. Every relationship must satisfy the constraint table for its type.

    This function does not modify the list.

    Args:
        relationships: The relationships to validate.

    Returns:
        None. Validation passes silently if all checks succeed.

    Raises:
        ValueError: If duplicate relationship ids are found.
        ValueError: If a relationship connects asset types its type does not allow.
    """
    _validate_unique_relationship_ids(relationships)
    _validate_relationship_constraints(relationships)


def validate_and_repair_relationships(
    relationships: list[AssetRelationship],
) -> list[AssetRelationship]:
    """Validate and auto-repair a relationship list.

    Removes:
    - relationships repeating an id already seen (first one kept)
    - relationships whose asset types their type does not allow

    Args:
        relationships: The relationships to repair.

    Returns:
        A new list containing only the valid relationships, in input order.
    """
    seen_ids: set[str] = set()
    valid: list[AssetRelationship] = []
    removed_count = 0

    for rel in relationships:
        if rel.id in seen_ids:
            removed_count += 1
            continue
        seen_ids.add(rel.id)

        if not is_valid_relationship(rel.type, rel.source_asset_type, rel.target_asset_type):
            logger.debug(
                f"Dropping {rel.id}: {rel.source_asset_type} -{rel.type}-> {rel.target_asset_type}"
            )
            removed_count += 1
            continue

        valid.append(rel)

    if removed_count > 0:
        logger.warning(f"Removed {removed_count} invalid relationships")

    return valid


def validate_pipeline_steps(steps: list[PipelineStep]) -> None:
    """Validate a pipeline's step list before it reaches the builder.

    Performs the following validations:
      1. Every step has a non-blank step_key.
      2. Step keys are unique within the pipeline.
      3. Every step has a non-blank name.

    Dangling dependency keys and dependency cycles do not fail validation;
    the builder renders them gracefully. They are logged as warnings.

    Args:
        steps: The pipeline steps to validate.

    Raises:
        ValueError: Listing every blank key, duplicate key and blank name.
    """
    errors: list[str] = []
    seen_keys: set[str] = set()

    for index, step in enumerate(steps):
        if not step.step_key.strip():
            errors.append(f"step {index}: step key is required")
        elif step.step_key in seen_keys:
            errors.append(f"step {index}: duplicate step key '{step.step_key}'")
        else:
            seen_keys.add(step.step_key)

        if not step.name.strip():
            errors.append(f"step {index}: step name is required")

    if errors:
        raise ValueError(f"Invalid pipeline steps: {errors}")

    for step_key, missing in find_dangling_dependencies(steps).items():
        logger.warning(f"Step '{step_key}' depends on unknown steps {missing}")

    for cycle in find_dependency_cycles(steps):
        logger.warning(f"Dependency cycle: {' -> '.join([*cycle, cycle[0]])}")


def find_dangling_dependencies(steps: list[PipelineStep]) -> dict[str, list[str]]:
    """Map each step key to the ``depends_on`` keys that match no step.

    Args:
        steps: The pipeline steps to inspect.

    Returns:
        Only steps with at least one unknown dependency appear.
    """
    known_keys = {step.step_key for step in steps}
    dangling: dict[str, list[str]] = {}

    for step in steps:
        missing = [key for key in step.depends_on if key not in known_keys]
        if missing:
            dangling[step.step_key] = missing

    return dangling


def _validate_unique_relationship_ids(relationships: list[AssetRelationship]) -> None:
    """Check that all relationship ids are unique.

    Raises:
        ValueError: If duplicate relationship ids are found.
    """
    seen_ids: set[str] = set()
    duplicates: list[str] = []

    for rel in relationships:
        if rel.id in seen_ids:
            duplicates.append(rel.id)
        seen_ids.add(rel.id)

    if duplicates:
        raise ValueError(f"Duplicate relationship IDs found: {duplicates}")


def _validate_relationship_constraints(relationships: list[AssetRelationship]) -> None:
    """Check every relationship against the constraint table.

    Raises:
        ValueError: If a relationship connects asset types its type does not allow.
    """
    invalid: list[str] = []

    for rel in relationships:
        if not is_valid_relationship(rel.type, rel.source_asset_type, rel.target_asset_type):
            invalid.append(
                f"{rel.id} ({rel.source_asset_type} -{rel.type}-> {rel.target_asset_type})"
            )

    if invalid:
        raise ValueError(f"Relationships violate type constraints: {invalid}")
