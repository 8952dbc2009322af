"""Input loading module.

This module loads relationship, attack path and pipeline documents from
disk. The documents are JSON as returned by the remote API; parsing and
schema validation are delegated to Pydantic.
"""

from pathlib import Path

from pydantic import TypeAdapter

from exposure_graph.pipeline_schema import PipelineTemplate
from exposure_graph.schema import AssetRelationship, AttackPath

_RELATIONSHIPS_ADAPTER = TypeAdapter(list[AssetRelationship])
_ATTACK_PATHS_ADAPTER = TypeAdapter(list[AttackPath])


def load_relationships(file_path: Path) -> list[AssetRelationship]:
    """Load an asset relationship list from a JSON array file.

    Args:
        file_path: Path to the JSON file.

    Returns:
        The parsed relationships, in file order.

    Raises:
        FileNotFoundError: If the specified file does not exist.
        pydantic.ValidationError: If the content does not match the schema.
    """
    return _RELATIONSHIPS_ADAPTER.validate_json(file_path.read_text(encoding="utf-8"))


def load_attack_paths(file_path: Path) -> list[AttackPath]:
    """Load an attack path list from a JSON array file.

    Raises:
        FileNotFoundError: If the specified file does not exist.
        pydantic.ValidationError: If the content does not match the schema.
    """
    return _ATTACK_PATHS_ADAPTER.validate_json(file_path.read_text(encoding="utf-8"))


def load_pipeline(file_path: Path) -> PipelineTemplate:
    """Load a pipeline template, steps included, from a JSON object file.

    Raises:
        FileNotFoundError: If the specified file does not exist.
        pydantic.ValidationError: If the content does not match the schema.
    """
    return PipelineTemplate.model_validate_json(file_path.read_text(encoding="utf-8"))
