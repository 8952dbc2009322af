"""Configuration module for exposure-graph.

This module provides configuration management using Pydantic models.
All configuration values are read from environment variables.
Supports loading from .env file via python-dotenv.
"""

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]

# Load environment variables from .env file (if present)
load_dotenv()


class Config(BaseModel):
    """Application configuration loaded from environment variables.

    Attributes:
        relationships_path: JSON file holding the asset relationship list.
        attack_paths_path: JSON file holding precomputed attack paths.
        pipeline_path: JSON file holding a pipeline template with its steps.
        output_dir: Directory where derived JSON documents are written.
        visuals_dir: Directory where Mermaid, HTML and PNG renders are written.
        log_level: Minimum level for the stderr log sink.
        critical_impact_weight: Impact weight from which a depends_on
            relationship counts as a critical path in impact analysis.
        repair_relationships: Drop invalid relationships instead of failing.
        render_png: Render the relationship graph as a PNG image.
        layout_node_width: Width of a pipeline node on the canvas.
        layout_node_height: Height of a pipeline node on the canvas.
        layout_horizontal_gap: Gap between two level columns.
        layout_vertical_gap: Gap between two nodes of the same column.
        layout_origin_x: X coordinate of the Start anchor.
        layout_origin_y: Baseline Y coordinate columns are centred on.
    """

    model_config = ConfigDict(extra="forbid")

    relationships_path: Path = Field(
        default=Path("data/relationships.json"),
        description="Asset relationship list (JSON array)",
    )
    attack_paths_path: Path = Field(
        default=Path("data/attack_paths.json"),
        description="Attack path list (JSON array)",
    )
    pipeline_path: Path = Field(
        default=Path("data/pipeline.json"),
        description="Pipeline template (JSON object)",
    )
    output_dir: Path = Field(
        default=Path("data"),
        description="Directory for derived JSON output",
    )
    visuals_dir: Path = Field(
        default=Path("visuals"),
        description="Directory for rendered diagrams",
    )
    log_level: LogLevel = Field(
        default="INFO",
        description="loguru level name",
    )
    critical_impact_weight: int = Field(
        default=8,
        description="Minimum impact weight of a critical dependency",
        ge=1,
        le=10,
    )
    repair_relationships: bool = Field(
        default=True,
        description="Drop invalid relationships instead of failing",
    )
    render_png: bool = Field(
        default=True,
        description="Render the relationship graph as PNG",
    )
    layout_node_width: int = Field(default=200, gt=0)
    layout_node_height: int = Field(default=80, gt=0)
    layout_horizontal_gap: int = Field(default=80, ge=0)
    layout_vertical_gap: int = Field(default=40, ge=0)
    layout_origin_x: int = Field(default=50)
    layout_origin_y: int = Field(default=100)


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def load_config() -> Config:
    """Load configuration from environment variables.

    Reads the following environment variables:
    - RELATIONSHIPS_PATH: relationship list (default: "data/relationships.json")
    - ATTACK_PATHS_PATH: attack path list (default: "data/attack_paths.json")
    - PIPELINE_PATH: pipeline template (default: "data/pipeline.json")
    - OUTPUT_DIR: derived JSON directory (default: "data")
    - VISUALS_DIR: diagram directory (default: "visuals")
    - LOG_LEVEL: log level (default: "INFO")
    - CRITICAL_IMPACT_WEIGHT: critical dependency threshold (default: 8)
    - REPAIR_RELATIONSHIPS: drop invalid relationships (default: "true")
    - RENDER_PNG: render PNG graph (default: "true")
    - LAYOUT_NODE_WIDTH, LAYOUT_NODE_HEIGHT, LAYOUT_HORIZONTAL_GAP,
      LAYOUT_VERTICAL_GAP, LAYOUT_ORIGIN_X, LAYOUT_ORIGIN_Y: canvas
      layout constants (defaults: 200, 80, 80, 40, 50, 100)

    Returns:
        A validated Config instance.

    Raises:
        pydantic.ValidationError: If environment values fail validation.
        ValueError: If a numeric variable is not an integer.
    """
    return Config(
        relationships_path=Path(os.environ.get("RELATIONSHIPS_PATH", "data/relationships.json")),
        attack_paths_path=Path(os.environ.get("ATTACK_PATHS_PATH", "data/attack_paths.json")),
        pipeline_path=Path(os.environ.get("PIPELINE_PATH", "data/pipeline.json")),
        output_dir=Path(os.environ.get("OUTPUT_DIR", "data")),
        visuals_dir=Path(os.environ.get("VISUALS_DIR", "visuals")),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        critical_impact_weight=int(os.environ.get("CRITICAL_IMPACT_WEIGHT", "8")),
        repair_relationships=_parse_bool(os.environ.get("REPAIR_RELATIONSHIPS", "true")),
        render_png=_parse_bool(os.environ.get("RENDER_PNG", "true")),
        layout_node_width=int(os.environ.get("LAYOUT_NODE_WIDTH", "200")),
        layout_node_height=int(os.environ.get("LAYOUT_NODE_HEIGHT", "80")),
        layout_horizontal_gap=int(os.environ.get("LAYOUT_HORIZONTAL_GAP", "80")),
        layout_vertical_gap=int(os.environ.get("LAYOUT_VERTICAL_GAP", "40")),
        layout_origin_x=int(os.environ.get("LAYOUT_ORIGIN_X", "50")),
        layout_origin_y=int(os.environ.get("LAYOUT_ORIGIN_Y", "100")),
    )
