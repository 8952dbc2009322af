"""Pipeline schema definitions using Pydantic v2.

Steps reference each other through ``depends_on``, a list of
``step_key`` values. Keys are human-chosen and survive id regeneration,
so every join between steps goes through the key, never through ``id``.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

START_NODE_ID = "__start__"
END_NODE_ID = "__end__"

PipelineNodeType = Literal["scanner", "trigger", "condition", "action", "notification", "tool"]

FlowEdgeKind = Literal["start", "dependency", "end", "placeholder"]

StepConditionType = Literal["always", "never", "asset_type", "expression", "step_result"]


class UIPosition(BaseModel):
    """Canvas coordinates of a node."""

    model_config = ConfigDict(extra="forbid")

    x: float
    y: float


class StepCondition(BaseModel):
    """Run condition of a step; ``value`` holds the asset type or expression."""

    model_config = ConfigDict(extra="forbid")

    type: StepConditionType
    value: str | None = None


class PipelineStep(BaseModel):
    """A single scan step of a pipeline.

    Attributes:
        id: Server-assigned id, or a ``temp-`` id for unsaved steps.
        step_key: Logical key, unique within the pipeline.
        name: Display name.
        description: Optional free text.
        order: 1-based position in the step list.
        ui_position: Saved canvas position, if the user ever moved the node.
        node_type: Visual builder node type.
        tool: Scanner tool the step runs.
        capabilities: Capabilities required from the agent running the step.
        config: Tool-specific configuration.
        timeout_seconds: Step timeout.
        depends_on: Keys of the steps that must finish first. ``null``
            from the API reads as no dependencies.
        condition: Optional run condition.
        max_retries: Retry budget.
        retry_delay_seconds: Delay between retries.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    step_key: str
    name: str
    description: str | None = None
    order: int = 0
    ui_position: UIPosition | None = None
    node_type: PipelineNodeType | None = None
    tool: str | None = None
    capabilities: list[str] = Field(default_factory=list)
    config: dict[str, Any] | None = None
    timeout_seconds: int | None = None
    depends_on: list[str] = Field(default_factory=list)
    condition: StepCondition | None = None
    max_retries: int = 0
    retry_delay_seconds: int = 0

    @field_validator("depends_on", "capabilities", mode="before")
    @classmethod
    def null_list_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class PipelineTemplate(BaseModel):
    """A pipeline as loaded into and saved from the visual builder."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: str | None = None
    version: int = 1
    steps: list[PipelineStep] = Field(default_factory=list)
    ui_start_position: UIPosition | None = None
    ui_end_position: UIPosition | None = None


class FlowEdge(BaseModel):
    """A directed edge of the builder canvas.

    ``id`` is always ``f"{source}-{target}"`` so that re-deriving edges
    from the same steps yields the same ids.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    source: str
    target: str
    kind: FlowEdgeKind
    animated: bool = True
    dashed: bool = False
    color: str
