"""Asset relationship schema definitions using Pydantic v2.

This module defines the typed vocabulary of the relationship model
(asset types, relationship types, confidence and discovery method) and
the models exchanged with the remote API: relationships, the derived
visualization graph, statistics, attack paths and impact analysis.

The remote API speaks camelCase JSON. Every model accepts both the
camelCase aliases and the snake_case field names.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AssetType = Literal[
    # External attack surface
    "domain",
    "certificate",
    "ip_address",
    # Applications
    "website",
    "api",
    "mobile_app",
    "application",
    "endpoint",
    # Cloud
    "cloud_account",
    "compute",
    "storage",
    "serverless",
    # Infrastructure
    "host",
    "server",
    "container",
    "database",
    "network",
    # Code
    "repository",
    "unclassified",
    # Legacy types still returned by older API versions
    "service",
    "credential",
    "mobile",
]

ExtendedAssetType = Literal[
    AssetType,
    "k8s_cluster",
    "k8s_workload",
    "container_image",
    "api_collection",
    "api_endpoint",
    "load_balancer",
    "identity_provider",
]

RelationshipType = Literal[
    "runs_on",
    "hosted_on",
    "depends_on",
    "contains",
    "connected_to",
    "authenticates_to",
    "sends_data_to",
    "exposes",
    "manages",
    "virtualized_by",
    "member_of",
    "provides_dr_for",
    "load_balances",
    "owned_by",
    "deployed_to",
]

RelationshipDirection = Literal["outgoing", "incoming"]

RelationshipConfidence = Literal["high", "medium", "low"]

DiscoveryMethod = Literal["automatic", "manual", "imported", "inferred"]


class ApiModel(BaseModel):
    """Base model for payloads exchanged with the remote API."""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class AssetRelationship(ApiModel):
    """A directed, typed edge between two assets.

    Attributes:
        id: Unique identifier of the relationship.
        type: Relationship type from the CMDB vocabulary.
        source_asset_id: Id of the asset initiating the relationship.
        source_asset_name: Display name of the source asset.
        source_asset_type: Type of the source asset.
        target_asset_id: Id of the asset being related to.
        target_asset_name: Display name of the target asset.
        target_asset_type: Type of the target asset.
        description: Optional free text.
        confidence: How sure discovery is about the relationship.
        discovery_method: How the relationship was found.
        impact_weight: Criticality from 1 to 10.
        tags: Free-form labels used for filtering.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
        last_verified: Last time discovery confirmed the relationship.
    """

    id: str
    type: RelationshipType
    source_asset_id: str
    source_asset_name: str
    source_asset_type: ExtendedAssetType
    target_asset_id: str
    target_asset_name: str
    target_asset_type: ExtendedAssetType
    description: str | None = None
    confidence: RelationshipConfidence
    discovery_method: DiscoveryMethod
    impact_weight: int = Field(ge=1, le=10)
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    last_verified: datetime | None = None


class CreateRelationshipInput(ApiModel):
    """Payload for creating a relationship between two existing assets."""

    type: RelationshipType
    source_asset_id: str
    target_asset_id: str
    description: str | None = None
    confidence: RelationshipConfidence = "medium"
    discovery_method: DiscoveryMethod = "manual"
    impact_weight: int = Field(default=5, ge=1, le=10)
    tags: list[str] = Field(default_factory=list)


class UpdateRelationshipInput(ApiModel):
    """Payload for updating the mutable fields of a relationship."""

    description: str | None = None
    confidence: RelationshipConfidence | None = None
    impact_weight: int | None = Field(default=None, ge=1, le=10)
    tags: list[str] | None = None
    last_verified: datetime | None = None


class RelationshipLabelPair(BaseModel):
    """Direct and inverse display labels for a relationship type."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    direct: str
    inverse: str
    description: str


class RelationshipConstraint(BaseModel):
    """One allowed (source types, target types) pairing for a relationship type."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    source_types: tuple[ExtendedAssetType, ...]
    target_types: tuple[ExtendedAssetType, ...]


class RelationshipGraphNode(ApiModel):
    """A deduplicated asset node of a relationship graph."""

    id: str
    name: str
    type: ExtendedAssetType
    risk_score: float | None = None
    finding_count: int | None = None


class RelationshipGraphEdge(ApiModel):
    """One relationship rendered as a graph edge."""

    id: str
    source: str
    target: str
    type: RelationshipType
    label: str
    impact_weight: int


class RelationshipGraph(ApiModel):
    """Visualization-ready node and edge lists."""

    nodes: list[RelationshipGraphNode] = Field(default_factory=list)
    edges: list[RelationshipGraphEdge] = Field(default_factory=list)


class RelationshipStats(ApiModel):
    """Aggregate counts over a relationship list."""

    total_relationships: int
    by_type: dict[RelationshipType, int]
    by_confidence: dict[RelationshipConfidence, int]
    by_discovery_method: dict[DiscoveryMethod, int]
    average_impact_weight: float


class AttackPathStep(ApiModel):
    """One hop of an attack path."""

    asset_id: str
    asset_name: str
    asset_type: ExtendedAssetType
    relationship_type: RelationshipType
    relationship_direction: RelationshipDirection


class AttackPath(ApiModel):
    """An ordered chain of assets from an entry point to a target asset."""

    id: str
    name: str
    description: str | None = None
    steps: list[AttackPathStep]
    total_risk_score: float
    entry_point: RelationshipGraphNode
    target_asset: RelationshipGraphNode
    created_at: datetime


class ImpactAnalysis(ApiModel):
    """Assets affected when one asset becomes unavailable or compromised.

    Attributes:
        source_asset_id: The asset the analysis starts from.
        directly_impacted: Assets with a depends_on relationship to the source.
        transitively_impacted: Assets reaching the source only through
            other dependents.
        total_impacted_count: Size of the union of both lists.
        critical_paths_count: Traversed dependencies at or above the
            critical impact weight.
        max_depth: Longest shortest-hop distance reached from the source.
    """

    source_asset_id: str
    directly_impacted: list[str]
    transitively_impacted: list[str]
    total_impacted_count: int
    critical_paths_count: int
    max_depth: int
