"""Relationship type vocabulary and constraint table.

Defines which asset types each relationship type may connect, following
CMDB relationship patterns (ServiceNow, BMC) adapted to attack surface
management. Each relationship type has:

- a bidirectional label pair in ``RELATIONSHIP_LABELS``
- an ordered list of constraint entries in ``VALID_RELATIONSHIP_CONSTRAINTS``

A pairing is valid when a single constraint entry accepts both the source
type and the target type. Entries are never combined, so ``database`` to
``database`` is allowed for ``sends_data_to`` (replication) without making
every database-sourced ``sends_data_to`` target valid.
"""

from typing import Final, get_args

from exposure_graph.schema import (
    ExtendedAssetType,
    RelationshipConstraint,
    RelationshipLabelPair,
    RelationshipType,
)

RELATIONSHIP_TYPES: Final[tuple[RelationshipType, ...]] = get_args(RelationshipType)

EXTENDED_ASSET_TYPES: Final[tuple[ExtendedAssetType, ...]] = get_args(ExtendedAssetType)

RELATIONSHIP_LABELS: Final[dict[RelationshipType, RelationshipLabelPair]] = {
    "runs_on": RelationshipLabelPair(
        direct="Runs On",
        inverse="Runs",
        description="Service or application runs on infrastructure",
    ),
    "hosted_on": RelationshipLabelPair(
        direct="Hosted On",
        inverse="Hosts",
        description="Resource is hosted on a platform or server",
    ),
    "depends_on": RelationshipLabelPair(
        direct="Depends On",
        inverse="Used By",
        description="Asset requires another asset to function",
    ),
    "contains": RelationshipLabelPair(
        direct="Contains",
        inverse="Contained By",
        description="Parent-child containment relationship",
    ),
    "connected_to": RelationshipLabelPair(
        direct="Connected To",
        inverse="Connected By",
        description="Network or logical connection between assets",
    ),
    "authenticates_to": RelationshipLabelPair(
        direct="Authenticates To",
        inverse="Authenticates",
        description="Authentication relationship (OAuth, SSO, etc.)",
    ),
    "sends_data_to": RelationshipLabelPair(
        direct="Sends Data To",
        inverse="Receives Data From",
        description="Data flow direction between assets",
    ),
    "exposes": RelationshipLabelPair(
        direct="Exposes",
        inverse="Exposed By",
        description="Asset exposes an endpoint or service",
    ),
    "manages": RelationshipLabelPair(
        direct="Manages",
        inverse="Managed By",
        description="Management or control relationship",
    ),
    "virtualized_by": RelationshipLabelPair(
        direct="Virtualized By",
        inverse="Virtualizes",
        description="Virtualization relationship",
    ),
    "member_of": RelationshipLabelPair(
        direct="Member Of",
        inverse="Has Member",
        description="Membership in a group or cluster",
    ),
    "provides_dr_for": RelationshipLabelPair(
        direct="Provides DR For",
        inverse="DR Provided By",
        description="Disaster recovery relationship",
    ),
    "load_balances": RelationshipLabelPair(
        direct="Load Balances",
        inverse="Load Balanced By",
        description="Load balancing relationship",
    ),
    "owned_by": RelationshipLabelPair(
        direct="Owned By",
        inverse="Owns",
        description="Ownership relationship (team, user)",
    ),
    "deployed_to": RelationshipLabelPair(
        direct="Deployed To",
        inverse="Has Deployment",
        description="Deployment target relationship",
    ),
}

EXTENDED_ASSET_TYPE_LABELS: Final[dict[ExtendedAssetType, str]] = {
    "domain": "Domain",
    "certificate": "Certificate",
    "ip_address": "IP Address",
    "website": "Website",
    "api": "API",
    "mobile_app": "Mobile App",
    "application": "Application",
    "endpoint": "Endpoint",
    "cloud_account": "Cloud Account",
    "compute": "Compute",
    "storage": "Storage",
    "serverless": "Serverless",
    "host": "Host",
    "server": "Server",
    "container": "Container",
    "database": "Database",
    "network": "Network",
    "repository": "Repository",
    "unclassified": "Unclassified",
    "service": "Service",
    "credential": "Credential",
    "mobile": "Mobile App",
    "k8s_cluster": "Kubernetes Cluster",
    "k8s_workload": "Kubernetes Workload",
    "container_image": "Container Image",
    "api_collection": "API Collection",
    "api_endpoint": "API Endpoint",
    "load_balancer": "Load Balancer",
    "identity_provider": "Identity Provider",
}


def _c(source_types: list[str], target_types: list[str]) -> RelationshipConstraint:
    return RelationshipConstraint(
        source_types=tuple(source_types),
        target_types=tuple(target_types),
    )


VALID_RELATIONSHIP_CONSTRAINTS: Final[dict[RelationshipType, list[RelationshipConstraint]]] = {
    "runs_on": [
        _c(["service", "api", "website"], ["host", "container", "k8s_workload", "cloud_account"]),
        _c(["database"], ["host", "container", "cloud_account"]),
        _c(["k8s_workload"], ["k8s_cluster"]),
    ],
    "hosted_on": [
        _c(["website", "api"], ["cloud_account", "host", "k8s_cluster"]),
        # DNS hosting
        _c(["domain"], ["cloud_account"]),
        _c(["database"], ["cloud_account", "host"]),
    ],
    "depends_on": [
        _c(["service", "api", "website"], ["database", "api", "service", "credential"]),
        _c(["k8s_workload"], ["container_image", "database", "api", "service"]),
        _c(["mobile"], ["api", "service"]),
    ],
    "contains": [
        _c(["k8s_cluster"], ["k8s_workload"]),
        _c(["api_collection", "api"], ["api_endpoint"]),
        _c(["host"], ["container", "service", "database"]),
        # Source code builds image
        _c(["repository"], ["container_image"]),
        _c(["network"], ["host", "cloud_account", "load_balancer"]),
    ],
    "connected_to": [
        _c(
            ["service", "api", "host", "database"],
            ["service", "api", "host", "database", "cloud_account"],
        ),
        _c(["k8s_workload"], ["k8s_workload", "database", "service"]),
    ],
    "authenticates_to": [
        _c(["api", "service", "website", "mobile"], ["identity_provider", "service", "api"]),
        _c(["k8s_workload"], ["identity_provider", "service"]),
    ],
    "sends_data_to": [
        _c(["service", "api", "website", "mobile"], ["database", "api", "service", "cloud_account"]),
        # Replication
        _c(["database"], ["database"]),
    ],
    "exposes": [
        _c(["host", "k8s_workload", "container"], ["api_endpoint", "service", "api"]),
        _c(["domain"], ["website", "api", "service"]),
        _c(["load_balancer"], ["api", "service", "website"]),
    ],
    "manages": [
        _c(["cloud_account"], ["host", "database", "k8s_cluster", "network", "load_balancer"]),
        _c(["k8s_cluster"], ["k8s_workload", "container"]),
    ],
    "virtualized_by": [
        _c(["host"], ["cloud_account", "host"]),
        _c(["container"], ["host", "k8s_workload"]),
    ],
    "member_of": [
        _c(["host", "container", "k8s_workload"], ["k8s_cluster", "network"]),
        _c(["service", "api"], ["network"]),
    ],
    "provides_dr_for": [
        _c(
            ["database", "host", "cloud_account"],
            ["database", "host", "cloud_account"],
        ),
    ],
    "load_balances": [
        _c(["load_balancer", "service", "cloud_account"], ["host", "k8s_workload", "service", "container"]),
    ],
    "owned_by": [
        # Teams and owners are represented as service assets
        _c(
            [
                "domain",
                "website",
                "service",
                "repository",
                "cloud_account",
                "host",
                "database",
                "api",
                "mobile",
                "k8s_cluster",
            ],
            ["service"],
        ),
    ],
    "deployed_to": [
        _c(["repository", "container_image"], ["k8s_cluster", "k8s_workload", "cloud_account", "host"]),
        _c(["service", "api"], ["k8s_cluster", "cloud_account"]),
    ],
}


def is_valid_relationship(
    relationship_type: str,
    source_type: str,
    target_type: str,
) -> bool:
    """Check whether a relationship type may connect two asset types.

    Args:
        relationship_type: The relationship type to check.
        source_type: Type of the asset the relationship starts from.
        target_type: Type of the asset the relationship points to.

    Returns:
        True if one constraint entry of the type accepts both the source
        and the target type. False otherwise, including for unknown
        relationship types. Direction matters: the pairing is never
        checked in reverse.

    Example:
        >>> is_valid_relationship("depends_on", "service", "database")
        True
        >>> is_valid_relationship("depends_on", "database", "service")
        False
    """
    constraints = VALID_RELATIONSHIP_CONSTRAINTS.get(relationship_type)  # type: ignore[call-overload]
    if not constraints:
        return False

    return any(
        source_type in constraint.source_types and target_type in constraint.target_types
        for constraint in constraints
    )


def get_valid_target_types(
    relationship_type: str,
    source_type: str,
) -> list[ExtendedAssetType]:
    """Get every target type a relationship type accepts for a source type.

    Args:
        relationship_type: The relationship type.
        source_type: Type of the source asset.

    Returns:
        Deduplicated target types of every constraint entry accepting
        ``source_type``, in first-seen order. Empty for unknown types.
    """
    constraints = VALID_RELATIONSHIP_CONSTRAINTS.get(relationship_type)  # type: ignore[call-overload]
    if not constraints:
        return []

    valid_targets: dict[ExtendedAssetType, None] = {}
    for constraint in constraints:
        if source_type in constraint.source_types:
            for target_type in constraint.target_types:
                valid_targets[target_type] = None

    return list(valid_targets)


def get_valid_relationship_types(source_type: str) -> list[RelationshipType]:
    """Get the relationship types an asset of ``source_type`` may start.

    Args:
        source_type: Type of the source asset.

    Returns:
        Relationship types in declaration order.
    """
    return [
        relationship_type
        for relationship_type, constraints in VALID_RELATIONSHIP_CONSTRAINTS.items()
        if any(source_type in constraint.source_types for constraint in constraints)
    ]


def get_direct_label(relationship_type: str) -> str:
    """Label for reading the relationship from source to target."""
    labels = RELATIONSHIP_LABELS.get(relationship_type)  # type: ignore[call-overload]
    return labels.direct if labels else relationship_type


def get_inverse_label(relationship_type: str) -> str:
    """Label for reading the relationship from target back to source."""
    labels = RELATIONSHIP_LABELS.get(relationship_type)  # type: ignore[call-overload]
    return labels.inverse if labels else relationship_type


def get_asset_type_label(asset_type: str) -> str:
    """Human-readable label for an asset type, falling back to the raw value."""
    return EXTENDED_ASSET_TYPE_LABELS.get(asset_type, asset_type)  # type: ignore[call-overload]
