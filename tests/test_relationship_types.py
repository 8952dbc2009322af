"""Unit tests for the relationship_types module.

Tests the relationship constraint table:
- Direction-sensitive validity
- OR-of-ANDs semantics across constraint entries
- Valid target and relationship type lookups
- Label lookups
- Vocabulary, labels and constraints staying in lockstep
"""

import pytest

from exposure_graph.relationship_types import (
    EXTENDED_ASSET_TYPE_LABELS,
    EXTENDED_ASSET_TYPES,
    RELATIONSHIP_LABELS,
    RELATIONSHIP_TYPES,
    VALID_RELATIONSHIP_CONSTRAINTS,
    get_asset_type_label,
    get_direct_label,
    get_inverse_label,
    get_valid_relationship_types,
    get_valid_target_types,
    is_valid_relationship,
)


class TestIsValidRelationship:
    """Tests for is_valid_relationship function."""

    def test_service_depends_on_database(self) -> None:
        """A service may depend on a database."""
        assert is_valid_relationship("depends_on", "service", "database") is True

    def test_database_depends_on_service_is_checked_independently(self) -> None:
        """Direction is never inverted: database -> service is not allowed."""
        assert is_valid_relationship("depends_on", "database", "service") is False

    def test_unknown_relationship_type(self) -> None:
        """Unknown types are never valid."""
        assert is_valid_relationship("stores_data_in", "service", "database") is False

    def test_database_replication_allowed(self) -> None:
        """sends_data_to allows database -> database through its replication entry."""
        assert is_valid_relationship("sends_data_to", "database", "database") is True

    def test_entries_are_not_cross_combined(self) -> None:
        """A database source only pairs with its own entry's targets.

        ``api`` is a target of the first sends_data_to entry, but that entry
        does not accept a database source.
        """
        assert is_valid_relationship("sends_data_to", "database", "api") is False

    def test_runs_on_database_to_k8s_workload_rejected(self) -> None:
        """runs_on lists k8s_workload only for services, APIs and websites."""
        assert is_valid_relationship("runs_on", "api", "k8s_workload") is True
        assert is_valid_relationship("runs_on", "database", "k8s_workload") is False

    def test_extended_types_supported(self) -> None:
        """Extended asset types take part in constraints."""
        assert is_valid_relationship("contains", "k8s_cluster", "k8s_workload") is True
        assert is_valid_relationship("contains", "repository", "container_image") is True

    def test_owned_by_targets_service_only(self) -> None:
        """Owners are modelled as service assets."""
        assert is_valid_relationship("owned_by", "repository", "service") is True
        assert is_valid_relationship("owned_by", "repository", "host") is False


class TestGetValidTargetTypes:
    """Tests for get_valid_target_types function."""

    def test_targets_in_declaration_order(self) -> None:
        """Targets keep the order of the matching entry."""
        targets = get_valid_target_types("connected_to", "service")

        assert targets == ["service", "api", "host", "database", "cloud_account"]
        assert len(targets) == len(set(targets))

    def test_only_matching_entry_contributes(self) -> None:
        """runs_on for k8s_workload only matches the cluster entry."""
        assert get_valid_target_types("runs_on", "k8s_workload") == ["k8s_cluster"]

    def test_database_sends_data_only_to_database(self) -> None:
        """The replication entry is the only one accepting a database source."""
        assert get_valid_target_types("sends_data_to", "database") == ["database"]

    def test_source_without_entries(self) -> None:
        """A source type no entry accepts yields no targets."""
        assert get_valid_target_types("manages", "website") == []

    def test_unknown_relationship_type(self) -> None:
        """Unknown types yield no targets."""
        assert get_valid_target_types("stores_data_in", "service") == []


class TestGetValidRelationshipTypes:
    """Tests for get_valid_relationship_types function."""

    def test_domain_relationship_types_in_declaration_order(self) -> None:
        """Types come back in declaration order, not alphabetically."""
        assert get_valid_relationship_types("domain") == ["hosted_on", "exposes", "owned_by"]

    def test_identity_provider_starts_nothing(self) -> None:
        """identity_provider only ever appears as a target."""
        assert get_valid_relationship_types("identity_provider") == []

    def test_every_returned_type_has_a_target(self) -> None:
        """Each returned type must offer at least one target for the source."""
        for rel_type in get_valid_relationship_types("k8s_workload"):
            assert get_valid_target_types(rel_type, "k8s_workload")


class TestLabels:
    """Tests for label lookup functions."""

    def test_direct_and_inverse_labels(self) -> None:
        """depends_on reads 'Depends On' forwards and 'Used By' backwards."""
        assert get_direct_label("depends_on") == "Depends On"
        assert get_inverse_label("depends_on") == "Used By"

    def test_unknown_type_falls_back_to_raw_value(self) -> None:
        """Unknown types are displayed as-is."""
        assert get_direct_label("custom_link") == "custom_link"
        assert get_inverse_label("custom_link") == "custom_link"

    def test_asset_type_label(self) -> None:
        """Asset type labels are human readable."""
        assert get_asset_type_label("k8s_cluster") == "Kubernetes Cluster"
        assert get_asset_type_label("mainframe") == "mainframe"


class TestVocabularyConsistency:
    """The vocabulary, label pairs and constraint table must stay in lockstep."""

    def test_fifteen_relationship_types(self) -> None:
        """The canonical set is the 15-member CMDB vocabulary."""
        assert len(RELATIONSHIP_TYPES) == 15

    @pytest.mark.parametrize("rel_type", RELATIONSHIP_TYPES)
    def test_every_type_has_labels_and_constraints(self, rel_type: str) -> None:
        """A type missing labels or constraints would silently reject edges."""
        assert rel_type in RELATIONSHIP_LABELS
        assert VALID_RELATIONSHIP_CONSTRAINTS.get(rel_type)

    def test_no_orphan_table_entries(self) -> None:
        """Labels and constraints only describe declared types."""
        assert set(RELATIONSHIP_LABELS) == set(RELATIONSHIP_TYPES)
        assert set(VALID_RELATIONSHIP_CONSTRAINTS) == set(RELATIONSHIP_TYPES)

    def test_every_asset_type_has_a_label(self) -> None:
        """Every extended asset type has a display label."""
        assert set(EXTENDED_ASSET_TYPE_LABELS) == set(EXTENDED_ASSET_TYPES)
