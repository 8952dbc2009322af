"""Unit tests for the visualizer_mermaid module.

Tests Mermaid diagram generation:
- Label escaping for special characters
- Node shape mapping based on asset type
- Relationship diagram and HTML file generation
- Pipeline diagram generation
"""

from pathlib import Path

import pytest

from exposure_graph.relationship_graph import build_relationship_graph
from exposure_graph.schema import RelationshipGraph, RelationshipGraphNode
from exposure_graph.visualizer_mermaid import (
    _assign_mermaid_ids,
    _escape_mermaid_label,
    _generate_mermaid_content,
    _generate_pipeline_mermaid,
    _get_node_shape,
    render_mermaid,
    render_mermaid_html,
    render_pipeline_mermaid,
)
from tests.factories import diamond_steps, make_relationship, make_step


def sample_graph() -> RelationshipGraph:
    return build_relationship_graph(
        [
            make_relationship(
                "r1", "depends_on", ("api-001", "api"), ("db-001", "database"), impact_weight=9
            ),
            make_relationship("r2", "runs_on", ("api-001", "api"), ("host-001", "host"), impact_weight=4),
        ]
    )


class TestEscapeMermaidLabel:
    """Tests for _escape_mermaid_label function."""

    def test_plain_text_unchanged(self) -> None:
        """Plain text without special characters should be unchanged."""
        assert _escape_mermaid_label("Core Banking API") == "Core Banking API"

    def test_double_quotes_replaced(self) -> None:
        """Double quotes should be replaced with single quotes."""
        assert _escape_mermaid_label('Service "Legacy"') == "Service 'Legacy'"

    def test_hash_removed(self) -> None:
        """Hash symbols should be removed."""
        assert _escape_mermaid_label("Host #1") == "Host 1"

    def test_ampersand_replaced(self) -> None:
        """Ampersand should be replaced with 'and'."""
        assert _escape_mermaid_label("Auth & SSO") == "Auth and SSO"

    def test_brackets_replaced(self) -> None:
        """Square and curly brackets should become parentheses."""
        assert _escape_mermaid_label("[prod] {eu}") == "(prod) (eu)"

    def test_pipe_replaced(self) -> None:
        """Pipe character should be replaced with dash."""
        assert _escape_mermaid_label("A | B") == "A - B"

    def test_long_label_truncated(self) -> None:
        """Labels over 60 characters should be truncated with an ellipsis."""
        result = _escape_mermaid_label("x" * 80)

        assert len(result) == 60
        assert result.endswith("...")


class TestAssignMermaidIds:
    """Tests for _assign_mermaid_ids function."""

    def test_positional_ids(self) -> None:
        """Ids are numbered in first-seen order."""
        assert _assign_mermaid_ids(["api-001", "db.001"], prefix="n") == {"api-001": "n0", "db.001": "n1"}

    def test_similar_ids_stay_distinct(self) -> None:
        """Ids differing only in punctuation get different identifiers."""
        ids = _assign_mermaid_ids(["svc-1", "svc.1", "svc_1"], prefix="n")

        assert len(set(ids.values())) == 3

    def test_repeated_ids_share_identifier(self) -> None:
        """A raw id seen twice maps to one identifier."""
        assert _assign_mermaid_ids(["a", "b", "a"], prefix="s") == {"a": "s0", "b": "s1"}


class TestGetNodeShape:
    """Tests for _get_node_shape function."""

    @pytest.mark.parametrize(
        "asset_type, opening, closing",
        [
            ("database", '[("', '")]'),
            ("storage", '[("', '")]'),
            ("domain", '{{"', '"}}'),
            ("identity_provider", '{{"', '"}}'),
            ("repository", '(["', '"])'),
            ("host", '["', '"]'),
        ],
    )
    def test_shape_by_type(self, asset_type: str, opening: str, closing: str) -> None:
        """Asset categories map to distinct Mermaid shapes."""
        node = RelationshipGraphNode(id="n-1", name="Node", type=asset_type)  # type: ignore[arg-type]

        shape = _get_node_shape(node, "n7")

        assert shape.startswith(f"n7{opening}")
        assert shape.endswith(closing)

    def test_label_includes_type(self) -> None:
        """Labels show the asset name above its type."""
        node = RelationshipGraphNode(id="k", name="prod-eks", type="k8s_cluster")

        assert "prod-eks<br/><small>Kubernetes Cluster</small>" in _get_node_shape(node, "n0")


class TestGenerateMermaidContent:
    """Tests for _generate_mermaid_content function."""

    def test_nodes_and_edges(self) -> None:
        """Every node and edge appears in the diagram."""
        content = _generate_mermaid_content(sample_graph())

        assert content.startswith("flowchart LR")
        assert 'n0["API-001<br/>' in content
        assert 'n1[("DB-001<br/>' in content
        assert 'n2["HOST-001<br/>' in content

    def test_critical_edges_thick(self) -> None:
        """Impact weight 8 and above draws a thick arrow."""
        content = _generate_mermaid_content(sample_graph())

        assert "n0 ==>|depends on| n1" in content
        assert "n0 -->|runs on| n2" in content

    def test_direction(self) -> None:
        """The flowchart direction is configurable."""
        assert _generate_mermaid_content(sample_graph(), "TD").startswith("flowchart TD")

    def test_critical_weight_configurable(self) -> None:
        """Raising the threshold draws previously critical edges thin."""
        content = _generate_mermaid_content(sample_graph(), critical_weight=10)

        assert "==>" not in content
        assert "n0 -->|depends on| n1" in content

    def test_punctuation_variants_are_separate_nodes(self) -> None:
        """Assets whose ids differ only in punctuation are not merged."""
        graph = build_relationship_graph(
            [
                make_relationship("r1", "depends_on", ("svc-1", "service"), ("db", "database")),
                make_relationship("r2", "depends_on", ("svc.1", "service"), ("db", "database")),
            ]
        )

        content = _generate_mermaid_content(graph)

        assert "n0 -->|depends on| n1" in content
        assert "n2 -->|depends on| n1" in content
        assert sum(line.strip().startswith(("n0[", "n1[", "n2[")) for line in content.splitlines()) == 3

    def test_reserved_word_id_not_emitted(self) -> None:
        """An asset with id ``end`` is declared under a safe identifier."""
        graph = build_relationship_graph(
            [make_relationship("r1", "runs_on", ("end", "service"), ("host", "host"))]
        )

        content = _generate_mermaid_content(graph)

        assert not any(line.strip().startswith("end") for line in content.splitlines())


class TestRenderMermaid:
    """Tests for render_mermaid and render_mermaid_html functions."""

    def test_writes_mmd_file(self, tmp_path: Path) -> None:
        """render_mermaid should create the file and parent directories."""
        output_path = tmp_path / "nested" / "graph.mmd"

        render_mermaid(sample_graph(), output_path)

        assert output_path.exists()
        assert output_path.read_text(encoding="utf-8").startswith("flowchart LR")

    def test_writes_html_file(self, tmp_path: Path) -> None:
        """The HTML page embeds the diagram and the counts."""
        output_path = tmp_path / "graph.html"

        render_mermaid_html(sample_graph(), output_path, title="Bank <Core>")

        content = output_path.read_text(encoding="utf-8")
        assert "<!DOCTYPE html>" in content
        assert '<pre class="mermaid">' in content
        assert "3 assets" in content
        assert "2 relationships" in content
        assert "Bank &lt;Core&gt;" in content
        assert "mermaid.min.js" in content

    def test_html_uses_critical_weight(self, tmp_path: Path) -> None:
        """The HTML diagram follows the same critical threshold."""
        output_path = tmp_path / "graph.html"

        render_mermaid_html(sample_graph(), output_path, critical_weight=4)

        content = output_path.read_text(encoding="utf-8")
        assert "n0 ==&gt;|runs on| n2" in content

    def test_empty_graph(self, tmp_path: Path) -> None:
        """An empty graph still renders a valid header."""
        output_path = tmp_path / "empty.mmd"

        render_mermaid(RelationshipGraph(), output_path)

        assert "flowchart LR" in output_path.read_text(encoding="utf-8")


class TestPipelineMermaid:
    """Tests for pipeline diagram generation."""

    def test_anchors_and_steps(self) -> None:
        """Start, every step and End are declared."""
        content = _generate_pipeline_mermaid(diamond_steps())

        assert "__start__((Start))" in content
        assert "__end__((End))" in content
        assert 's0["A"]' in content

    def test_edges_follow_dependencies(self) -> None:
        """Derived edges are drawn, anchors included."""
        content = _generate_pipeline_mermaid(diamond_steps())

        assert "__start__ --> s0" in content
        assert "s1 --> s3" in content
        assert "s3 --> __end__" in content

    def test_empty_pipeline_dotted_placeholder(self) -> None:
        """An empty pipeline draws a dotted Start -> End edge."""
        assert "__start__ -.-> __end__" in _generate_pipeline_mermaid([])

    def test_step_named_end_is_safe(self) -> None:
        """A step whose id and key are ``end`` does not emit the reserved word."""
        content = _generate_pipeline_mermaid([make_step("end", id="end")])

        assert not any(line.strip().startswith("end") for line in content.splitlines())
        assert 's0["End"]' in content
        assert "__start__ --> s0" in content
        assert "s0 --> __end__" in content

    def test_writes_file(self, tmp_path: Path) -> None:
        """render_pipeline_mermaid should create the file."""
        output_path = tmp_path / "visuals" / "pipeline.mmd"

        render_pipeline_mermaid(diamond_steps(), output_path)

        assert output_path.read_text(encoding="utf-8").startswith("flowchart LR")
