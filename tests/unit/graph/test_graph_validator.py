"""Tests for static graph validation."""

import pytest

from chatflow.core.errors import InvalidGraphError
from chatflow.graph.validator import GraphIssue, ensure_valid, validate_graph


def codes(issues: list[GraphIssue]) -> set[str]:
    return {issue.code for issue in issues}


class TestValidateGraph:
    """Tests for validate_graph()."""

    def test_clean_graph_has_no_issues(self, build_graph):
        graph = build_graph(
            [
                ("start", "start"),
                ("ask", "question", {"question": "Nome?", "variableName": "nome"}),
                ("bye", "end"),
            ],
            [("start", "ask"), ("ask", "bye")],
        )

        assert validate_graph(graph) == []

    def test_missing_start(self, build_graph):
        issues = validate_graph(build_graph([("m", "message")]))

        assert "missing_start" in codes(issues)

    def test_multiple_starts(self, build_graph):
        graph = build_graph([("s1", "start"), ("s2", "start")], [("s1", "s2")])

        assert "multiple_starts" in codes(validate_graph(graph))

    def test_duplicate_node_ids(self, build_graph):
        graph = build_graph([("s", "start"), ("m", "message"), ("m", "end")], [("s", "m")])

        issue = next(i for i in validate_graph(graph) if i.code == "duplicate_node")
        assert issue.severity == "error"
        assert issue.node_id == "m"

    def test_dangling_edge(self, build_graph):
        graph = build_graph([("s", "start")], [("s", "ghost")])

        assert "dangling_edge" in codes(validate_graph(graph))

    def test_duplicate_edge_is_a_warning(self, build_graph):
        graph = build_graph(
            [("s", "start"), ("a", "end"), ("b", "end")], [("s", "a"), ("s", "b")]
        )

        issue = next(i for i in validate_graph(graph) if i.code == "duplicate_edge")
        assert issue.severity == "warning"

    def test_unknown_type_is_a_warning(self, build_graph):
        graph = build_graph([("s", "start"), ("x", "carousel")], [("s", "x")])

        issue = next(i for i in validate_graph(graph) if i.code == "unknown_type")
        assert issue.severity == "warning"

    def test_empty_menu(self, build_graph):
        graph = build_graph([("s", "start"), ("m", "menu", {"title": "?"})], [("s", "m")])

        assert "empty_menu" in codes(validate_graph(graph))

    def test_malformed_payload(self, build_graph):
        graph = build_graph([("s", "start"), ("m", "menu", {"options": "x"})], [("s", "m")])

        assert "bad_payload" in codes(validate_graph(graph))

    def test_condition_that_does_not_parse(self, build_graph):
        graph = build_graph(
            [("s", "start"), ("c", "condition", {"condition": "{{a}} >"})], [("s", "c")]
        )

        assert "bad_condition" in codes(validate_graph(graph))

    def test_goto_to_missing_node(self, build_graph):
        graph = build_graph(
            [("s", "start"), ("g", "goto", {"targetNodeId": "nowhere"})], [("s", "g")]
        )

        assert "bad_goto" in codes(validate_graph(graph))

    def test_question_without_variable_name(self, build_graph):
        graph = build_graph([("s", "start"), ("q", "question")], [("s", "q")])

        assert "unnamed_answer" in codes(validate_graph(graph))

    def test_split_over_one_hundred_percent(self, build_graph):
        graph = build_graph(
            [("s", "start"),
             ("x", "split", {"paths": [
                 {"id": "a", "percentage": 70},
                 {"id": "b", "percentage": 40},
             ]})],
            [("s", "x")],
        )

        issue = next(i for i in validate_graph(graph) if i.code == "split_over_100")
        assert issue.severity == "warning"

    def test_ab_test_without_variants(self, build_graph):
        graph = build_graph([("s", "start"), ("t", "ab_test")], [("s", "t")])

        assert "empty_ab_test" in codes(validate_graph(graph))

    def test_unreachable_node(self, build_graph):
        graph = build_graph([("s", "start"), ("island", "message")])

        issue = next(i for i in validate_graph(graph) if i.code == "unreachable")
        assert issue.node_id == "island"

    def test_goto_target_counts_as_reachable(self, build_graph):
        graph = build_graph(
            [("s", "start"), ("g", "goto", {"targetNodeId": "t"}), ("t", "end")], [("s", "g")]
        )

        assert "unreachable" not in codes(validate_graph(graph))

    def test_cycle_without_input_node(self, build_graph):
        """
        GIVEN a message node and a goto node jumping back to it
        WHEN the graph is validated
        THEN the cycle is reported because it can only end at the step limit
        """
        graph = build_graph(
            [("s", "start"), ("a", "message", {"content": "x"}),
             ("b", "goto", {"targetNodeId": "a"})],
            [("s", "a"), ("a", "b")],
        )

        assert "busy_cycle" in codes(validate_graph(graph))

    def test_self_loop_is_a_cycle(self, build_graph):
        graph = build_graph([("s", "start"), ("a", "delay")], [("s", "a"), ("a", "a")])

        assert "busy_cycle" in codes(validate_graph(graph))

    def test_cycle_through_question_is_fine(self, build_graph):
        graph = build_graph(
            [("s", "start"), ("q", "question", {"variableName": "x"}), ("m", "message")],
            [("s", "q"), ("q", "m"), ("m", "q")],
        )

        assert "busy_cycle" not in codes(validate_graph(graph))

    def test_cycle_through_nps_is_fine(self, build_graph):
        graph = build_graph(
            [("s", "start"), ("n", "nps"), ("m", "message")],
            [("s", "n"), ("n", "m"), ("m", "n")],
        )

        assert "busy_cycle" not in codes(validate_graph(graph))


class TestEnsureValid:
    def test_raises_on_errors(self, build_graph):
        with pytest.raises(InvalidGraphError, match="missing_start"):
            ensure_valid(build_graph([("m", "message")]))

    def test_warnings_do_not_raise(self, build_graph):
        ensure_valid(build_graph([("s", "start"), ("island", "message")]))


class TestGraphIssue:
    def test_str_with_node(self):
        issue = GraphIssue("error", "bad_goto", "Goto target 'x' does not exist", "g")

        assert str(issue) == "ERROR bad_goto [g]: Goto target 'x' does not exist"

    def test_str_without_node(self):
        assert str(GraphIssue("warning", "c", "msg")) == "WARNING c: msg"
