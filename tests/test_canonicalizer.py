"""
Tests for graph canonicalization and structural comparison.
"""
import logging

import pytest

from core.flow_graph.exceptions import UnknownOperationError
from core.flow_graph.models import (
    BlockArg,
    CompiledBlock,
    ConstantArg,
    ContentBlock,
    graph_to_dict,
    iter_blocks,
)
from services.flow_compiler.canonical import (
    Canonicalizer,
    canonicalize,
    canonicalize_ast_list,
    canonicalize_list,
    compare,
    sort_key,
    stable_stringify,
)
from services.flow_compiler.compiler import gen_compiled
from services.flow_compiler.compilers.graph_linker import SequentialIdStrategy, UuidIdStrategy


def compile_canonical(ast, id_strategy=None):
    return canonicalize(gen_compiled(ast, id_strategy=id_strategy or SequentialIdStrategy("b")))


class TestComparator:
    """Test stable serialization and ordering."""

    def test_keys_are_sorted(self):
        """Serialization does not depend on key insertion order."""
        assert stable_stringify({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'
        assert stable_stringify({"a": [1, 2], "b": 1}) == stable_stringify({"b": 1, "a": [1, 2]})

    def test_model_objects_serialize_as_json(self):
        """Model objects serialize through their JSON form."""
        assert stable_stringify(ConstantArg("x")) == '{"type":"constant","value":"x"}'
        assert stable_stringify([CompiledBlock(type="op_log_value")]) == '[{"args":[],"contents":[],"type":"op_log_value"}]'

    def test_non_ascii_is_kept(self):
        """Unicode characters are written as is."""
        assert stable_stringify("café") == '"café"'

    def test_compare(self):
        """Three-way comparison follows serialization order."""
        assert compare(ConstantArg("a"), ConstantArg("b")) == -1
        assert compare(ConstantArg("b"), ConstantArg("a")) == 1
        assert compare(ConstantArg("a"), ConstantArg("a")) == 0

    def test_sort_key(self):
        """Sorting by key is stable across equal inputs."""
        values = [ConstantArg("c"), ConstantArg("a"), ConstantArg("b")]
        assert [v.value for v in sorted(values, key=sort_key)] == ["a", "b", "c"]


class TestIdentifierIndependence:
    """Canonical forms do not depend on block identifiers."""

    def test_no_ids_in_canonical_form(self, fork_ast):
        """Every identifier is stripped."""
        canonical = compile_canonical(fork_ast)
        assert all(block.id is None for block in iter_blocks(canonical))

    def test_id_strategies_agree(self, fork_ast, if_else_ast, monitor_ast):
        """Different id strategies give the same canonical form."""
        ast = monitor_ast + fork_ast + if_else_ast
        assert compile_canonical(ast, SequentialIdStrategy("b")) == compile_canonical(ast, UuidIdStrategy())

    def test_id_prefix_does_not_matter(self, fork_ast):
        """Sequential ids with different prefixes agree."""
        assert compile_canonical(fork_ast, SequentialIdStrategy("x")) == compile_canonical(fork_ast, SequentialIdStrategy("y"))

    def test_references_become_target_types(self, fork_ast):
        """Joins and jumps refer to the type of the block they point at."""
        canonical = compile_canonical(fork_ast)

        fork, join = canonical[1], canonical[2]
        assert join.type == "trigger_when_all_completed"
        assert join.args == [ConstantArg("@op_fork_execution")]
        for fork_path in fork.contents:
            assert fork_path.contents[-1].args == [ConstantArg("@trigger_when_all_completed")]

    def test_accepts_json_form(self, fork_ast, sequential_ids):
        """Serialized graphs canonicalize the same as model graphs."""
        graph = gen_compiled(fork_ast, id_strategy=sequential_ids)
        assert canonicalize(graph_to_dict(graph)) == canonicalize(graph)

    def test_input_is_not_mutated(self, fork_ast, monitor_ast, sequential_ids):
        """Canonicalization builds new objects."""
        graph = gen_compiled(fork_ast + monitor_ast, id_strategy=sequential_ids)
        snapshot = graph_to_dict(graph)

        canonicalize(graph)

        assert graph_to_dict(graph) == snapshot


class TestCommutativeOperators:
    """Argument order of commutative operators carries no meaning."""

    def test_equals_argument_order(self):
        """Swapped equality arguments canonicalize identically."""
        left = compile_canonical([["operator_equals", "a", "b"]])
        right = compile_canonical([["operator_equals", "b", "a"]])

        assert left == right
        assert left[0].args == [ConstantArg("a"), ConstantArg("b")]

    def test_identical_equals_arguments(self):
        """An equality of a constant with itself keeps both arguments."""
        canonical = canonicalize(gen_compiled([["operator_equals", "a", "a"]]))

        assert canonical == [CompiledBlock(
            type="operator_equals",
            args=[ConstantArg("a"), ConstantArg("a")],
            contents=[],
        )]
        assert stable_stringify(canonical) == stable_stringify(compile_canonical([["operator_equals", "a", "a"]]))

    def test_if_else_padding_survives(self, if_else_ast):
        """A then-only conditional still has two branches, the else empty."""
        canonical = compile_canonical(if_else_ast)

        assert len(canonical[0].contents) == 2
        assert canonical[0].contents[1] == ContentBlock(contents=[])

    def test_and_with_nested_operations(self):
        """Nested arguments are canonicalized before sorting."""
        left = compile_canonical([["operator_and", ["operator_equals", "x", "1"], ["flow_last_value", "s", 0]]])
        right = compile_canonical([["operator_and", ["flow_last_value", "s", 0], ["operator_equals", "1", "x"]]])

        assert left == right

    def test_condition_inside_conditional(self):
        """Commutative conditions are normalized inside branches and arguments."""
        left = compile_canonical([
            ["control_if_else", ["operator_equals", ["flow_last_value", "door", 0], "open"], [["op_log_value", "a"]]],
        ])
        right = compile_canonical([
            ["control_if_else", ["operator_equals", "open", ["flow_last_value", "door", 0]], [["op_log_value", "a"]]],
        ])

        assert left == right

    def test_order_sensitive_operators_keep_order(self):
        """Non-commutative operators are not reordered."""
        left = compile_canonical([["operator_lt", "1", "2"]])
        right = compile_canonical([["operator_lt", "2", "1"]])

        assert left != right
        assert left[0].args == [ConstantArg("1"), ConstantArg("2")]

    def test_statement_order_is_kept(self):
        """Sequences keep their order."""
        left = compile_canonical([["op_log_value", "a"], ["op_log_value", "b"]])
        right = compile_canonical([["op_log_value", "b"], ["op_log_value", "a"]])

        assert left != right

    def test_branch_order_is_kept(self):
        """Then and else branches are not interchangeable."""
        left = compile_canonical([["control_if_else", "1", [["op_log_value", "a"]], [["op_log_value", "b"]]]])
        right = compile_canonical([["control_if_else", "1", [["op_log_value", "b"]], [["op_log_value", "a"]]]])

        assert left != right


class TestForkCanonicalization:
    """Path order of forks carries no meaning."""

    def test_path_order(self, fork_ast, reversed_fork_ast):
        """Reordered fork paths canonicalize identically."""
        assert compile_canonical(fork_ast) == compile_canonical(reversed_fork_ast)

    def test_path_order_with_different_id_strategies(self, fork_ast, reversed_fork_ast):
        """Path order and id independence combine."""
        assert compile_canonical(fork_ast, UuidIdStrategy()) == compile_canonical(reversed_fork_ast)

    def test_default_exit_flag_is_dropped(self, fork_paths):
        """An explicit exit-when-all-completed flag equals no flag."""
        explicit = compile_canonical([["op_fork_execution", ["exit-when-all-completed"], fork_paths]])
        implicit = compile_canonical([["op_fork_execution", [], fork_paths]])

        assert explicit == implicit
        assert explicit[0].args == []

    def test_first_completed_flag_is_kept(self, fork_paths):
        """exit-when-first-completed changes the meaning of a fork."""
        first = compile_canonical([["op_fork_execution", ["exit-when-first-completed"], fork_paths]])
        every = compile_canonical([["op_fork_execution", [], fork_paths]])

        assert first != every
        assert first[0].args == [ConstantArg("exit-when-first-completed")]
        assert first[1].args == [ConstantArg("@op_fork_execution")]

    def test_path_contents_are_not_reordered(self):
        """Statements inside a path keep their order."""
        left = compile_canonical([["op_fork_execution", [], [
            [["op_log_value", "a"], ["op_log_value", "b"]],
            [["op_log_value", "c"]],
        ]]])
        right = compile_canonical([["op_fork_execution", [], [
            [["op_log_value", "b"], ["op_log_value", "a"]],
            [["op_log_value", "c"]],
        ]]])

        assert left != right


class TestServiceCalls:
    """Test canonicalization of service calls and monitors."""

    def test_service_call_values_are_canonicalized(self, monitor_ast):
        """Nested operations in service call values lose their ids."""
        canonical = compile_canonical(monitor_ast)

        call = canonical[1]
        assert call.args.service_id == "chat-bot"
        assert call.args.service_action == "send_message"
        assert call.args.service_call_values[2].value[0].id is None

    def test_service_call_value_order_is_kept(self):
        """Service call values are positional."""
        def call(values):
            return [["command_call_service", {
                "service_id": "s", "service_action": "a", "service_call_values": values,
            }]]

        assert compile_canonical(call(["x", "y"])) != compile_canonical(call(["y", "x"]))

    def test_monitor_descriptor_is_copied(self, monitor_ast, sequential_ids):
        """Monitor descriptors are kept verbatim and not shared with the input."""
        graph = gen_compiled(monitor_ast, id_strategy=sequential_ids)
        canonical = canonicalize(graph)

        assert canonical[0].args == graph[0].args
        assert canonical[0].args is not graph[0].args


class TestUnknownOperations:
    """Test handling of operations outside the catalog."""

    def test_unknown_operation_warns(self, report, caplog):
        """Unknown operations pass through with a warning."""
        graph = [CompiledBlock(id="b1", type="mystery_op", args=[ConstantArg("z"), ConstantArg("a")])]

        with caplog.at_level(logging.WARNING):
            canonical = canonicalize(graph, report)

        assert canonical == [CompiledBlock(type="mystery_op", args=[ConstantArg("z"), ConstantArg("a")])]
        assert report.warning_codes() == ["UNKNOWN_OPERATION"]
        assert "Unknown operation: mystery_op" in caplog.text

    def test_unknown_operation_nested_ids_are_stripped(self, report):
        """Blocks nested under an unknown operation lose their ids too."""
        nested = CompiledBlock(id="b2", type="flow_last_value", args=[ConstantArg("s")])
        graph = [CompiledBlock(id="b1", type="mystery_op", args=[BlockArg([nested])])]

        canonical = canonicalize(graph, report)

        assert all(block.id is None for block in iter_blocks(canonical))
        assert graph[0].args[0].value[0].id == "b2"

    def test_unknown_operation_strict(self):
        """Strict mode rejects unknown operations."""
        graph = [CompiledBlock(id="b1", type="mystery_op")]

        with pytest.raises(UnknownOperationError) as exc_info:
            canonicalize(graph, strict=True)

        assert exc_info.value.operation == "mystery_op"

    def test_custom_operations_are_known(self, report):
        """Custom services.* operations are canonicalized without warnings."""
        canonical = canonicalize(gen_compiled([["services.weather.get", ["operator_equals", "b", "a"]]]), report)

        assert not report.has_warnings
        assert canonical[0].args[0].value[0].args == [ConstantArg("a"), ConstantArg("b")]

    def test_canonicalizer_compile_returns_report(self, report, fork_ast):
        """The canonicalizer's compile method returns the canonical graph and its report."""
        result = Canonicalizer(report).compile(gen_compiled(fork_ast))

        assert result["report"] is report
        assert len(result["graph"]) == 4


class TestGraphCollections:
    """Test order-independent canonicalization of graph lists."""

    def test_list_order_does_not_matter(self, fork_ast, if_else_ast, monitor_ast):
        """Collections of graphs compare equal regardless of order."""
        graphs = [gen_compiled(ast) for ast in (fork_ast, if_else_ast, monitor_ast)]

        assert canonicalize_ast_list(graphs) == canonicalize_ast_list(list(reversed(graphs)))

    def test_list_result_is_sorted(self):
        """The canonical collection is sorted by serialization."""
        graphs = [gen_compiled([["op_log_value", v]]) for v in ("c", "a", "b")]

        canonical = canonicalize_list(graphs)

        assert [graph[0].args[0].value for graph in canonical] == ["a", "b", "c"]

    def test_distinct_collections_differ(self):
        """Collections with different members stay different."""
        left = [gen_compiled([["op_log_value", "a"]])]
        right = [gen_compiled([["op_log_value", "b"]])]

        assert canonicalize_ast_list(left) != canonicalize_ast_list(right)
