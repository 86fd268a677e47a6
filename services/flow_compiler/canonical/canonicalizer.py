"""
Canonicalizer for compiled flow graphs.

Produces an identifier-free form of a graph where argument order of
commutative operators and path order of forks no longer matter, so that
two independently compiled graphs can be compared with ``==``. Only test
tooling uses this; the runtime never sees canonical forms.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Sequence

from core.config import settings
from core.flow_graph.catalog import (
    COMMUTATIVE_KINDS,
    EXIT_WHEN_ALL_COMPLETED,
    LINK_PRIMITIVES,
    ORDER_SENSITIVE_KINDS,
    STATELESS_KINDS,
    ExtensionOperation,
    OperationKind,
    classify_operation,
)
from core.flow_graph.exceptions import UnknownOperationError
from core.flow_graph.models import (
    BlockArg,
    BlockArgs,
    CallServiceArgs,
    CompiledArg,
    CompiledBlock,
    CompiledFlowGraph,
    ConstantArg,
    Content,
    ContentBlock,
    graph_from_dict,
    iter_blocks,
)
from ..compilers.base import BaseCompiler, CompilerReport
from .comparator import sort_key

logger = logging.getLogger(__name__)


def _as_graph(graph: Sequence[Any]) -> CompiledFlowGraph:
    """Accept either model blocks or their JSON form"""
    if graph and isinstance(graph[0], dict):
        return graph_from_dict(list(graph))
    return list(graph)


def _without_ids(value: Any) -> Any:
    """Copy a block, argument or content tree with every block id removed"""
    if isinstance(value, list):
        return [_without_ids(item) for item in value]
    if isinstance(value, CompiledBlock):
        return CompiledBlock(type=value.type, args=_without_ids(value.args), contents=_without_ids(value.contents))
    if isinstance(value, ContentBlock):
        return ContentBlock(contents=_without_ids(value.contents))
    if isinstance(value, BlockArg):
        return BlockArg(value=_without_ids(value.value))
    if isinstance(value, CallServiceArgs):
        return CallServiceArgs(
            service_id=value.service_id,
            service_action=value.service_action,
            service_call_values=_without_ids(value.service_call_values),
        )
    return copy.deepcopy(value)


class Canonicalizer(BaseCompiler):
    """
    Canonicalizer: Compiled Flow Graph → canonical form

    The input graph is left untouched; the canonical form is built from
    new objects.
    """

    def __init__(self, report: Optional[CompilerReport] = None, strict: Optional[bool] = None):
        super().__init__(report)
        self.strict = settings.strict_canonicalization if strict is None else strict
        self._targets: Dict[str, str] = {}

    def compile(self, graph: Sequence[Any]) -> Dict[str, Any]:
        return {"graph": self.canonicalize(graph), "report": self.report}

    def canonicalize(self, graph: Sequence[Any]) -> CompiledFlowGraph:
        """Canonicalize one graph"""
        blocks = _as_graph(graph)
        self._targets = {block.id: block.type for block in iter_blocks(blocks) if block.id}
        return [self._canonicalize_op(block, f"[{idx}]") for idx, block in enumerate(blocks)]

    def canonicalize_list(self, graphs: Sequence[Sequence[Any]]) -> List[CompiledFlowGraph]:
        """Canonicalize every graph, then order the collection itself"""
        # Sorting by serialization is slow, but this only ever runs in tests
        return sorted((self.canonicalize(graph) for graph in graphs), key=sort_key)

    def _canonicalize_arg(self, arg: CompiledArg, path: str) -> CompiledArg:
        if isinstance(arg, ConstantArg):
            return ConstantArg(value=arg.value)

        return BlockArg(value=[
            self._canonicalize_op(block, f"{path}.value[{idx}]")
            for idx, block in enumerate(arg.value)
        ])

    def _canonicalize_args(self, args: BlockArgs, path: str) -> BlockArgs:
        if not isinstance(args, list):
            return _without_ids(args)
        return [self._canonicalize_arg(arg, f"{path}.args[{idx}]") for idx, arg in enumerate(args)]

    def _canonicalize_content(self, content: Content, path: str) -> Content:
        if isinstance(content, CompiledBlock):
            return self._canonicalize_op(content, path)

        return ContentBlock(contents=[
            self._canonicalize_content(child, f"{path}.contents[{idx}]")
            for idx, child in enumerate(content.contents)
        ])

    def _canonicalize_contents(self, contents: Sequence[Content], path: str) -> List[Content]:
        return [
            self._canonicalize_content(content, f"{path}.contents[{idx}]")
            for idx, content in enumerate(contents)
        ]

    def _strip_references(self, args: BlockArgs) -> BlockArgs:
        """Replace identifier references with the type of the block they point at"""
        if not isinstance(args, list):
            return args

        return [
            ConstantArg(value=f"@{self._targets[arg.value]}")
            if isinstance(arg, ConstantArg) and arg.value in self._targets
            else arg
            for arg in args
        ]

    def _canonicalize_op(self, op: CompiledBlock, path: str) -> CompiledBlock:
        kind = classify_operation(op.type)
        args = op.args

        if kind in LINK_PRIMITIVES:
            args = self._strip_references(args)

        # Nothing to canonicalize beyond identifiers
        if kind in STATELESS_KINDS:
            return CompiledBlock(
                type=op.type,
                args=_without_ids(args),
                contents=_without_ids(op.contents),
            )

        # Canonicalize args and contents, but don't sort
        if kind in ORDER_SENSITIVE_KINDS or isinstance(kind, ExtensionOperation):
            return CompiledBlock(
                type=op.type,
                args=self._canonicalize_args(args, path),
                contents=self._canonicalize_contents(op.contents, path),
            )

        if kind is OperationKind.COMMAND_CALL_SERVICE:
            if isinstance(args, CallServiceArgs):
                args = CallServiceArgs(
                    service_id=args.service_id,
                    service_action=args.service_action,
                    service_call_values=[
                        self._canonicalize_arg(arg, f"{path}.args.service_call_values[{idx}]")
                        for idx, arg in enumerate(args.service_call_values)
                    ],
                )
            else:
                args = _without_ids(args)
            return CompiledBlock(type=op.type, args=args, contents=_without_ids(op.contents))

        # Argument order carries no meaning
        if kind in COMMUTATIVE_KINDS:
            operator_args = self._canonicalize_args(args, path)
            if isinstance(operator_args, list):
                operator_args = sorted(operator_args, key=sort_key)
            return CompiledBlock(type=op.type, args=operator_args, contents=_without_ids(op.contents))

        # Concurrent path order carries no meaning
        if kind is OperationKind.OP_FORK_EXECUTION:
            fork_args = self._canonicalize_args(args, path)
            if isinstance(fork_args, list):
                fork_args = [
                    arg for arg in fork_args
                    if not (isinstance(arg, ConstantArg) and arg.value == EXIT_WHEN_ALL_COMPLETED)
                ]
            paths = sorted(self._canonicalize_contents(op.contents, path), key=sort_key)
            return CompiledBlock(type=op.type, args=fork_args, contents=paths)

        if self.strict:
            raise UnknownOperationError(op.type)

        self._warn(
            "UNKNOWN_OPERATION",
            path,
            f"Unknown operation: {op.type}",
            "Only identifiers are stripped from unknown operations"
        )
        return CompiledBlock(
            type=op.type,
            args=_without_ids(args),
            contents=_without_ids(op.contents),
        )


def canonicalize(graph: Sequence[Any],
                 report: Optional[CompilerReport] = None,
                 strict: Optional[bool] = None) -> CompiledFlowGraph:
    """Canonicalize one compiled graph"""
    return Canonicalizer(report, strict).canonicalize(graph)


def canonicalize_ast_list(graphs: Sequence[Sequence[Any]],
                          report: Optional[CompilerReport] = None,
                          strict: Optional[bool] = None) -> List[CompiledFlowGraph]:
    """Canonicalize a collection of graphs into an order-independent list"""
    return Canonicalizer(report, strict).canonicalize_list(graphs)


canonicalize_list = canonicalize_ast_list
