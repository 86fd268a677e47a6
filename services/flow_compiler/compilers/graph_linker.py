"""
Graph Linker (unlinked block tree → Compiled Flow Graph)

Assigns an identifier to every block and makes fork synchronization
explicit:

- Every block, including blocks nested in branch bodies and in block
  arguments, gets a graph-unique id.
- Each ``op_fork_execution`` is followed in its own sequence by a join
  block (``trigger_when_all_completed``, or ``trigger_when_first_completed``
  when the fork is flagged ``exit-when-first-completed``) whose argument
  is the fork id.
- Each fork path ends with a ``jump_to_block`` targeting the join.

Conditional branches stay as two content blocks; each falls through to the
block after the conditional, so no jump is emitted for them.
"""

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from core.config import settings
from core.flow_graph.catalog import (
    EXIT_WHEN_FIRST_COMPLETED,
    LINK_PRIMITIVES,
    OperationKind,
)
from core.flow_graph.exceptions import GraphLinkError
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
    MonitorArgs,
    iter_blocks,
)
from .base import BaseCompiler, CompilerReport

logger = logging.getLogger(__name__)


class IdStrategy(ABC):
    """Source of block identifiers for one linking pass"""

    @abstractmethod
    def next_id(self, block_type: str) -> str:
        pass


class SequentialIdStrategy(IdStrategy):
    """Counter-based ids: b1, b2, ..."""

    def __init__(self, prefix: str = "b"):
        self.prefix = prefix
        self.counter = 0

    def next_id(self, block_type: str) -> str:
        self.counter += 1
        return f"{self.prefix}{self.counter}"


class UuidIdStrategy(IdStrategy):
    """Random ids, unique across graphs"""

    def next_id(self, block_type: str) -> str:
        return uuid.uuid4().hex


ID_STRATEGIES = {
    "sequential": SequentialIdStrategy,
    "uuid": UuidIdStrategy,
}


def make_id_strategy(name: Optional[str] = None, prefix: Optional[str] = None) -> IdStrategy:
    """Build an id strategy by name, defaulting to the configured one"""
    name = name or settings.block_id_strategy
    if name not in ID_STRATEGIES:
        raise ValueError(f"Unknown block id strategy '{name}', expected one of: {', '.join(ID_STRATEGIES)}")

    if name == "sequential":
        return SequentialIdStrategy(prefix if prefix is not None else settings.block_id_prefix)
    return ID_STRATEGIES[name]()


class GraphLinker(BaseCompiler):
    """
    Graph Linker: unlinked block tree → Compiled Flow Graph

    The input tree is never mutated; every linked block is a new object.
    """

    def __init__(self, report: Optional[CompilerReport] = None, id_strategy: Optional[IdStrategy] = None):
        super().__init__(report)
        self.id_strategy = id_strategy if id_strategy is not None else make_id_strategy()

    def compile(self, graph: Sequence[CompiledBlock]) -> Dict[str, Any]:
        """
        Link an unlinked block tree

        Args:
            graph: Root-level blocks produced by the block lowerer

        Returns:
            Dict with the linked graph and the report
        """
        linked = self.link(graph)
        return {"graph": linked, "report": self.report}

    def link(self, graph: Sequence[CompiledBlock]) -> CompiledFlowGraph:
        """Link a block tree and check the result"""
        linked = self._link_sequence(graph, "")

        problems = verify_linked_graph(linked)
        if problems:
            for problem in problems:
                self.report.add_error("LINK_INVARIANT", "", problem)
            raise GraphLinkError("; ".join(problems))

        logger.debug(f"Linked {len(linked)} root blocks")
        return linked

    def _next_id(self, block_type: str) -> str:
        return self.id_strategy.next_id(block_type)

    def _link_sequence(self, contents: Sequence[Content], path: str) -> List[Content]:
        """Link an ordered sequence, splicing join blocks in after forks"""
        result: List[Content] = []
        for idx, content in enumerate(contents):
            item_path = f"{path}[{idx}]"
            if isinstance(content, ContentBlock):
                result.append(ContentBlock(contents=self._link_sequence(content.contents, f"{item_path}.contents")))
            else:
                result.extend(self._link_block(content, item_path))
        return result

    def _link_block(self, block: CompiledBlock, path: str) -> List[CompiledBlock]:
        block_id = self._next_id(block.type)

        if block.type == OperationKind.OP_FORK_EXECUTION.value:
            return self._link_fork(block, block_id, path)

        return [CompiledBlock(
            id=block_id,
            type=block.type,
            args=self._link_args(block.args, path),
            contents=self._link_sequence(block.contents, f"{path}.contents"),
        )]

    def _link_fork(self, fork: CompiledBlock, fork_id: str, path: str) -> List[CompiledBlock]:
        """Link a fork and emit its join block"""
        args = self._link_args(fork.args, path)

        join_type = OperationKind.TRIGGER_WHEN_ALL_COMPLETED
        if any(isinstance(arg, ConstantArg) and arg.value == EXIT_WHEN_FIRST_COMPLETED for arg in args):
            join_type = OperationKind.TRIGGER_WHEN_FIRST_COMPLETED
        join_id = self._next_id(join_type.value)

        paths: List[Content] = []
        for idx, fork_path in enumerate(fork.contents):
            path_prefix = f"{path}.contents[{idx}]"
            if isinstance(fork_path, ContentBlock):
                body = self._link_sequence(fork_path.contents, f"{path_prefix}.contents")
            else:
                body = self._link_sequence([fork_path], path_prefix)
            body.append(CompiledBlock(
                id=self._next_id(OperationKind.JUMP_TO_BLOCK.value),
                type=OperationKind.JUMP_TO_BLOCK.value,
                args=[ConstantArg(value=join_id)],
                contents=[],
            ))
            paths.append(ContentBlock(contents=body))

        linked_fork = CompiledBlock(id=fork_id, type=fork.type, args=args, contents=paths)
        join = CompiledBlock(
            id=join_id,
            type=join_type.value,
            args=[ConstantArg(value=fork_id)],
            contents=[],
        )
        return [linked_fork, join]

    def _link_args(self, args: BlockArgs, path: str) -> BlockArgs:
        if isinstance(args, MonitorArgs):
            return MonitorArgs(descriptor=copy.deepcopy(args.descriptor))

        if isinstance(args, CallServiceArgs):
            return CallServiceArgs(
                service_id=args.service_id,
                service_action=args.service_action,
                service_call_values=[
                    self._link_arg(arg, f"{path}.args.service_call_values[{idx}]")
                    for idx, arg in enumerate(args.service_call_values)
                ],
            )

        return [self._link_arg(arg, f"{path}.args[{idx}]") for idx, arg in enumerate(args)]

    def _link_arg(self, arg: CompiledArg, path: str) -> CompiledArg:
        if isinstance(arg, ConstantArg):
            return ConstantArg(value=arg.value)

        # A block argument holds exactly one block, leaving no place for a join
        if any(block.type == OperationKind.OP_FORK_EXECUTION.value for block in arg.value):
            message = "Fork (op_fork_execution) cannot be used as an argument value"
            self.report.add_error("FORK_IN_ARGUMENT", path, message, "Move the fork into a block sequence")
            raise GraphLinkError(f"{message} at {path}")

        return BlockArg(value=self._link_sequence(arg.value, f"{path}.value"))


def collect_block_ids(graph: Sequence[Content]) -> List[str]:
    """Ids of every block in the graph, in traversal order (duplicates kept)"""
    return [block.id for block in iter_blocks(graph) if block.id is not None]


def verify_linked_graph(graph: Sequence[Content]) -> List[str]:
    """
    Check linker invariants

    Returns:
        Human readable descriptions of every violation (empty if valid)
    """
    problems: List[str] = []
    blocks_by_id: Dict[str, CompiledBlock] = {}

    for block in iter_blocks(graph):
        if not block.id:
            problems.append(f"Block of type '{block.type}' has no id")
            continue
        if block.id in blocks_by_id:
            problems.append(f"Duplicate block id '{block.id}'")
            continue
        blocks_by_id[block.id] = block

    for block in iter_blocks(graph):
        if block.type not in {kind.value for kind in LINK_PRIMITIVES}:
            continue

        targets = [arg.value for arg in block.args if isinstance(arg, ConstantArg)] if isinstance(block.args, list) else []
        if not targets:
            problems.append(f"Block '{block.id}' of type '{block.type}' has no target")
            continue
        if targets[0] not in blocks_by_id:
            problems.append(f"Block '{block.id}' targets unknown id '{targets[0]}'")

    return problems


def link_graph(graph: Sequence[CompiledBlock],
               report: Optional[CompilerReport] = None,
               id_strategy: Optional[IdStrategy] = None) -> CompiledFlowGraph:
    """Link an unlinked block tree into a Compiled Flow Graph"""
    return GraphLinker(report, id_strategy).link(graph)
