"""
Block Lowerer (AST → unlinked block tree)

Lowers the array-encoded source AST into compiled blocks. Argument lowering
and operation lowering are mutually recursive: an argument may itself be a
nested operation, so recursion depth follows the nesting depth of the
source and is not limited here.
"""

import copy
import json
import logging
import math
from decimal import Decimal
from typing import Any, Dict, List, Optional

from core.config import settings
from core.flow_graph.catalog import OperationKind, classify_operation
from core.flow_graph.exceptions import ASTCompilationError
from core.flow_graph.models import (
    BlockArg,
    CallServiceArgs,
    CompiledArg,
    CompiledBlock,
    ConstantArg,
    ContentBlock,
    MonitorArgs,
    SourceArgument,
    SourceAst,
    SourceOperation,
)
from .base import BaseCompiler, CompilerReport

logger = logging.getLogger(__name__)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _format_number(value: Any) -> str:
    """Number to string using the editor's (ECMAScript Number#toString) rules"""
    if isinstance(value, int) and abs(value) < 10 ** 21:
        return str(value)

    try:
        value = float(value)
    except OverflowError:
        value = math.inf if value > 0 else -math.inf
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    # repr gives the shortest round-tripping digits
    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    n = exponent + k

    if k <= n <= 21:
        text = digits + "0" * (n - k)
    elif 0 < n <= 21:
        text = f"{digits[:n]}.{digits[n:]}"
    elif -6 < n <= 0:
        text = "0." + "0" * -n + digits
    else:
        mantissa = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
        text = f"{mantissa}e{'+' if n > 0 else '-'}{abs(n - 1)}"
    return sign + text


def _stringify_literal(value: Any) -> str:
    """Render a literal the way the editor writes it into argument slots"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _format_number(value)
    return str(value)


class BlockLowerer(BaseCompiler):
    """
    Block Lowerer: Source AST → unlinked block tree

    Produces one CompiledBlock per operation:
    - Monitor waits keep their descriptor verbatim
    - Service calls get a service-call argument dictionary
    - Conditionals always carry two branches
    - Forks carry one content block per concurrent path
    - Any other operation lowers its positional fields as arguments
    """

    def __init__(self, report: Optional[CompilerReport] = None, min_fork_paths: Optional[int] = None):
        super().__init__(report)
        self.min_fork_paths = settings.min_fork_paths if min_fork_paths is None else min_fork_paths

    def compile(self, ast: SourceAst) -> Dict[str, Any]:
        """
        Lower a whole source AST

        Args:
            ast: Ordered list of source operations

        Returns:
            Dict with the unlinked graph and the report
        """
        graph = self.lower_ast(ast)
        logger.debug(f"Lowered {len(graph)} top-level operations with {len(self.report.warnings)} warnings")
        return {"graph": graph, "report": self.report}

    def lower_argument(self, arg: SourceArgument, path: str = "root") -> CompiledArg:
        """Lower one argument: literals become constants, operations become block arguments"""
        if isinstance(arg, (str, int, float)):
            return ConstantArg(value=_stringify_literal(arg))

        return BlockArg(value=[self.lower_operation(arg, path)])

    def lower_ast(self, ops: SourceAst, path: str = "") -> List[CompiledBlock]:
        """Lower an ordered list of operations, preserving order"""
        if not _is_sequence(ops):
            raise ASTCompilationError(ops)

        return [self.lower_operation(op, f"{path}[{idx}]") for idx, op in enumerate(ops)]

    def lower_contents(self, ops: SourceAst, path: str = "") -> ContentBlock:
        """Lower an operation list into a content block"""
        return ContentBlock(contents=self.lower_ast(ops, path))

    def lower_operation(self, op: SourceOperation, path: str = "root") -> CompiledBlock:
        """Lower one operation, dispatching on its discriminant"""
        if not _is_sequence(op):
            # A bare literal where an operation list was expected
            raise ASTCompilationError(op)
        if not op:
            raise ASTCompilationError(op, f"ASTCompilationError: Empty operation at {path}")

        tag = op[0]
        if not isinstance(tag, str):
            raise ASTCompilationError(
                op,
                f"ASTCompilationError: Operation discriminant must be a string, found: {json.dumps(tag, default=repr)}"
            )

        kind = classify_operation(tag)

        if kind is OperationKind.WAIT_FOR_MONITOR:
            return self._lower_wait_for_monitor(op, path)

        if kind is OperationKind.COMMAND_CALL_SERVICE:
            return self._lower_call_service(op, path)

        if kind is OperationKind.CONTROL_IF_ELSE:
            return self._lower_if_else(op, path)

        if kind is OperationKind.OP_FORK_EXECUTION:
            return self._lower_fork(op, path)

        return self._lower_default(op, path)

    def _lower_wait_for_monitor(self, op: SourceOperation, path: str) -> CompiledBlock:
        """Monitor waits reference another operation's output; nothing to recurse into"""
        descriptor = op[1] if len(op) > 1 else None
        if not isinstance(descriptor, dict):
            raise ASTCompilationError(
                op,
                f"ASTCompilationError: wait_for_monitor expects a monitor descriptor at {path}"
            )

        return CompiledBlock(
            type=op[0],
            args=MonitorArgs(descriptor=copy.deepcopy(descriptor)),
            contents=[],
        )

    def _lower_call_service(self, op: SourceOperation, path: str) -> CompiledBlock:
        call = op[1] if len(op) > 1 else None
        if not isinstance(call, dict):
            raise ASTCompilationError(
                op,
                f"ASTCompilationError: command_call_service expects a service call object at {path}"
            )

        values = call.get("service_call_values") or []
        if not _is_sequence(values):
            raise ASTCompilationError(values)

        return CompiledBlock(
            type=op[0],
            args=CallServiceArgs(
                service_id=call.get("service_id"),
                service_action=call.get("service_action"),
                service_call_values=[
                    self.lower_argument(value, f"{path}.args.service_call_values[{idx}]")
                    for idx, value in enumerate(values)
                ],
            ),
            contents=[],
        )

    def _lower_if_else(self, op: SourceOperation, path: str) -> CompiledBlock:
        if len(op) < 2:
            raise ASTCompilationError(
                op,
                f"ASTCompilationError: control_if_else is missing its condition at {path}"
            )
        if len(op) > 4:
            raise ASTCompilationError(
                op,
                f"ASTCompilationError: control_if_else takes at most two branches, found {len(op) - 2} at {path}"
            )

        contents = [
            self.lower_contents(branch, f"{path}.contents[{idx}]")
            for idx, branch in enumerate(op[2:])
        ]

        # The runtime addresses both branches unconditionally
        if len(contents) < 2:
            contents.append(ContentBlock(contents=[]))

        return CompiledBlock(
            type=op[0],
            args=[self.lower_argument(op[1], f"{path}.args[0]")],
            contents=contents,
        )

    def _lower_fork(self, op: SourceOperation, path: str) -> CompiledBlock:
        fork_args = op[1] if len(op) > 1 else []
        paths = op[2] if len(op) > 2 else []
        if not _is_sequence(fork_args):
            raise ASTCompilationError(fork_args)
        if not _is_sequence(paths):
            raise ASTCompilationError(paths)

        contents = [
            self.lower_contents(fork_path, f"{path}.contents[{idx}]")
            for idx, fork_path in enumerate(paths)
        ]

        if len(contents) < self.min_fork_paths:
            self._warn(
                "DEGENERATE_FORK",
                path,
                f"Fork (op_fork_execution) with less than {self.min_fork_paths} outward paths",
                "A fork needs at least two concurrent paths to run anything in parallel"
            )

        return CompiledBlock(
            type=op[0],
            args=[self.lower_argument(arg, f"{path}.args[{idx}]") for idx, arg in enumerate(fork_args)],
            contents=contents,
        )

    def _lower_default(self, op: SourceOperation, path: str) -> CompiledBlock:
        """Generic operations, including custom ``services.`` operations"""
        args = op[1:]

        return CompiledBlock(
            type=op[0],
            args=[self.lower_argument(arg, f"{path}.args[{idx}]") for idx, arg in enumerate(args)],
            contents=[],
        )


def lower_argument(arg: SourceArgument, report: Optional[CompilerReport] = None) -> CompiledArg:
    """Lower a single source argument"""
    return BlockLowerer(report).lower_argument(arg)


def lower_operation(op: SourceOperation, report: Optional[CompilerReport] = None) -> CompiledBlock:
    """Lower a single source operation"""
    return BlockLowerer(report).lower_operation(op)


def lower_contents(ops: SourceAst, report: Optional[CompilerReport] = None) -> ContentBlock:
    """Lower an operation list into a content block"""
    return BlockLowerer(report).lower_contents(ops)


def lower_ast(ast: SourceAst, report: Optional[CompilerReport] = None) -> List[CompiledBlock]:
    """Lower a source AST into an unlinked block tree"""
    return BlockLowerer(report).lower_ast(ast)
