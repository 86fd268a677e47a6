"""
Block Flow Graph Model

Source AST aliases, compiled block graph types, the operation catalog and
the error types shared by the compiler and its test tooling.
"""

from .catalog import (
    CUSTOM_NAMESPACE,
    OperationKind,
    ExtensionOperation,
    classify_operation,
    is_custom_operation,
)
from .exceptions import (
    FlowGraphError,
    ASTCompilationError,
    GraphLinkError,
    UnknownOperationError,
)
from .models import (
    SourceAst,
    SourceOperation,
    SourceArgument,
    ConstantArg,
    BlockArg,
    MonitorArgs,
    CallServiceArgs,
    CompiledBlock,
    ContentBlock,
    CompiledFlowGraph,
    graph_to_dict,
    graph_from_dict,
    block_from_dict,
    arg_from_dict,
    iter_blocks,
)

__all__ = [
    "CUSTOM_NAMESPACE",
    "OperationKind",
    "ExtensionOperation",
    "classify_operation",
    "is_custom_operation",
    "FlowGraphError",
    "ASTCompilationError",
    "GraphLinkError",
    "UnknownOperationError",
    "SourceAst",
    "SourceOperation",
    "SourceArgument",
    "ConstantArg",
    "BlockArg",
    "MonitorArgs",
    "CallServiceArgs",
    "CompiledBlock",
    "ContentBlock",
    "CompiledFlowGraph",
    "graph_to_dict",
    "graph_from_dict",
    "block_from_dict",
    "arg_from_dict",
    "iter_blocks",
]
