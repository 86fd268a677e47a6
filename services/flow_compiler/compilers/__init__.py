"""
Block Flow Compilers Package

This package contains the two stages of the block flow compiler:

1. Block Lowerer (AST→T): Converts the array-encoded source AST into an
   unlinked tree of compiled blocks.

2. Graph Linker (T→G): Assigns block identifiers and makes fork/join
   synchronization explicit, producing the Compiled Flow Graph.
"""

from .base import BaseCompiler, CompilerReport
from .block_lowerer import BlockLowerer, lower_argument, lower_operation, lower_contents, lower_ast
from .graph_linker import (
    GraphLinker,
    IdStrategy,
    SequentialIdStrategy,
    UuidIdStrategy,
    make_id_strategy,
    link_graph,
    verify_linked_graph,
    collect_block_ids,
)

__all__ = [
    "BaseCompiler",
    "CompilerReport",
    "BlockLowerer",
    "lower_argument",
    "lower_operation",
    "lower_contents",
    "lower_ast",
    "GraphLinker",
    "IdStrategy",
    "SequentialIdStrategy",
    "UuidIdStrategy",
    "make_id_strategy",
    "link_graph",
    "verify_linked_graph",
    "collect_block_ids",
]
