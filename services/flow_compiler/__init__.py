"""
Block Flow Compiler Service

Compiles the array-encoded block language into linked block graphs and
provides the canonicalization used to compare compiled graphs in tests.
"""

from .compiler import BlockCompiler, gen_compiled
from .compilers import CompilerReport, GraphLinker, BlockLowerer
from .canonical import canonicalize, canonicalize_ast_list, canonicalize_list

__all__ = [
    "BlockCompiler",
    "gen_compiled",
    "CompilerReport",
    "GraphLinker",
    "BlockLowerer",
    "canonicalize",
    "canonicalize_ast_list",
    "canonicalize_list",
]
