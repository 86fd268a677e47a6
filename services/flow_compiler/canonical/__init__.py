"""
Canonical forms of compiled flow graphs, used to assert structural equality
in tests.
"""

from .canonicalizer import Canonicalizer, canonicalize, canonicalize_ast_list, canonicalize_list
from .comparator import compare, sort_key, stable_stringify

__all__ = [
    "Canonicalizer",
    "canonicalize",
    "canonicalize_ast_list",
    "canonicalize_list",
    "compare",
    "sort_key",
    "stable_stringify",
]
