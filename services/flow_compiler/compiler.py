"""
Compile entry point: Source AST → Compiled Flow Graph
"""

import logging
from typing import Any, Dict, Optional

from core.flow_graph.models import CompiledFlowGraph, SourceAst
from .compilers.base import BaseCompiler, CompilerReport
from .compilers.block_lowerer import BlockLowerer
from .compilers.graph_linker import GraphLinker, IdStrategy

logger = logging.getLogger(__name__)


class BlockCompiler(BaseCompiler):
    """
    Full pipeline: block lowering followed by graph linking.

    Both stages share one report, so diagnostics from either stage end up
    in the same place.
    """

    def __init__(self,
                 report: Optional[CompilerReport] = None,
                 id_strategy: Optional[IdStrategy] = None,
                 link: bool = True):
        super().__init__(report)
        self.id_strategy = id_strategy
        self.link = link

    def compile(self, ast: SourceAst) -> Dict[str, Any]:
        """
        Compile a source AST

        Args:
            ast: Ordered list of source operations

        Returns:
            Dict with the compiled graph and the report

        Raises:
            ASTCompilationError: the AST has malformed argument nesting
            GraphLinkError: the linked graph breaks an id invariant
        """
        graph = BlockLowerer(self.report).lower_ast(ast)

        if self.link:
            graph = GraphLinker(self.report, self.id_strategy).link(graph)

        logger.info(
            f"Compiled {len(ast)} operations into {len(graph)} root blocks "
            f"({len(self.report.warnings)} warnings)"
        )
        return {"graph": graph, "report": self.report}


def gen_compiled(ast: SourceAst,
                 report: Optional[CompilerReport] = None,
                 id_strategy: Optional[IdStrategy] = None,
                 link: bool = True) -> CompiledFlowGraph:
    """Compile a source AST into a Compiled Flow Graph"""
    return BlockCompiler(report, id_strategy, link).compile(ast)["graph"]
