"""
CLI interface for the block flow compiler.

Usage:
    flowc compile --in ast.json --out graph.json
    flowc canonicalize --in graph.json --out canonical.json
    flowc equals --left expected.json --right actual.json
"""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from core.flow_graph.exceptions import FlowGraphError
from core.flow_graph.models import graph_from_dict, graph_to_dict
from core.flow_graph.schema_validator import schema_validator
from core.logging_config import configure_logging_from_settings
from .canonical import canonicalize, canonicalize_ast_list, stable_stringify
from .compiler import BlockCompiler
from .compilers.base import CompilerReport
from .compilers.graph_linker import ID_STRATEGIES, make_id_strategy
from .json_output import canonical_to_json, compile_to_json

logger = logging.getLogger(__name__)


class CLIError(Exception):
    """Raised when an input or output file cannot be handled"""
    pass


def load_json_file(file_path: str) -> Any:
    """Load and parse a JSON file"""
    try:
        with open(file_path, 'r') as f:
            return json.load(f)
    except FileNotFoundError:
        raise CLIError(f"File not found: {file_path}")
    except json.JSONDecodeError as e:
        raise CLIError(f"Invalid JSON in {file_path}: {e}")


def save_output(data: str, file_path: Optional[str]):
    """Write output to a file, or stdout when no file is given"""
    if not file_path:
        sys.stdout.write(data + "\n")
        return

    try:
        with open(file_path, 'w') as f:
            f.write(data + "\n")
        logger.info(f"Output saved to: {file_path}")
    except OSError as e:
        raise CLIError(f"Failed to save output to {file_path}: {e}")


def _log_report(report: CompilerReport):
    if report.warnings:
        logger.warning("Warnings:")
        for warning in report.warnings:
            logger.warning(f"  {warning['path']}: {warning['message']}")


def _load_graphs(file_path: str, as_list: bool) -> Any:
    doc = load_json_file(file_path)
    try:
        if as_list:
            if not isinstance(doc, list):
                raise ValueError("Expected a JSON array of graphs")
            return [graph_from_dict(graph) for graph in doc]
        return graph_from_dict(doc)
    except ValueError as e:
        raise CLIError(f"Invalid compiled graph in {file_path}: {e}")


def compile_ast(args) -> int:
    """Compile a source AST to a Compiled Flow Graph"""
    logger.info("Compiling source AST...")

    ast = load_json_file(args.input)

    compiler = BlockCompiler(
        id_strategy=make_id_strategy(args.id_strategy),
        link=not args.no_link,
    )
    result = compiler.compile(ast)
    graph = result["graph"]
    report = result["report"]

    schema_issues = []
    if args.validate:
        schema_issues = schema_validator.validate_graph(graph_to_dict(graph))
        for issue in schema_issues:
            logger.error(f"  {issue.path}: {issue.message}")

    if args.report:
        save_output(compile_to_json(graph, report, schema_issues), args.output)
    else:
        save_output(json.dumps(graph_to_dict(graph), indent=2), args.output)

    _log_report(report)

    if schema_issues:
        logger.error("Compiled graph failed schema validation")
        return 1

    logger.info("Compilation completed successfully!")
    return 0


def canonicalize_graph(args) -> int:
    """Canonicalize a compiled graph or a list of graphs"""
    logger.info("Canonicalizing compiled graph...")

    graphs = _load_graphs(args.input, args.list)
    report = CompilerReport()

    if args.list:
        canonical = canonicalize_ast_list(graphs, report, strict=args.strict or None)
        structure: List[Any] = [graph_to_dict(graph) for graph in canonical]
    else:
        canonical = canonicalize(graphs, report, strict=args.strict or None)
        structure = graph_to_dict(canonical)

    if args.report:
        save_output(canonical_to_json(canonical, report), args.output)
    else:
        save_output(json.dumps(structure, indent=2), args.output)

    _log_report(report)
    return 0


def compare_graphs(args) -> int:
    """Exit 0 when both inputs have the same canonical form"""
    left = _load_graphs(args.left, args.list)
    right = _load_graphs(args.right, args.list)
    report = CompilerReport()

    if args.list:
        left_canonical = canonicalize_ast_list(left, report)
        right_canonical = canonicalize_ast_list(right, report)
    else:
        left_canonical = canonicalize(left, report)
        right_canonical = canonicalize(right, report)

    _log_report(report)

    if stable_stringify(left_canonical) == stable_stringify(right_canonical):
        logger.info("Graphs are structurally equal")
        return 0

    logger.info("Graphs differ")
    return 1


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser"""
    parser = argparse.ArgumentParser(
        prog="flowc",
        description="Block Flow Compiler CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compile a source AST into a linked graph
  flowc compile --in ast.json --out graph.json --validate

  # Canonicalize a compiled graph
  flowc canonicalize --in graph.json --out canonical.json

  # Compare two sets of compiled graphs regardless of order
  flowc equals --left expected.json --right actual.json --list
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Compiler command")

    compile_parser = subparsers.add_parser("compile", help="Compile a source AST into a Compiled Flow Graph")
    compile_parser.add_argument("--in", dest="input", required=True, help="Input source AST file")
    compile_parser.add_argument("--out", dest="output", help="Output graph file (stdout if omitted)")
    compile_parser.add_argument("--no-link", action="store_true", help="Emit the unlinked block tree")
    compile_parser.add_argument("--id-strategy", choices=sorted(ID_STRATEGIES), help="Block id strategy")
    compile_parser.add_argument("--validate", action="store_true", help="Validate the output against the graph schema")
    compile_parser.add_argument("--report", action="store_true", help="Wrap the output with the compiler report")
    compile_parser.set_defaults(func=compile_ast)

    canonical_parser = subparsers.add_parser("canonicalize", help="Canonicalize a Compiled Flow Graph")
    canonical_parser.add_argument("--in", dest="input", required=True, help="Input graph file")
    canonical_parser.add_argument("--out", dest="output", help="Output file (stdout if omitted)")
    canonical_parser.add_argument("--list", action="store_true", help="Input is a JSON array of graphs")
    canonical_parser.add_argument("--strict", action="store_true", help="Fail on unknown operations")
    canonical_parser.add_argument("--report", action="store_true", help="Wrap the output with the report")
    canonical_parser.set_defaults(func=canonicalize_graph)

    equals_parser = subparsers.add_parser("equals", help="Check two graphs for structural equality")
    equals_parser.add_argument("--left", required=True, help="First graph file")
    equals_parser.add_argument("--right", required=True, help="Second graph file")
    equals_parser.add_argument("--list", action="store_true", help="Inputs are JSON arrays of graphs")
    equals_parser.set_defaults(func=compare_graphs)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging_from_settings()

    try:
        return args.func(args)
    except (FlowGraphError, CLIError) as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Compilation interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
