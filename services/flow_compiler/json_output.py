"""
JSON output formatting for compiler results
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from core.flow_graph.models import CompiledBlock, graph_to_dict, iter_blocks
from core.flow_graph.schema_validator import ValidationIssue
from .compilers.base import CompilerReport


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class JSONFormatter:
    """Formats compilation and canonicalization results as structured JSON"""

    @staticmethod
    def format_report(report: CompilerReport) -> Dict[str, Any]:
        """Format the diagnostics of a compiler report"""
        return {
            "errors": list(report.errors),
            "warnings": list(report.warnings),
            "hints": list(report.hints),
            "summary": {
                "total_errors": len(report.errors),
                "total_warnings": len(report.warnings),
                "has_errors": report.has_errors,
                "has_warnings": report.has_warnings,
            }
        }

    @staticmethod
    def format_compile_result(graph: Sequence[CompiledBlock],
                              report: CompilerReport,
                              schema_issues: Optional[List[ValidationIssue]] = None) -> Dict[str, Any]:
        """Format a compiled graph together with its report"""
        result = {
            "success": report.is_success and not schema_issues,
            "timestamp": _timestamp(),
            "stage": "compilation",
            "compiled_graph": {
                "root_blocks": len(graph),
                "total_blocks": sum(1 for _ in iter_blocks(graph)),
                "structure": graph_to_dict(graph),
            },
            "report": JSONFormatter.format_report(report),
        }

        if schema_issues:
            result["schema_errors"] = [
                {
                    "code": issue.code,
                    "path": issue.path,
                    "message": issue.message,
                    "meta": issue.meta or {}
                }
                for issue in schema_issues
            ]

        return result

    @staticmethod
    def format_canonical_result(canonical: Any, report: CompilerReport) -> Dict[str, Any]:
        """Format a canonical graph (or list of graphs) together with its report"""
        if canonical and isinstance(canonical[0], list):
            structure = [graph_to_dict(graph) for graph in canonical]
        else:
            structure = graph_to_dict(canonical)

        return {
            "success": report.is_success,
            "timestamp": _timestamp(),
            "stage": "canonicalization",
            "canonical": structure,
            "report": JSONFormatter.format_report(report),
        }

    @staticmethod
    def to_json_string(data: Dict[str, Any], indent: int = 2) -> str:
        """Convert data to JSON string with proper formatting"""
        return json.dumps(data, indent=indent, ensure_ascii=False)


def compile_to_json(graph: Sequence[CompiledBlock],
                    report: CompilerReport,
                    schema_issues: Optional[List[ValidationIssue]] = None) -> str:
    """Convert a compile result to a JSON string"""
    formatted = JSONFormatter.format_compile_result(graph, report, schema_issues)
    return JSONFormatter.to_json_string(formatted)


def canonical_to_json(canonical: Any, report: CompilerReport) -> str:
    """Convert a canonicalization result to a JSON string"""
    formatted = JSONFormatter.format_canonical_result(canonical, report)
    return JSONFormatter.to_json_string(formatted)
