"""
Shared report and base class for the compiler stages and the canonicalizer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging


def _diagnostic(code: str, path: str, message: str, hint: Optional[str]) -> Dict[str, Any]:
    return {"code": code, "path": path, "message": message, "hint": hint}


@dataclass
class CompilerReport:
    """
    Diagnostics collected while compiling or canonicalizing a graph.

    One report is shared by every stage of a run. Errors accompany an
    exception; warnings never stop processing.
    """
    errors: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[Dict[str, Any]] = field(default_factory=list)
    hints: List[str] = field(default_factory=list)

    def add_error(self, code: str, path: str, message: str, hint: Optional[str] = None):
        self.errors.append(_diagnostic(code, path, message, hint))

    def add_warning(self, code: str, path: str, message: str, hint: Optional[str] = None):
        self.warnings.append(_diagnostic(code, path, message, hint))
        if hint and hint not in self.hints:
            self.hints.append(hint)

    def warning_codes(self) -> List[str]:
        """Codes of every warning, in emission order"""
        return [warning["code"] for warning in self.warnings]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def is_success(self) -> bool:
        """A run succeeded when it recorded no errors"""
        return not self.has_errors


class BaseCompiler(ABC):
    """Base class for the compiler stages; holds the (injectable) report"""

    def __init__(self, report: Optional[CompilerReport] = None):
        self.report = report if report is not None else CompilerReport()

    @abstractmethod
    def compile(self, input_doc: Any) -> Dict[str, Any]:
        """Run the stage; returns a dict with the result under "graph" and the report"""
        pass

    def _warn(self, code: str, path: str, message: str, hint: Optional[str] = None):
        """Record a non-fatal diagnostic and log it"""
        self.report.add_warning(code, path, message, hint)
        logging.getLogger(type(self).__module__).warning(f"{code} at {path or 'root'}: {message}")
