"""
Error types raised by the block flow compiler
"""

import json
from typing import Any, Optional


class FlowGraphError(Exception):
    """Base class for compiler errors"""
    pass


class ASTCompilationError(FlowGraphError):
    """Raised when a source operation is not shaped the way its kind requires"""

    def __init__(self, value: Any, message: Optional[str] = None):
        self.value = value
        if message is None:
            message = (
                f"ASTCompilationError: Expected argument array, found: {_render(value)}. "
                "Check for errors on argument nesting"
            )
        super().__init__(message)


class GraphLinkError(FlowGraphError):
    """Raised when a linked graph breaks identifier or jump target invariants"""
    pass


class UnknownOperationError(FlowGraphError):
    """Raised by strict canonicalization on an unrecognized operation"""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Unknown operation: {operation}")


def _render(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)
