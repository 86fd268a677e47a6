"""
Pytest configuration and fixtures for the block flow compiler tests.
"""
import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from services.flow_compiler.compilers.base import CompilerReport
from services.flow_compiler.compilers.graph_linker import SequentialIdStrategy, UuidIdStrategy


@pytest.fixture
def report():
    """A fresh diagnostics report."""
    return CompilerReport()


@pytest.fixture
def sequential_ids():
    """Deterministic id strategy producing b1, b2, ..."""
    return SequentialIdStrategy("b")


@pytest.fixture
def uuid_ids():
    """Random id strategy."""
    return UuidIdStrategy()


@pytest.fixture
def monitor_ast():
    """Wait on a monitor, then call a service with mixed arguments."""
    return [
        ["wait_for_monitor", {"monitor_id": {"from_service": "thermostat"}, "expected_value": "on"}],
        ["command_call_service", {
            "service_id": "chat-bot",
            "service_action": "send_message",
            "service_call_values": ["hello", 42, ["flow_last_value", "thermostat", 0]],
        }],
    ]


@pytest.fixture
def if_else_ast():
    """A conditional with only a 'then' branch."""
    return [
        ["control_if_else",
         ["operator_equals", ["flow_last_value", "door", 0], "open"],
         [["op_log_value", "door is open"]]],
    ]


@pytest.fixture
def fork_paths():
    """Two concurrent paths."""
    return [
        [["op_log_value", "left"], ["control_wait", 1]],
        [["op_log_value", "right"]],
    ]


@pytest.fixture
def fork_ast(fork_paths):
    """Log, fork into two paths, log again."""
    return [
        ["op_log_value", "start"],
        ["op_fork_execution", [], fork_paths],
        ["op_log_value", "end"],
    ]


@pytest.fixture
def reversed_fork_ast(fork_paths):
    """Same as fork_ast with path order reversed."""
    return [
        ["op_log_value", "start"],
        ["op_fork_execution", [], list(reversed(fork_paths))],
        ["op_log_value", "end"],
    ]
