"""
Operation catalog for the block flow language.

Known operation discriminants form a closed enum. Custom operations live
under the ``services.`` namespace and are represented by a single
extension variant carrying the raw discriminant.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Union


CUSTOM_NAMESPACE = "services."


class OperationKind(str, Enum):
    """Every operation discriminant the compiler and canonicalizer know"""
    # Source operations
    OPERATOR_AND = "operator_and"
    OPERATOR_EQUALS = "operator_equals"
    COMMAND_CALL_SERVICE = "command_call_service"
    WAIT_FOR_MONITOR = "wait_for_monitor"
    FLOW_LAST_VALUE = "flow_last_value"
    CONTROL_IF_ELSE = "control_if_else"
    OP_FORK_EXECUTION = "op_fork_execution"

    # Linker primitives
    JUMP_TO_POSITION = "jump_to_position"
    JUMP_TO_BLOCK = "jump_to_block"
    TRIGGER_WHEN_ALL_COMPLETED = "trigger_when_all_completed"
    TRIGGER_WHEN_FIRST_COMPLETED = "trigger_when_first_completed"

    # Runtime operations
    CONTROL_WAIT = "control_wait"
    FLOW_MODULO = "flow_modulo"
    FLOW_SET_VALUE = "flow_set_value"
    FLOW_GET_THREAD_ID = "flow_get_thread_id"
    OPERATOR_ADD = "operator_add"
    OPERATOR_LT = "operator_lt"
    OPERATOR_GT = "operator_gt"
    OP_LOG_VALUE = "op_log_value"
    OP_PRELOAD_GETTER = "op_preload_getter"
    DATA_SETVARIABLETO = "data_setvariableto"
    DATA_VARIABLE = "data_variable"
    DATA_LENGTHOFLIST = "data_lengthoflist"
    DATA_DELETEOFLIST = "data_deleteoflist"
    DATA_ADDTOLIST = "data_addtolist"


@dataclass(frozen=True)
class ExtensionOperation:
    """A custom operation from the ``services.`` namespace"""
    tag: str

    @property
    def value(self) -> str:
        return self.tag


OperationRef = Union[OperationKind, ExtensionOperation]


# Operations with no nested state to normalize
STATELESS_KINDS: FrozenSet[OperationKind] = frozenset({
    OperationKind.WAIT_FOR_MONITOR,
    OperationKind.FLOW_LAST_VALUE,
    OperationKind.JUMP_TO_POSITION,
    OperationKind.JUMP_TO_BLOCK,
    OperationKind.TRIGGER_WHEN_FIRST_COMPLETED,
})

# Operations whose args and contents are positional and order-sensitive
ORDER_SENSITIVE_KINDS: FrozenSet[OperationKind] = frozenset({
    OperationKind.CONTROL_WAIT,
    OperationKind.CONTROL_IF_ELSE,
    OperationKind.TRIGGER_WHEN_ALL_COMPLETED,
    OperationKind.FLOW_MODULO,
    OperationKind.FLOW_SET_VALUE,
    OperationKind.FLOW_GET_THREAD_ID,
    OperationKind.OPERATOR_ADD,
    OperationKind.OPERATOR_LT,
    OperationKind.OPERATOR_GT,
    OperationKind.OP_LOG_VALUE,
    OperationKind.OP_PRELOAD_GETTER,
    OperationKind.DATA_SETVARIABLETO,
    OperationKind.DATA_VARIABLE,
    OperationKind.DATA_LENGTHOFLIST,
    OperationKind.DATA_DELETEOFLIST,
    OperationKind.DATA_ADDTOLIST,
})

# Operations whose argument order carries no meaning
COMMUTATIVE_KINDS: FrozenSet[OperationKind] = frozenset({
    OperationKind.OPERATOR_AND,
    OperationKind.OPERATOR_EQUALS,
})

# Blocks generated by the linker that hold identifier references in their args
LINK_PRIMITIVES: FrozenSet[OperationKind] = frozenset({
    OperationKind.JUMP_TO_BLOCK,
    OperationKind.TRIGGER_WHEN_ALL_COMPLETED,
    OperationKind.TRIGGER_WHEN_FIRST_COMPLETED,
})

# Fork flags
EXIT_WHEN_ALL_COMPLETED = "exit-when-all-completed"
EXIT_WHEN_FIRST_COMPLETED = "exit-when-first-completed"

_KINDS_BY_TAG = {kind.value: kind for kind in OperationKind}


def is_custom_operation(tag: str) -> bool:
    """Check whether a discriminant belongs to the custom operation namespace"""
    return isinstance(tag, str) and tag.startswith(CUSTOM_NAMESPACE)


def classify_operation(tag: str) -> Optional[OperationRef]:
    """
    Resolve a discriminant against the catalog.

    Returns:
        The matching OperationKind, an ExtensionOperation for custom
        operations, or None when the discriminant is unknown
    """
    kind = _KINDS_BY_TAG.get(tag) if isinstance(tag, str) else None
    if kind is not None:
        return kind
    if is_custom_operation(tag):
        return ExtensionOperation(tag)
    return None
