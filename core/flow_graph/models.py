"""
Type definitions for source ASTs and compiled block graphs
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union


# Source AST: JSON-shaped arrays, discriminant at position 0
SourceOperation = Sequence[Any]
SourceArgument = Union[SourceOperation, str, int, float]
SourceAst = List[SourceOperation]


@dataclass
class ConstantArg:
    """A literal argument, always carried as a string"""
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "constant", "value": self.value}


@dataclass
class BlockArg:
    """A nested operation used as an argument, wrapped as a singleton list"""
    value: List["CompiledBlock"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "block", "value": [block.to_dict() for block in self.value]}


CompiledArg = Union[ConstantArg, BlockArg]


@dataclass
class MonitorArgs:
    """Raw monitor descriptor passed through from the source"""
    descriptor: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.descriptor)


@dataclass
class CallServiceArgs:
    """Arguments of a service invocation"""
    service_id: Any
    service_action: Any
    service_call_values: List[CompiledArg] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service_id": self.service_id,
            "service_action": self.service_action,
            "service_call_values": [arg.to_dict() for arg in self.service_call_values],
        }


BlockArgs = Union[List[CompiledArg], MonitorArgs, CallServiceArgs]


@dataclass
class CompiledBlock:
    """One lowered operation. Only the linker assigns ``id``."""
    type: str
    args: BlockArgs = field(default_factory=list)
    contents: List["Content"] = field(default_factory=list)
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.id is not None:
            result["id"] = self.id
        result["type"] = self.type
        result["args"] = args_to_dict(self.args)
        result["contents"] = [content.to_dict() for content in self.contents]
        return result


@dataclass
class ContentBlock:
    """An anonymous branch or path body"""
    contents: List["Content"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"contents": [content.to_dict() for content in self.contents]}


Content = Union[CompiledBlock, ContentBlock]
CompiledFlowGraph = List[CompiledBlock]


def args_to_dict(args: BlockArgs) -> Any:
    """Serialize any of the three argument shapes"""
    if isinstance(args, (MonitorArgs, CallServiceArgs)):
        return args.to_dict()
    return [arg.to_dict() for arg in args]


def graph_to_dict(graph: Sequence[CompiledBlock]) -> List[Dict[str, Any]]:
    """Serialize a compiled graph to its JSON form"""
    return [block.to_dict() for block in graph]


def arg_from_dict(data: Dict[str, Any]) -> CompiledArg:
    """Parse a compiled argument from its JSON form"""
    if not isinstance(data, dict):
        raise ValueError(f"Compiled argument must be an object, found: {data!r}")

    arg_type = data.get("type")
    if arg_type == "constant":
        return ConstantArg(value=str(data.get("value", "")))
    if arg_type == "block":
        return BlockArg(value=[block_from_dict(b) for b in data.get("value") or []])

    raise ValueError(f"Unknown compiled argument type: {arg_type!r}")


def args_from_dict(block_type: str, data: Any) -> BlockArgs:
    """Parse block arguments, choosing the shape from the block type and payload"""
    if data is None:
        return []
    if isinstance(data, list):
        return [arg_from_dict(arg) for arg in data]
    if isinstance(data, dict):
        if block_type == "command_call_service":
            return CallServiceArgs(
                service_id=data.get("service_id"),
                service_action=data.get("service_action"),
                service_call_values=[arg_from_dict(arg) for arg in data.get("service_call_values") or []],
            )
        return MonitorArgs(descriptor=copy.deepcopy(data))

    raise ValueError(f"Block arguments must be a list or an object, found: {data!r}")


def content_from_dict(data: Dict[str, Any]) -> Content:
    """Parse a block or content block from its JSON form"""
    if not isinstance(data, dict):
        raise ValueError(f"Block content must be an object, found: {data!r}")
    if data.get("type"):
        return block_from_dict(data)
    return ContentBlock(contents=[content_from_dict(c) for c in data.get("contents") or []])


def block_from_dict(data: Dict[str, Any]) -> CompiledBlock:
    """Parse a compiled block from its JSON form"""
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise ValueError(f"Compiled block must be an object with a 'type', found: {data!r}")

    block_type = data["type"]
    return CompiledBlock(
        id=data.get("id"),
        type=block_type,
        args=args_from_dict(block_type, data.get("args")),
        contents=[content_from_dict(c) for c in data.get("contents") or []],
    )


def graph_from_dict(data: Sequence[Dict[str, Any]]) -> CompiledFlowGraph:
    """Parse a compiled graph from its JSON form"""
    if not isinstance(data, list):
        raise ValueError("Compiled flow graph must be a JSON array")
    return [block_from_dict(block) for block in data]


def iter_arg_blocks(args: BlockArgs) -> Iterator[CompiledBlock]:
    """Yield the blocks nested directly inside block arguments"""
    if isinstance(args, MonitorArgs):
        return
    values = args.service_call_values if isinstance(args, CallServiceArgs) else args
    for arg in values:
        if isinstance(arg, BlockArg):
            yield from arg.value


def iter_blocks(contents: Sequence[Content]) -> Iterator[CompiledBlock]:
    """Walk every block reachable from a sequence, depth first, parents before children"""
    for content in contents:
        if isinstance(content, CompiledBlock):
            yield content
            yield from iter_blocks(list(iter_arg_blocks(content.args)))
        yield from iter_blocks(content.contents)
