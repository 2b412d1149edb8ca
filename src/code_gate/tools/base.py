"""
Tool contract for agent-mode reviews.

A ReviewTool maps structured arguments to a JSON-compatible result or raises.
The ToolRegistry is the only way the orchestrator reaches tools: it resolves
names (unknown names are a typed failure), validates arguments and converts
every failure into a ToolResult carrying an error, so one broken call never
fails its siblings.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel, ValidationError

from ..models.messages import ToolCall, ToolResult

logger = logging.getLogger(__name__)


class ToolError(Exception):
    """Base class for tool failures reported back to the reviewer."""
    pass


class UnknownToolError(ToolError):
    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class ToolExecutionError(ToolError):
    """A tool ran but could not produce a result (bad path, file too large, ...)."""
    pass


class ReviewTool(ABC):
    """Base class for tools the reviewer may call."""

    name: str = ""
    description: str = ""
    args_model: Type[BaseModel]

    def __init__(self, root: Path):
        self.root = Path(root).resolve()

    def parameters(self) -> Dict[str, Any]:
        """JSON schema of the tool arguments."""
        schema = self.args_model.model_json_schema()
        schema.pop("title", None)
        return schema

    def definition(self) -> Dict[str, Any]:
        """OpenAI-compatible function definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters(),
            },
        }

    def parse_arguments(self, arguments: Dict[str, Any]) -> BaseModel:
        return self.args_model.model_validate(arguments or {})

    async def execute(self, arguments: Dict[str, Any]) -> Any:
        args = self.parse_arguments(arguments)
        # Tool bodies do blocking file and process I/O; keep the event loop free.
        return await asyncio.to_thread(self.run, args)

    @abstractmethod
    def run(self, args: BaseModel) -> Dict[str, Any]:
        ...

    def resolve_path(self, relative: str) -> Path:
        """Resolve a project-relative path, refusing anything outside the root."""
        candidate = (self.root / (relative or ".")).resolve()
        if candidate != self.root and self.root not in candidate.parents:
            raise ToolExecutionError("Access denied: path outside project root")
        return candidate

    def relative(self, path: Path) -> str:
        return path.relative_to(self.root).as_posix()


class ToolRegistry:
    """Name → tool mapping with batch execution."""

    def __init__(self, tools: Optional[Iterable[ReviewTool]] = None):
        self._tools: Dict[str, ReviewTool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: ReviewTool) -> None:
        if not tool.name:
            raise ValueError(f"{type(tool).__name__} has no name")
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> ReviewTool:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def definitions(self) -> List[Dict[str, Any]]:
        return [tool.definition() for tool in self._tools.values()]

    async def execute(self, call: ToolCall) -> ToolResult:
        """Execute one call. Never raises: failures become ToolResult.error."""
        try:
            tool = self.get(call.name)
            result = await tool.execute(call.arguments)
            logger.debug(f"Tool {call.name} ({call.id}) succeeded")
            return ToolResult.success(call, result)
        except ValidationError as e:
            logger.info(f"Tool {call.name} ({call.id}) rejected arguments: {e.error_count()} error(s)")
            return ToolResult.failure(call, f"Invalid arguments for {call.name}: {_format_validation_error(e)}")
        except Exception as e:
            logger.info(f"Tool {call.name} ({call.id}) failed: {e}")
            return ToolResult.failure(call, str(e) or type(e).__name__)

    async def execute_all(self, calls: List[ToolCall]) -> List[ToolResult]:
        """
        Execute a batch concurrently.

        Results come back in request order regardless of completion order.
        """
        if not calls:
            return []
        return list(await asyncio.gather(*(self.execute(call) for call in calls)))


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{location}: {err.get('msg')}")
    return "; ".join(parts)
