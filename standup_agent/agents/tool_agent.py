"""
Tool Calling Agent - runs a chat model with function tools until it answers.
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..services.llm_provider import ChatTurn, decode_arguments
from ..utils.logging import get_logger

logger = get_logger(__name__)

ToolHandler = Callable[[Dict[str, Any]], Awaitable[Optional[str]]]

EMPTY_PARAMETERS: Dict[str, Any] = {"type": "object", "properties": {}}


@dataclass
class FunctionTool:
    name: str
    description: str
    handler: ToolHandler
    parameters: Dict[str, Any] = field(default_factory=lambda: dict(EMPTY_PARAMETERS))

    def to_schema(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolCallingAgent:
    """
    Sends one user message to the model with the registered tools.

    Each tool call the model requests is run and its result fed back, until
    the model replies without tool calls or max_iterations is reached.
    """

    def __init__(self, llm: Any, instructions: str, max_iterations: int = 5):
        self.llm = llm
        self.instructions = instructions
        self.max_iterations = max_iterations
        self.tools: Dict[str, FunctionTool] = {}

    def function(
        self,
        name: str,
        description: str,
        handler: ToolHandler,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> "ToolCallingAgent":
        self.tools[name] = FunctionTool(
            name=name,
            description=description,
            handler=handler,
            parameters=parameters or dict(EMPTY_PARAMETERS),
        )
        return self

    async def _run_tool(self, name: str, raw_arguments: str) -> str:
        tool = self.tools.get(name)
        if tool is None:
            logger.warning(f"Model requested unknown tool: {name}")
            return f"Unknown function: {name}"

        arguments = decode_arguments(raw_arguments)
        logger.info(f"Running tool {name} with {arguments}")
        result = await tool.handler(arguments)
        return result if result is not None else "done"

    async def send(self, text: str) -> Optional[str]:
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": self.instructions},
            {"role": "user", "content": text},
        ]
        schemas = [tool.to_schema() for tool in self.tools.values()]

        turn = ChatTurn()
        for _ in range(self.max_iterations):
            turn = await self.llm.complete_with_tools(messages, schemas)
            if not turn.tool_calls:
                return turn.content

            messages.append(turn.to_message())
            for call in turn.tool_calls:
                content = await self._run_tool(call.name, call.arguments)
                messages.append({"role": "tool", "tool_call_id": call.id, "content": content})

        logger.warning(f"Tool loop stopped after {self.max_iterations} iterations")
        return turn.content
