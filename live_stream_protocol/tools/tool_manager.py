"""
Tool Manager

Registry of client-side tools the model may call in BIDI mode.

Flow:
    1. Tools are registered with a google-genai FunctionDeclaration and a handler
    2. connect() prepends get_tool_declarations() to the session's tools
    3. The server sends a toolCall record; the client hands the first
       function call to handle_tool_call()
    4. The returned tool response (or a correlated error response) is sent
       back with send_tool_response()

Handlers may be sync or async. They receive the call arguments as keyword
arguments, plus `function_call` when their signature asks for it.
"""

import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from google.genai import types
from loguru import logger

from ..result import Error, Ok, Result


ToolHandler = Callable[..., Any]


@dataclass(frozen=True)
class RegisteredTool:
    declaration: types.FunctionDeclaration
    handler: ToolHandler


def _to_function_call(function_call: Mapping[str, Any] | types.FunctionCall) -> types.FunctionCall:
    if isinstance(function_call, types.FunctionCall):
        return function_call
    args = function_call.get("args")
    return types.FunctionCall(
        id=function_call.get("id"),
        name=function_call.get("name"),
        args=dict(args) if isinstance(args, Mapping) else {},
    )


class ToolManager:
    """Registers tools and executes function calls against them."""

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    def register(self, declaration: types.FunctionDeclaration, handler: ToolHandler) -> None:
        """
        Register a tool.

        Args:
            declaration: Declaration sent to the model (its name is the lookup key)
            handler: Callable executed for calls to this tool
        """
        if not declaration.name:
            msg = "FunctionDeclaration.name is required"
            raise ValueError(msg)
        if declaration.name in self._tools:
            logger.warning(f"[TOOLS] Replacing existing tool: {declaration.name}")
        self._tools[declaration.name] = RegisteredTool(declaration, handler)
        logger.info(f"[TOOLS] Registered tool: {declaration.name}")

    def tool(self, declaration: types.FunctionDeclaration) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator form of register()."""

        def decorator(handler: ToolHandler) -> ToolHandler:
            self.register(declaration, handler)
            return handler

        return decorator

    def unregister(self, name: str) -> bool:
        if self._tools.pop(name, None) is None:
            logger.warning(f"[TOOLS] No tool to unregister: {name}")
            return False
        logger.info(f"[TOOLS] Unregistered tool: {name}")
        return True

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def get_tool_declarations(self) -> list[dict[str, Any]]:
        """Session `tools` entries for every registered tool (empty when none)."""
        if not self._tools:
            return []
        declarations = [
            tool.declaration.model_dump(mode="json", by_alias=True, exclude_none=True)
            for tool in self._tools.values()
        ]
        return [{"functionDeclarations": declarations}]

    async def handle_tool_call(
        self, function_call: Mapping[str, Any] | types.FunctionCall
    ) -> Result[dict[str, Any], str]:
        """
        Execute one function call.

        Returns:
            Ok(tool_response) shaped {"functionResponses": [{"id", "name", "response"}]},
            Error(str) when the tool is unknown or its handler raised
        """
        fc = _to_function_call(function_call)
        registered = self._tools.get(fc.name or "")
        if registered is None:
            return Error(f"Tool function '{fc.name}' not found")

        args = dict(fc.args or {})
        logger.info(f"[TOOLS] Executing {fc.name}(id={fc.id}, args={args})")

        handler = registered.handler
        if "function_call" in inspect.signature(handler).parameters:
            args = {**args, "function_call": fc}

        # Handler failures become Error so the caller can answer the model
        try:
            output = handler(**args)
            if inspect.isawaitable(output):
                output = await output
        except Exception as e:
            logger.error(f"[TOOLS] Tool {fc.name} failed: {e!r}")
            return Error(f"{type(e).__name__}: {e}")

        response = output if isinstance(output, dict) else {"output": output}
        function_response = types.FunctionResponse(id=fc.id, name=fc.name, response=response)
        return Ok(
            {
                "functionResponses": [
                    function_response.model_dump(mode="json", by_alias=True, exclude_none=True)
                ]
            }
        )
