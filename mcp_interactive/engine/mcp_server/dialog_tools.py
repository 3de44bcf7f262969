"""FastMCP registration for the dialog tools.

Exposed:
    ask_user, request_user_confirmation

Each tool forwards its arguments, under their wire names, to
DialogTools.call_tool so validation lives in one place.

No postponed annotations here: FastMCP finds the Context parameter
by its runtime type.
"""
from typing import Any

from mcp.server.fastmcp import FastMCP, Context

from .tool_definitions import (
    ASK_USER,
    REQUEST_USER_CONFIRMATION,
    get_description,
)


def _extract_text(result: dict[str, Any]) -> str:
    """Convert a DialogTools response to plain string.

    DialogTools returns {"content": [{"type": "text", "text": ...}]}.
    FastMCP tool functions return plain strings.
    If is_error is set, raise ValueError so FastMCP marks it as error.
    """
    text = result["content"][0]["text"]
    if result.get("is_error"):
        raise ValueError(text.removeprefix("ERROR: "))
    return text


def _get_dialog_tools(ctx: Context):
    """Get DialogTools from lifespan context."""
    return ctx.request_context.lifespan_context["dialog_tools"]


def register_tools(mcp: FastMCP) -> None:
    """Register the dialog tools with the FastMCP instance."""

    @mcp.tool(name=ASK_USER, description=get_description(ASK_USER))
    async def ask_user(
        projectName: str,
        message: str,
        predefinedOptions: list[str] | None = None,
        ctx: Context = None,
    ) -> str:
        tools = _get_dialog_tools(ctx)
        arguments: dict[str, Any] = {
            "projectName": projectName,
            "message": message,
        }
        if predefinedOptions is not None:
            arguments["predefinedOptions"] = predefinedOptions
        result = await tools.call_tool(ASK_USER, arguments)
        return _extract_text(result)

    @mcp.tool(
        name=REQUEST_USER_CONFIRMATION,
        description=get_description(REQUEST_USER_CONFIRMATION),
    )
    async def request_user_confirmation(
        projectName: str,
        summary: str,
        ctx: Context = None,
    ) -> str:
        tools = _get_dialog_tools(ctx)
        result = await tools.call_tool(
            REQUEST_USER_CONFIRMATION,
            {"projectName": projectName, "summary": summary},
        )
        return _extract_text(result)
