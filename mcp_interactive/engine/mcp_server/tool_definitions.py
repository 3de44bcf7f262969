"""Static descriptions of the tools this server exposes."""
from __future__ import annotations

from typing import Any

ASK_USER = "ask_user"
REQUEST_USER_CONFIRMATION = "request_user_confirmation"

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": ASK_USER,
        "description": (
            "Prompts the user with a question via a pop-up command prompt "
            "and awaits their interactive response."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "projectName": {
                    "type": "string",
                    "description": "Identifies the context/project making the request",
                },
                "message": {
                    "type": "string",
                    "description": (
                        "The specific question for the user. "
                        "Supports Markdown formatting."
                    ),
                },
                "predefinedOptions": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": (
                        "Predefined options for the user to choose from (optional)"
                    ),
                },
            },
            "required": ["projectName", "message"],
        },
    },
    {
        "name": REQUEST_USER_CONFIRMATION,
        "description": (
            "Requests final confirmation or feedback from the user about a "
            "work summary. No timeout and no predefined options."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "projectName": {
                    "type": "string",
                    "description": "Identifies the context/project making the request",
                },
                "summary": {
                    "type": "string",
                    "description": (
                        "Summary of the work completed to present to the user. "
                        "Supports Markdown formatting."
                    ),
                },
            },
            "required": ["projectName", "summary"],
        },
    },
]

TOOLS_BY_NAME: dict[str, dict[str, Any]] = {
    tool["name"]: tool for tool in TOOL_DEFINITIONS
}


def get_tool_definition(name: str) -> dict[str, Any] | None:
    return TOOLS_BY_NAME.get(name)


def get_description(name: str) -> str:
    return TOOLS_BY_NAME[name]["description"]


def get_required_fields(name: str) -> list[str]:
    return list(TOOLS_BY_NAME[name]["inputSchema"].get("required", []))
