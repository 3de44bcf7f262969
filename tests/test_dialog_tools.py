from __future__ import annotations

import asyncio
import json
import sys

import pytest

from mcp_interactive.engine.config import BridgeConfig
from mcp_interactive.engine.errors import (
    DialogValidationError,
    SurfaceSpawnError,
    UnsupportedToolError,
)
from mcp_interactive.engine.mcp_server.tools import DialogTools
from mcp_interactive.engine.session_manager import DialogSessionManager
from mcp_interactive.engine.surfaces.process_surface import (
    ProcessPresentationSurface,
    build_dialog_env,
)


def _tools(surface, **config_overrides) -> DialogTools:
    return DialogTools(
        DialogSessionManager(surface),
        BridgeConfig(**config_overrides),
    )


def _text_of(result: dict) -> str:
    return result["content"][0]["text"]


@pytest.mark.asyncio
async def test_ask_user_with_options_returns_reply(surface) -> None:
    tools = _tools(surface)
    call = asyncio.create_task(tools.call_tool(
        "ask_user",
        {"projectName": "proj", "message": "Pick one", "predefinedOptions": ["a", "b"]},
    ))
    await surface.wait_for_spawns(1)

    params = surface.last_params
    assert params.context_label == "proj"
    assert params.prompt_text == "Pick one"
    assert params.options == ("a", "b")
    assert params.timeout_seconds == 60
    assert params.response_area_height is None

    env = build_dialog_env(params, base_env={})
    assert env["DIALOG_PREDEFINED_OPTIONS"] == '["a","b"]'
    assert env["DIALOG_TIMEOUT"] == "60"

    surface.emit("TEXT_FROM_RENDERER:a")
    result = await call
    assert result == {"content": [{"type": "text", "text": "User replied: a"}]}


@pytest.mark.asyncio
async def test_ask_user_timeout_asks_caller_to_retry(surface) -> None:
    tools = _tools(surface)
    call = asyncio.create_task(
        tools.call_tool("ask_user", {"projectName": "proj", "message": "Anything?"})
    )
    await surface.wait_for_spawns(1)
    assert surface.last_params.options == ()

    surface.emit("DIALOG_TIMEOUT")
    result = await call
    assert "is_error" not in result
    assert _text_of(result) == (
        "User did not reply: Timeout occurred. Retry calling the function."
    )


@pytest.mark.asyncio
async def test_ask_user_uses_configured_default_timeout(surface) -> None:
    tools = _tools(surface, default_timeout_seconds=15)
    call = asyncio.create_task(
        tools.ask_user("proj", "Quick one?")
    )
    await surface.wait_for_spawns(1)
    assert surface.last_params.timeout_seconds == 15
    surface.emit("TEXT_FROM_RENDERER:yes")
    assert _text_of(await call) == "User replied: yes"


@pytest.mark.asyncio
async def test_confirmation_has_no_timeout_and_tall_response_area(surface) -> None:
    tools = _tools(surface)
    call = asyncio.create_task(tools.call_tool(
        "request_user_confirmation",
        {"projectName": "proj", "summary": "Done X"},
    ))
    await surface.wait_for_spawns(1)

    params = surface.last_params
    assert params.timeout_seconds == 0
    assert params.response_area_height == 300
    assert params.options == ()
    env = build_dialog_env(params, base_env={})
    assert env["DIALOG_TIMEOUT"] == "0"
    assert env["DIALOG_TEXTAREA_HEIGHT"] == "300"
    assert json.loads(env["DIALOG_PREDEFINED_OPTIONS"]) == []

    surface.emit("TEXT_FROM_RENDERER:   ")
    assert _text_of(await call) == (
        "User replied with empty input. Retry calling the function."
    )


@pytest.mark.asyncio
async def test_confirmation_height_comes_from_config(surface) -> None:
    tools = _tools(surface, confirmation_textarea_height=420)
    call = asyncio.create_task(tools.request_user_confirmation("proj", "Done"))
    await surface.wait_for_spawns(1)
    assert surface.last_params.response_area_height == 420
    surface.emit("TEXT_FROM_RENDERER:lgtm")
    await call


@pytest.mark.asyncio
async def test_unknown_tool_fails_without_spawning(surface) -> None:
    tools = _tools(surface)
    with pytest.raises(UnsupportedToolError, match="Unknown tool: delete_everything"):
        await tools.call_tool("delete_everything", {"projectName": "proj"})
    assert surface.spawns == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("name", "arguments", "missing"),
    [
        ("ask_user", {"message": "hi"}, "projectName"),
        ("ask_user", {"projectName": "proj"}, "message"),
        ("ask_user", None, "projectName"),
        ("request_user_confirmation", {"projectName": "proj"}, "summary"),
    ],
)
async def test_missing_required_field_fails_without_spawning(
    surface, name, arguments, missing,
) -> None:
    tools = _tools(surface)
    with pytest.raises(DialogValidationError) as excinfo:
        await tools.call_tool(name, arguments)
    assert excinfo.value.field == missing
    assert surface.spawns == []


@pytest.mark.asyncio
async def test_malformed_options_fail_validation(surface) -> None:
    tools = _tools(surface)
    with pytest.raises(DialogValidationError, match="predefinedOptions"):
        await tools.call_tool(
            "ask_user",
            {"projectName": "proj", "message": "hi", "predefinedOptions": "a,b"},
        )
    with pytest.raises(DialogValidationError, match="only strings"):
        await tools.call_tool(
            "ask_user",
            {"projectName": "proj", "message": "hi", "predefinedOptions": ["a", 2]},
        )
    assert surface.spawns == []


@pytest.mark.asyncio
async def test_non_string_message_fails_validation(surface) -> None:
    tools = _tools(surface)
    with pytest.raises(DialogValidationError, match="must be a string"):
        await tools.call_tool("ask_user", {"projectName": "proj", "message": 42})
    assert surface.spawns == []


@pytest.mark.asyncio
async def test_spawn_failure_is_reported_not_raised(surface) -> None:
    surface.fail_with = SurfaceSpawnError(["electron"], "No such file or directory")
    tools = _tools(surface)

    result = await tools.call_tool("ask_user", {"projectName": "proj", "message": "hi"})

    assert result["is_error"] is True
    assert _text_of(result).startswith("ERROR: Failed to show dialog: ")
    assert "No such file or directory" in _text_of(result)


@pytest.mark.asyncio
async def test_unlaunchable_message_is_reported_and_leaves_nothing_pending() -> None:
    surface = ProcessPresentationSurface(
        [sys.executable, "-c", "print('TEXT_FROM_RENDERER:ok')"],
    )
    manager = DialogSessionManager(surface)
    tools = DialogTools(manager, BridgeConfig())

    result = await tools.call_tool(
        "ask_user", {"projectName": "proj", "message": "a\x00b"},
    )

    assert result["is_error"] is True
    assert _text_of(result).startswith("ERROR: Failed to show dialog")
    assert manager.pending_count == 0
    assert not surface.is_running

    follow_up = await asyncio.wait_for(
        tools.call_tool("ask_user", {"projectName": "proj", "message": "ab"}),
        timeout=10,
    )
    assert _text_of(follow_up) == "User replied: ok"
    await manager.shutdown()


@pytest.mark.asyncio
async def test_second_call_supersedes_first(surface) -> None:
    tools = _tools(surface)
    first = asyncio.create_task(
        tools.call_tool("ask_user", {"projectName": "proj", "message": "first?"})
    )
    await surface.wait_for_spawns(1)
    second = asyncio.create_task(
        tools.call_tool("ask_user", {"projectName": "proj", "message": "second?"})
    )
    await surface.wait_for_spawns(2)

    first_result = await first
    assert first_result["is_error"] is True
    assert "superseded" in _text_of(first_result)

    surface.emit("TEXT_FROM_RENDERER:answer two")
    assert _text_of(await second) == "User replied: answer two"


@pytest.mark.asyncio
async def test_surface_exit_without_reply_is_reported(surface) -> None:
    tools = _tools(surface)
    call = asyncio.create_task(
        tools.call_tool("ask_user", {"projectName": "proj", "message": "hi"})
    )
    await surface.wait_for_spawns(1)
    surface.emit("DIALOG_CLOSED")
    surface.exit(1)

    result = await call
    assert result["is_error"] is True
    assert "ended without a reply" in _text_of(result)
