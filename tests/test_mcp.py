"""MCP tool tests, through an in-memory FastMCP client."""

import json

import pytest
import pytest_asyncio
from fastmcp import Client
from fastmcp.exceptions import ToolError
from starlette.routing import Mount

from skillstore.main import app
from skillstore.mcp import skills as skills_mcp


@pytest_asyncio.fixture
async def mcp_client(session_factory, monkeypatch):
    monkeypatch.setattr(skills_mcp, "async_session", session_factory)
    async with Client(skills_mcp.mcp) as client:
        yield client


async def _call(client: Client, tool: str, arguments: dict) -> dict:
    result = await client.call_tool(tool, arguments)
    return json.loads(result.content[0].text)


def test_mounted_under_mcp():
    assert any(isinstance(r, Mount) and r.path == "/mcp" for r in app.routes)


@pytest.mark.asyncio
async def test_tools_list(mcp_client: Client):
    tools = await mcp_client.list_tools()
    assert {t.name for t in tools} == {
        "skill_create",
        "skill_update",
        "skill_list",
        "skill_get",
        "skill_get_file",
    }
    create = next(t for t in tools if t.name == "skill_create")
    assert set(create.inputSchema["required"]) == {"name", "files"}


@pytest.mark.asyncio
async def test_create_update_and_read(mcp_client: Client):
    created = await _call(
        mcp_client,
        "skill_create",
        {"name": "demo", "files": [{"path": "main.py", "content": "print(1)"}]},
    )
    assert created["version"]["version_number"] == 1
    assert created["version"]["created_by"] == "ai"

    updated = await _call(
        mcp_client,
        "skill_update",
        {
            "skill_id": "demo",
            "file_changes": [{"type": "update", "path": "main.py", "content": "print(2)"}],
        },
    )
    assert updated["version"]["version_number"] == 2
    assert updated["version"]["created_by"] == "ai"

    latest = await _call(mcp_client, "skill_get_file", {"skill_id": "demo", "path": "main.py"})
    first = await _call(
        mcp_client, "skill_get_file", {"skill_id": "demo", "path": "main.py", "version": 1}
    )
    assert latest["content"] == "print(2)"
    assert first["content"] == "print(1)"

    skill = await _call(mcp_client, "skill_get", {"skill_id": created["id"]})
    assert skill["version"]["version_number"] == 2


@pytest.mark.asyncio
async def test_skill_list_is_minimal_by_default(mcp_client: Client):
    await _call(
        mcp_client,
        "skill_create",
        {"name": "demo", "description": "Demo", "files": [{"path": "SKILL.md", "content": "#"}]},
    )
    listing = await _call(mcp_client, "skill_list", {})
    assert listing == {"skills": [{"name": "demo", "description": "Demo"}], "count": 1}

    detailed = await _call(mcp_client, "skill_list", {"detailed": True})
    assert detailed["skills"][0]["latest_version"] == 1


@pytest.mark.asyncio
async def test_engine_errors_are_tool_errors(mcp_client: Client):
    with pytest.raises(ToolError, match="NOT_FOUND: Skill not found"):
        await mcp_client.call_tool("skill_get", {"skill_id": "ghost"})

    with pytest.raises(ToolError, match="VALIDATION_ERROR: At least one file is required"):
        await mcp_client.call_tool("skill_create", {"name": "empty", "files": []})

    await _call(mcp_client, "skill_create", {"name": "dup", "files": [{"path": "a", "content": ""}]})
    with pytest.raises(ToolError, match='CONFLICT: Skill with name "dup" already exists'):
        await mcp_client.call_tool("skill_create", {"name": "dup", "files": [{"path": "a", "content": ""}]})


@pytest.mark.asyncio
async def test_bad_arguments_are_rejected(mcp_client: Client):
    with pytest.raises(ToolError):
        await mcp_client.call_tool("skill_create", {"name": "x"})
    with pytest.raises(ToolError):
        await mcp_client.call_tool("skill_get", {})
    with pytest.raises(ToolError):
        await mcp_client.call_tool(
            "skill_update", {"skill_id": "x", "file_changes": [{"type": "rename", "path": "a"}]}
        )


@pytest.mark.asyncio
async def test_unknown_tool(mcp_client: Client):
    with pytest.raises(ToolError):
        await mcp_client.call_tool("skill_delete", {})
