"""Integration Tests: AgentRunner — async tool-calling loop with streaming SSE.

Invariants:
    - Every run() ends with exactly one done event
    - Token accounting accumulates across steps (cache tokens included)
    - Tool results are fed back as a user turn of tool_result blocks
    - Prompt caching markers sit on system, last tool and last user message

Design Decisions:
    - Mock at Anthropic boundary (MockAnthropicClient), fake dispatch via mock_dispatch
    - max_steps passed per run: no class attribute to patch
"""

import json

from app.config import get_settings
from app.services.agent_runner import AgentRunner

from tests.services.mock_anthropic import (
    MockAnthropicClient,
    text_response,
    tool_response,
    mixed_response,
)

SEARCH_TOOL = {
    "name": "searchExperiences",
    "description": "Search the catalog",
    "input_schema": {"type": "object", "properties": {}},
}


# -- Helpers -------------------------------------------------------------------

async def _collect(runner, dispatch, messages=None, max_steps=3):
    """Collect all SSE events from an agent run."""
    events = []
    async for ev in runner.run(
        system="Tu es l'assistant Okeyo.",
        messages=messages if messages is not None else [
            {"role": "user", "content": "Un riad à Marrakech ?"},
        ],
        tools=[SEARCH_TOOL],
        model="claude-test",
        temperature=0.4,
        max_steps=max_steps,
        dispatch=dispatch,
    ):
        events.append(ev)
    return events


def _events_of_type(events, t):
    return [e for e in events if e["type"] == t]


def _runner(client):
    return AgentRunner(client, get_settings())


# ==============================================================================
# Core Flows
# ==============================================================================


async def test_text_response_yields_agent_text_and_done(mock_dispatch):
    """Text-only end_turn → agent_text + done(error=False)."""
    client = MockAnthropicClient([text_response("Voici trois riads.")])
    events = await _collect(_runner(client), mock_dispatch["dispatch"])

    texts = _events_of_type(events, "agent_text")
    assert texts == [{"type": "agent_text", "data": "Voici trois riads."}]

    done = _events_of_type(events, "done")
    assert len(done) == 1
    assert done[0]["data"]["error"] is False
    assert done[0]["data"]["max_steps_reached"] is False
    assert done[0]["data"]["usage"]["total_tokens"] == 150
    assert events[-1]["type"] == "done"


async def test_leading_whitespace_stripped_from_first_delta(mock_dispatch):
    client = MockAnthropicClient([text_response("\n\n  Bonjour")])
    events = await _collect(_runner(client), mock_dispatch["dispatch"])
    assert _events_of_type(events, "agent_text")[0]["data"] == "Bonjour"


async def test_tool_call_executes_and_loops(mock_dispatch):
    """Tool use → dispatch.execute → loop continues → end_turn."""
    mock_dispatch["results"]["searchExperiences"] = {"success": True, "count": 1}
    client = MockAnthropicClient([
        tool_response("searchExperiences", {"query": "riad"}),
        text_response("J'ai trouvé un riad."),
    ])
    events = await _collect(_runner(client), mock_dispatch["dispatch"])

    tool_calls = _events_of_type(events, "tool_call")
    assert tool_calls == [{
        "type": "tool_call",
        "data": {"tool": "searchExperiences", "tool_use_id": "toolu_searchExperiences_test"},
    }]

    tool_results = _events_of_type(events, "tool_result")
    assert tool_results[0]["data"] == {
        "tool": "searchExperiences", "result": {"success": True, "count": 1},
    }

    assert mock_dispatch["log"] == [{"tool": "searchExperiences", "input": {"query": "riad"}}]
    assert len(client.calls) == 2

    done = _events_of_type(events, "done")
    assert done[0]["data"]["error"] is False


async def test_tool_results_fed_back_as_user_turn(mock_dispatch):
    client = MockAnthropicClient([
        tool_response("searchExperiences", {"query": "riad"}),
        text_response("Fini."),
    ])
    messages = [{"role": "user", "content": "Un riad ?"}]
    await _collect(_runner(client), mock_dispatch["dispatch"], messages=messages)

    assert [m["role"] for m in messages] == ["user", "assistant", "user"]
    block = messages[2]["content"][0]
    assert block["type"] == "tool_result"
    assert block["tool_use_id"] == "toolu_searchExperiences_test"
    assert json.loads(block["content"]) == {"success": True}


async def test_tool_error_yields_tool_error_and_continues(mock_dispatch):
    """Tool returns success False → tool_error SSE → loop continues."""
    mock_dispatch["results"]["createBookingIntent"] = {
        "success": False,
        "error": "User not authenticated. Please sign in to book.",
        "error_code": "AUTHENTICATION_REQUIRED",
        "requires_auth": True,
    }
    client = MockAnthropicClient([
        tool_response("createBookingIntent", {"items": []}),
        text_response("Connectez-vous pour réserver."),
    ])
    events = await _collect(_runner(client), mock_dispatch["dispatch"])

    errors = _events_of_type(events, "tool_error")
    assert errors == [{
        "type": "tool_error",
        "data": {
            "tool": "createBookingIntent",
            "error_code": "AUTHENTICATION_REQUIRED",
            "message": "User not authenticated. Please sign in to book.",
            "requires_auth": True,
        },
    }]
    assert _events_of_type(events, "done")[0]["data"]["error"] is False


async def test_multiple_tools_in_single_response(mock_dispatch):
    client = MockAnthropicClient([
        mixed_response("Je vérifie.", [
            {"name": "getExperienceDetails", "input": {"experience_id": "a"}},
            {"name": "checkAvailability", "input": {"experience_id": "a"}},
        ]),
        text_response("Disponible."),
    ])
    events = await _collect(_runner(client), mock_dispatch["dispatch"])

    assert [c["data"]["tool"] for c in _events_of_type(events, "tool_call")] == [
        "getExperienceDetails", "checkAvailability",
    ]
    assert [e["tool"] for e in mock_dispatch["log"]] == [
        "getExperienceDetails", "checkAvailability",
    ]
    assert len(_events_of_type(events, "tool_result")) == 2


async def test_token_accounting_cumulative_across_steps(mock_dispatch):
    client = MockAnthropicClient([
        tool_response("searchExperiences", {}, tokens=(150, 80), cache=(20, 30)),
        text_response("Fini.", tokens=(100, 50)),
    ])
    runner = _runner(client)
    await _collect(runner, mock_dispatch["dispatch"])

    assert runner.usage == {
        "input_tokens": 150 + 20 + 30 + 100,
        "output_tokens": 130,
        "cache_creation_tokens": 20,
        "cache_read_tokens": 30,
        "total_tokens": 300 + 130,
    }


async def test_prompt_caching_markers(mock_dispatch):
    client = MockAnthropicClient([text_response("Ok.")])
    await _collect(_runner(client), mock_dispatch["dispatch"])

    call = client.calls[0]
    assert call["system"][0]["cache_control"] == {"type": "ephemeral"}
    assert call["tools"][-1]["cache_control"] == {"type": "ephemeral"}
    last_user = call["messages"][-1]["content"][-1]
    assert last_user["cache_control"] == {"type": "ephemeral"}
    assert call["model"] == "claude-test"
    assert call["temperature"] == 0.4


async def test_max_steps_reached(mock_dispatch):
    """Every step asks for a tool → stops after max_steps with max_steps_reached."""
    client = MockAnthropicClient([
        tool_response("searchExperiences", {}),
        tool_response("searchExperiences", {}),
        text_response("Should not reach this."),
    ])
    events = await _collect(_runner(client), mock_dispatch["dispatch"], max_steps=2)

    done = _events_of_type(events, "done")
    assert len(done) == 1
    assert done[0]["data"]["max_steps_reached"] is True
    assert done[0]["data"]["error"] is False
    assert len(client.calls) == 2
