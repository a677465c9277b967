"""
Tests for the function-calling loop and the LLM provider helpers.
"""
import pytest

from standup_agent.agents.tool_agent import ToolCallingAgent
from standup_agent.config import TestingConfig
from standup_agent.services.llm_provider import ChatTurn, LLMProvider, decode_arguments

from conftest import FakeLLM, tool_turn


class TestToolCallingAgent:
    pytestmark = pytest.mark.asyncio

    async def test_runs_requested_tool_and_feeds_result_back(self):
        llm = FakeLLM([tool_turn("greet", name="Alice"), ChatTurn(content="Said hello")])
        seen = []

        async def greet(args):
            seen.append(args)
            return f"hello {args['name']}"

        agent = ToolCallingAgent(llm, "Be nice").function("greet", "Greets someone", greet)
        reply = await agent.send("say hi to Alice")

        assert reply == "Said hello"
        assert seen == [{"name": "Alice"}]
        second_request = llm.tool_requests[1]["messages"]
        assert second_request[0] == {"role": "system", "content": "Be nice"}
        assert second_request[-1]["role"] == "tool"
        assert second_request[-1]["content"] == "hello Alice"

    async def test_tool_schemas_are_sent(self):
        llm = FakeLLM()
        parameters = {"type": "object", "properties": {"item": {"type": "string"}}, "required": ["item"]}

        async def noop(args):
            return None

        agent = ToolCallingAgent(llm, "x")
        agent.function("addItem", "Adds an item", noop, parameters)
        agent.function("listItems", "Lists items", noop)
        await agent.send("hello")

        tools = llm.tool_requests[0]["tools"]
        assert [t["function"]["name"] for t in tools] == ["addItem", "listItems"]
        assert tools[0]["function"]["parameters"] == parameters
        assert tools[1]["function"]["parameters"] == {"type": "object", "properties": {}}

    async def test_unknown_tool_and_empty_result(self):
        llm = FakeLLM([tool_turn("missing"), tool_turn("quiet"), ChatTurn(content="fine")])

        async def quiet(args):
            return None

        agent = ToolCallingAgent(llm, "x").function("quiet", "Returns nothing", quiet)
        await agent.send("go")

        tool_messages = [m for m in llm.tool_requests[2]["messages"] if m["role"] == "tool"]
        assert [m["content"] for m in tool_messages] == ["Unknown function: missing", "done"]

    async def test_stops_after_max_iterations(self):
        llm = FakeLLM([tool_turn("loop") for _ in range(10)])
        calls = []

        async def loop(args):
            calls.append(args)
            return "again"

        agent = ToolCallingAgent(llm, "x", max_iterations=3).function("loop", "Loops", loop)
        reply = await agent.send("go")

        assert reply is None
        assert len(calls) == 3
        assert len(llm.tool_requests) == 3


class TestLLMProvider:

    def test_detects_provider_from_settings(self):
        assert LLMProvider(TestingConfig()).provider == "openai"
        assert LLMProvider(TestingConfig(openai_api_key="gsk_abc")).provider == "groq"
        ollama = LLMProvider(TestingConfig(use_ollama=True, ollama_model="llama3.2"))
        assert ollama.provider == "ollama"
        assert ollama.model == "llama3.2"

    def test_decode_arguments(self):
        assert decode_arguments('{"a": 1}') == {"a": 1}
        assert decode_arguments("not json") == {}
        assert decode_arguments("[1, 2]") == {}
        assert decode_arguments(None) == {}
