"""
Unit tests for the LangChain reviewer adapter and the LLM factory.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from code_gate.llm.llm_factory import (
    LLMFactory,
    MissingApiKeyError,
    UnsupportedModelError,
    UnsupportedProviderError,
    check_provider_reachable,
)
from code_gate.llm.reviewer import (
    LangChainReviewer,
    extract_llm_response_text,
    parse_tool_calls,
    to_langchain_messages,
)
from code_gate.models.config import ReviewConfig
from code_gate.models.messages import Message, ToolCall, ToolResult

TOOLS = [{"type": "function", "function": {"name": "read_file", "description": "", "parameters": {}}}]


class TestMessageConversion:

    def test_roles_are_mapped(self):
        call = ToolCall(id="c1", name="read_file", arguments={"path": "a.py"})
        messages = [
            Message.system("sys"),
            Message.user("diff"),
            Message.assistant(None, [call]),
            Message.tool(ToolResult.success(call, {"content": "x"}), '{"content": "x"}'),
        ]

        converted = to_langchain_messages(messages)

        assert [type(m) for m in converted] == [SystemMessage, HumanMessage, AIMessage, ToolMessage]
        assert converted[2].content == ""
        assert converted[2].tool_calls[0]["id"] == "c1"
        assert converted[2].tool_calls[0]["name"] == "read_file"
        assert converted[2].tool_calls[0]["args"] == {"path": "a.py"}
        assert converted[3].tool_call_id == "c1"
        assert converted[3].content == '{"content": "x"}'


class TestResponseParsing:

    def test_extract_text_from_list_content(self):
        response = MagicMock()
        response.content = [{"type": "text", "text": "Hello "}, "world"]
        assert extract_llm_response_text(response) == "Hello world"

    def test_extract_text_from_none(self):
        response = MagicMock()
        response.content = None
        assert extract_llm_response_text(response) == ""

    def test_parse_tool_calls_generates_missing_ids(self):
        response = AIMessage(content="", tool_calls=[
            {"id": "abc", "name": "read_file", "args": {"path": "a.py"}},
        ])
        response.tool_calls[0]["id"] = None
        calls = parse_tool_calls(response)
        assert calls[0].id.startswith("call_")
        assert calls[0].arguments == {"path": "a.py"}


class TestLangChainReviewer:

    @pytest.mark.asyncio
    async def test_call_binds_tools_and_parses_requests(self):
        bound = MagicMock()
        bound.ainvoke = AsyncMock(return_value=AIMessage(
            content="let me look",
            tool_calls=[{"id": "t1", "name": "read_file", "args": {"path": "a.py"}}],
        ))
        llm = MagicMock()
        llm.bind_tools.return_value = bound

        response = await LangChainReviewer(llm).call([Message.user("hi")], TOOLS)

        llm.bind_tools.assert_called_once_with(TOOLS)
        assert response.content == "let me look"
        assert response.tool_calls == [ToolCall(id="t1", name="read_file", arguments={"path": "a.py"})]

    @pytest.mark.asyncio
    async def test_call_without_tools_never_requests_tools(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=AIMessage(
            content="final",
            tool_calls=[{"id": "t1", "name": "read_file", "args": {}}],
        ))

        response = await LangChainReviewer(llm).call([Message.user("hi")], [])

        llm.bind_tools.assert_not_called()
        assert response.content == "final"
        assert response.tool_calls == []

    @pytest.mark.asyncio
    async def test_empty_text_becomes_none(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=AIMessage(content=""))
        response = await LangChainReviewer(llm).call([Message.user("hi")], [])
        assert response.content is None

    @pytest.mark.asyncio
    async def test_direct_review(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=AIMessage(content="Looks fine"))

        result = await LangChainReviewer(llm).review("Be strict", "diff --git a/x b/x")

        assert result == "Looks fine"
        sent = llm.ainvoke.call_args[0][0]
        assert isinstance(sent[0], SystemMessage) and sent[0].content == "Be strict"
        assert "diff --git a/x b/x" in sent[1].content


class TestLLMFactory:

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("DEEPSEEK_API_KEY", "OPENAI_API_KEY", "OPENROUTER_API_KEY", "OLLAMA_API_KEY"):
            monkeypatch.delenv(name, raising=False)

    def test_unsupported_provider(self):
        with pytest.raises(UnsupportedProviderError):
            LLMFactory.create_llm(ReviewConfig(provider="gemini"))

    def test_missing_api_key(self):
        with pytest.raises(MissingApiKeyError, match="DEEPSEEK_API_KEY"):
            LLMFactory.create_llm(ReviewConfig(provider="deepseek"))

    def test_gemini_thinking_model_rejected(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "or-key")
        config = ReviewConfig.model_validate({
            "provider": "openrouter",
            "providerOptions": {"openrouter": {"model": "google/gemini-2.0-flash-thinking-exp"}},
        })
        with pytest.raises(UnsupportedModelError, match="non-thinking"):
            LLMFactory.create_llm(config)

    def test_ollama_uses_openai_compatible_endpoint(self):
        with patch("code_gate.llm.llm_factory.ChatOpenAI") as chat:
            LLMFactory.create_llm(ReviewConfig(provider="ollama"))

        kwargs = chat.call_args.kwargs
        assert kwargs["base_url"] == "http://localhost:11434/v1"
        assert kwargs["model_name"] == "qwen2.5-coder"
        assert kwargs["api_key"]

    def test_deepseek_with_key(self, monkeypatch):
        monkeypatch.setenv("DEEPSEEK_API_KEY", "ds-key")
        with patch("code_gate.llm.llm_factory.ChatOpenAI") as chat:
            LLMFactory.create_llm(ReviewConfig(provider="deepseek"))

        kwargs = chat.call_args.kwargs
        assert kwargs["api_key"] == "ds-key"
        assert kwargs["base_url"] == "https://api.deepseek.com"
        assert kwargs["model_name"] == "deepseek-chat"
        assert kwargs["temperature"] == 0.0


def test_check_provider_reachable():
    import httpx

    with patch("code_gate.llm.llm_factory.httpx.get", return_value=MagicMock()):
        assert check_provider_reachable("http://localhost:11434") is True
    with patch("code_gate.llm.llm_factory.httpx.get", side_effect=httpx.ConnectError("refused")):
        assert check_provider_reachable("http://localhost:11434") is False
