"""
Reviewer backed by a LangChain chat model.
"""
import logging
import uuid
from typing import Any, Dict, List

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage

from ..models.messages import Message, ReviewerResponse, ToolCall
from ..utils.prompt_builder import PromptBuilder
from .base import BaseReviewer

logger = logging.getLogger(__name__)


def extract_llm_response_text(response: Any) -> str:
    """
    Extract text content from LLM response, handling different response formats.
    Some LLM providers return content as a list of objects instead of a string.
    """
    if hasattr(response, 'content'):
        content = response.content
        if isinstance(content, list):
            text_parts = []
            for item in content:
                if isinstance(item, str):
                    text_parts.append(item)
                elif isinstance(item, dict):
                    if 'text' in item:
                        text_parts.append(item['text'])
                    elif 'content' in item:
                        text_parts.append(item['content'])
                elif hasattr(item, 'text'):
                    text_parts.append(item.text)
            return "".join(text_parts)
        return str(content) if content is not None else ""
    return str(response)


def to_langchain_messages(messages: List[Message]) -> List[BaseMessage]:
    converted: List[BaseMessage] = []
    for message in messages:
        content = message.content or ""
        if message.role == "system":
            converted.append(SystemMessage(content=content))
        elif message.role == "user":
            converted.append(HumanMessage(content=content))
        elif message.role == "assistant":
            converted.append(AIMessage(
                content=content,
                tool_calls=[
                    {"id": call.id, "name": call.name, "args": dict(call.arguments)}
                    for call in message.tool_calls
                ],
            ))
        elif message.role == "tool":
            converted.append(ToolMessage(
                content=content,
                tool_call_id=message.tool_call_id or "",
                name=message.name,
            ))
        else:
            raise ValueError(f"Unsupported message role: {message.role}")
    return converted


def parse_tool_calls(response: Any) -> List[ToolCall]:
    calls = []
    for raw in getattr(response, "tool_calls", None) or []:
        call_id = raw.get("id") or f"call_{uuid.uuid4().hex[:12]}"
        args = raw.get("args")
        calls.append(ToolCall(
            id=call_id,
            name=raw.get("name", ""),
            arguments=args if isinstance(args, dict) else {},
        ))
    return calls


class LangChainReviewer(BaseReviewer):
    """Adapts a LangChain chat model to the reviewer contract."""

    def __init__(self, llm: BaseChatModel):
        self.llm = llm

    async def call(self, messages: List[Message], tools: List[Dict[str, Any]]) -> ReviewerResponse:
        # Without bound tools the model can only answer in text.
        runnable = self.llm.bind_tools(tools) if tools else self.llm
        response = await runnable.ainvoke(to_langchain_messages(messages))

        tool_calls = parse_tool_calls(response) if tools else []
        text = extract_llm_response_text(response)
        logger.debug(f"Reviewer replied: {len(text)} chars, {len(tool_calls)} tool call(s)")
        return ReviewerResponse(content=text or None, tool_calls=tool_calls)

    async def review(self, prompt: str, diff: str) -> str:
        response = await self.llm.ainvoke([
            SystemMessage(content=prompt),
            HumanMessage(content=PromptBuilder.build_user_prompt(diff)),
        ])
        return extract_llm_response_text(response)
