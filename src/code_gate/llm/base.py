from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..models.messages import Message, ReviewerResponse


class BaseReviewer(ABC):
    """
    The remote model that writes reviews.

    `call` drives agent conversations: given the transcript and the tools on
    offer it returns final text and/or tool requests. With an empty tool list
    it must not request tools. `review` is the direct single-shot path.
    """

    @abstractmethod
    async def call(self, messages: List[Message], tools: List[Dict[str, Any]]) -> ReviewerResponse:
        ...

    @abstractmethod
    async def review(self, prompt: str, diff: str) -> str:
        ...
