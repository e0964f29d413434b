"""Prompt templates for grounded chat."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

SYSTEM_PROMPT = """\
You are a helpful assistant that answers questions about the user's uploaded documents.
Use the document context provided in the conversation when it is relevant.
If the context does not contain enough information, say so honestly and
answer from general knowledge only when that is clearly appropriate.
"""

CONTEXT_HEADER = "Context:\n"


def build_chat_prompt(
    system_prompt: str,
    user_message: str,
    context_segments: Sequence[str] = (),
) -> list[BaseMessage]:
    """Assemble the messages for one grounded chat completion.

    The system instruction comes first, then the user's message, then each
    non-empty context segment as its own system message.
    """
    messages: list[BaseMessage] = [
        SystemMessage(content=system_prompt),
        HumanMessage(content=user_message),
    ]
    messages.extend(
        SystemMessage(content=CONTEXT_HEADER + segment)
        for segment in context_segments
        if segment
    )
    return messages
