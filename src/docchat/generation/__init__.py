"""
Generation — the chat-model collaborator that writes the final answer.

Public API
----------
- :func:`get_llm` — configured LangChain chat model.
- :class:`ChatGenerator` — ``complete(system_prompt, user_message, context_segments)``.
"""

from docchat.generation.llm import ChatGenerator, get_llm

__all__ = ["ChatGenerator", "get_llm"]
