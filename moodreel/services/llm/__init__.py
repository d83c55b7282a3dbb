"""LLM prompt construction and stream relaying."""

from moodreel.services.llm.prompt import build_chat_completion
from moodreel.services.llm.relay import StreamRelay

__all__ = [
    "StreamRelay",
    "build_chat_completion",
]
