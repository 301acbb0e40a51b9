from dataclasses import dataclass
from typing import Any, Literal, Union


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class Parsed:
    value: Any


@dataclass(frozen=True)
class Malformed:
    raw_text: str


@dataclass(frozen=True)
class Empty:
    reason: str = "empty_response"


LLMResult = Union[Parsed, Malformed, Empty]
