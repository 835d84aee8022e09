"""Pure dataclasses for the wall-bounce dialogue pipeline. No logic, no deps."""

from dataclasses import dataclass
from enum import Enum


class Participant(str, Enum):
    FIRST = "first"
    SECOND = "second"


@dataclass(frozen=True)
class ConversationTurn:
    speaker: Participant
    content: str


@dataclass
class SessionParameters:
    topic: str
    first_model: str       # participant A, opens the discussion
    second_model: str      # participant B, responds to A each round
    rounds: int = 3
    temperature: float = 0.8


@dataclass
class TurnRequest:
    model: str
    conversation: list[dict] | str   # role-tagged entries or a single prompt
    temperature: float | None = None
    max_output_tokens: int | None = None


@dataclass
class Completed:
    transcript: str


@dataclass
class PartialFailure:
    transcript: str
    error: Exception


DialogueOutcome = Completed | PartialFailure
