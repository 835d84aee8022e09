"""Per-participant conversation views.

Each participant gets its own view because the same turn carries a
different role depending on who reads it: a participant's own output is
"assistant", the other side's output is "user".
"""

from abc import ABC, abstractmethod

from wallbounce.models import ConversationTurn, Participant


class ConversationMemory(ABC):
    """Role-tagged view of the dialogue as seen by one participant."""

    def __init__(self, owner: Participant) -> None:
        self.owner = owner
        self._entries: list[dict] = []

    @property
    def entries(self) -> list[dict]:
        return [dict(e) for e in self._entries]

    def _role_for(self, turn: ConversationTurn) -> str:
        return "assistant" if turn.speaker == self.owner else "user"

    @abstractmethod
    def add_prompt(self, content: str) -> None:
        """Add an engine-authored instruction addressed to the owner."""
        ...

    @abstractmethod
    def observe(self, turn: ConversationTurn) -> None:
        """Record a turn spoken by either participant."""
        ...

    @abstractmethod
    def payload(self) -> list[dict] | str:
        """What to send to the owner's provider for its next turn."""
        ...


class RunningHistory(ConversationMemory):
    """Keeps every entry; each call sees the whole discussion so far."""

    def add_prompt(self, content: str) -> None:
        self._entries.append({"role": "user", "content": content})

    def observe(self, turn: ConversationTurn) -> None:
        self._entries.append({"role": self._role_for(turn), "content": turn.content})

    def payload(self) -> list[dict]:
        return self.entries


class StatelessSingleShot(ConversationMemory):
    """Keeps only what the next single-turn call is anchored on.

    A turn from the other participant or a new prompt replaces the view, so
    context never grows across rounds.
    """

    def add_prompt(self, content: str) -> None:
        self._entries = [{"role": "user", "content": content}]

    def observe(self, turn: ConversationTurn) -> None:
        entry = {"role": self._role_for(turn), "content": turn.content}
        if turn.speaker == self.owner:
            self._entries.append(entry)
        else:
            self._entries = [entry]

    def payload(self) -> str:
        prompts = [e["content"] for e in self._entries if e["role"] == "user"]
        if not prompts:
            raise ValueError(f"No prompt queued for participant {self.owner.value}")
        return prompts[-1]
