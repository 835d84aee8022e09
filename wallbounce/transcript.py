"""Append-only markdown transcript for one dialogue run."""


class Transcript:
    """Markdown sections accumulated while a dialogue runs.

    Sections are only ever appended, so rendering at any point yields every
    section written so far.
    """

    def __init__(self, topic: str) -> None:
        self._sections: list[str] = [f"# Wall Bounce Discussion: {topic}\n"]

    def __len__(self) -> int:
        return len(self._sections)

    def add_turn(self, round_number: int, model: str, content: str, *, opens_round: bool = False) -> None:
        parts = []
        if opens_round:
            parts.append(f"## Round {round_number}\n")
        parts.append(f"### {model}:\n{content}\n")
        self._sections.append("\n".join(parts))

    def add_summary(self, text: str) -> None:
        self._sections.append(f"## Summary\n\n{text}\n")

    def add_failure(self, error: Exception) -> None:
        self._sections.append(
            "## Error\n\n"
            f"The wall-bounce session stopped early: {error}\n\n"
            "The discussion above is everything produced before the failure.\n"
        )

    def render(self) -> str:
        return "\n".join(self._sections)
