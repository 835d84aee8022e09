"""Dialogue orchestration: two providers trade a fixed number of turns on one topic."""

import logging
from collections.abc import Callable

from config.config_loader import PromptsConfig
from wallbounce.memory import ConversationMemory, RunningHistory, StatelessSingleShot
from wallbounce.models import (
    Completed,
    ConversationTurn,
    DialogueOutcome,
    Participant,
    PartialFailure,
    SessionParameters,
    TurnRequest,
)
from wallbounce.providers.base import AIProvider
from wallbounce.transcript import Transcript
from wallbounce.validation import clamp_number, sanitize_text

logger = logging.getLogger(__name__)

MAX_TOPIC_LENGTH = 1000
MIN_ROUNDS = 1
MAX_ROUNDS = 10
DEFAULT_ROUNDS = 3
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0
DEFAULT_TEMPERATURE = 0.8
TURN_MAX_OUTPUT_TOKENS = 1500


class ParticipantUnavailableError(RuntimeError):
    """A participant's provider has no credential; raised before any call is made."""

    def __init__(self, participant: Participant, provider_name: str) -> None:
        self.participant = participant
        self.provider_name = provider_name
        super().__init__(
            f"{provider_name} provider ({participant.value} participant) is not available. "
            "Please configure its API key."
        )


class DialogueEngine:
    """Runs a wall-bounce dialogue between two providers.

    The first participant opens the discussion and, by default, keeps its full
    running history. The second participant answers each of the first's turns
    in a fresh single-shot call. Both strategies can be swapped per
    participant via first_memory / second_memory.
    """

    def __init__(
        self,
        first: AIProvider,
        second: AIProvider,
        prompts: PromptsConfig | None = None,
        first_memory: type[ConversationMemory] = RunningHistory,
        second_memory: type[ConversationMemory] = StatelessSingleShot,
        max_output_tokens: int = TURN_MAX_OUTPUT_TOKENS,
    ) -> None:
        self._providers = {Participant.FIRST: first, Participant.SECOND: second}
        self._prompts = prompts or PromptsConfig()
        self._memory_types = {Participant.FIRST: first_memory, Participant.SECOND: second_memory}
        self._max_output_tokens = max_output_tokens

    def _check_available(self) -> None:
        for participant, provider in self._providers.items():
            if not provider.is_available():
                raise ParticipantUnavailableError(participant, provider.name())

    async def _take_turn(
        self,
        participant: Participant,
        model: str,
        memory: ConversationMemory,
        temperature: float,
    ) -> ConversationTurn:
        content = await self._providers[participant].complete_turn(
            TurnRequest(
                model=model,
                conversation=memory.payload(),
                temperature=temperature,
                max_output_tokens=self._max_output_tokens,
            )
        )
        return ConversationTurn(speaker=participant, content=content)

    async def run(
        self,
        params: SessionParameters,
        on_turn: Callable[[int, ConversationTurn], None] | None = None,
    ) -> DialogueOutcome:
        """Run every round and return the transcript, tagged by how the run ended.

        Args:
            params: Topic, both model names, round count and temperature.
            on_turn: Optional callback invoked after each completed turn.

        Returns:
            Completed when every round ran, PartialFailure when a provider
            call failed mid-run. Both carry the markdown transcript.

        Raises:
            ParticipantUnavailableError: A provider has no credential.
            ValidationError: The topic is missing, empty or too long.
        """
        self._check_available()

        topic = sanitize_text(params.topic, MAX_TOPIC_LENGTH)
        rounds = int(clamp_number(params.rounds, MIN_ROUNDS, MAX_ROUNDS, DEFAULT_ROUNDS))
        temperature = clamp_number(
            params.temperature, MIN_TEMPERATURE, MAX_TEMPERATURE, DEFAULT_TEMPERATURE
        )

        logger.info(
            "Starting wall bounce between %s and %s for %d rounds",
            params.first_model,
            params.second_model,
            rounds,
        )

        memories = {p: memory_type(p) for p, memory_type in self._memory_types.items()}
        first, second = memories[Participant.FIRST], memories[Participant.SECOND]
        log: list[ConversationTurn] = []
        transcript = Transcript(topic)

        first.add_prompt(self._prompts.opening.format(topic=topic))

        for round_number in range(1, rounds + 1):
            try:
                logger.info("Round %d: calling %s", round_number, params.first_model)
                turn = await self._take_turn(Participant.FIRST, params.first_model, first, temperature)
                transcript.add_turn(round_number, params.first_model, turn.content, opens_round=True)
                log.append(turn)
                first.observe(turn)
                second.observe(turn)
                if on_turn:
                    on_turn(round_number, turn)

                second.add_prompt(self._prompts.response.format(previous=turn.content))
                logger.info("Round %d: calling %s", round_number, params.second_model)
                reply = await self._take_turn(Participant.SECOND, params.second_model, second, temperature)
                transcript.add_turn(round_number, params.second_model, reply.content)
                log.append(reply)
                second.observe(reply)
                if on_turn:
                    on_turn(round_number, reply)

                first.add_prompt(self._prompts.continuation.format(response=reply.content))
            except Exception as exc:
                logger.warning(
                    "Wall bounce stopped in round %d after %d turns: %s",
                    round_number,
                    len(log),
                    exc,
                )
                transcript.add_failure(exc)
                return PartialFailure(transcript=transcript.render(), error=exc)

        transcript.add_summary(
            self._prompts.summary.format(
                first_model=params.first_model,
                second_model=params.second_model,
                topic=topic,
                rounds=rounds,
                round_label=f"{rounds} round{'s' if rounds != 1 else ''}",
            )
        )
        logger.info("Wall bounce complete: %d rounds, %d turns", rounds, len(log))
        return Completed(transcript=transcript.render())

    async def conduct_dialogue(self, params: SessionParameters) -> str:
        """Run the dialogue and return only the transcript text."""
        outcome = await self.run(params)
        return outcome.transcript
