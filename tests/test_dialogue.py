"""Tests for wallbounce/dialogue.py."""

from unittest.mock import AsyncMock

import pytest

from config.config_loader import PromptsConfig
from wallbounce.dialogue import DialogueEngine, ParticipantUnavailableError
from wallbounce.memory import RunningHistory
from wallbounce.models import Completed, Participant, PartialFailure, SessionParameters
from wallbounce.providers.base import UpstreamError
from wallbounce.validation import EmptyAfterSanitizationError, InputTooLongError, InvalidInputError
from tests.conftest import MockProvider


@pytest.fixture
def engine(first_provider, second_provider, sample_prompts_config) -> DialogueEngine:
    return DialogueEngine(first_provider, second_provider, prompts=sample_prompts_config)


def _requests(provider: MockProvider):
    return [c.args[0] for c in provider.complete_turn.call_args_list]


async def test_two_round_discussion(engine, first_provider, second_provider, sample_params):
    outcome = await engine.run(sample_params)

    assert isinstance(outcome, Completed)
    text = outcome.transcript
    assert text.startswith("# Wall Bounce Discussion: Database performance")
    assert text.count("## Round ") == 2
    assert "## Round 1" in text and "## Round 2" in text
    assert "gpt-4o" in text and "gemini-2.5-pro" in text
    summary = text[text.index("## Summary"):]
    assert "Database performance" in summary
    assert "2 rounds" in summary
    assert first_provider.complete_turn.await_count == 2
    assert second_provider.complete_turn.await_count == 2


async def test_conduct_dialogue_returns_text(engine, sample_params):
    text = await engine.conduct_dialogue(sample_params)
    assert isinstance(text, str)
    assert "## Summary" in text


async def test_first_participant_keeps_running_history(first_provider, second_provider, sample_prompts_config, sample_params):
    first_provider.complete_turn = AsyncMock(side_effect=["A1", "A2"])
    second_provider.complete_turn = AsyncMock(side_effect=["B1", "B2"])
    engine = DialogueEngine(first_provider, second_provider, prompts=sample_prompts_config)

    await engine.run(sample_params)

    first_round, second_round = _requests(first_provider)
    assert first_round.conversation == [
        {"role": "user", "content": "Open the discussion on: Database performance"},
    ]
    assert second_round.conversation == [
        {"role": "user", "content": "Open the discussion on: Database performance"},
        {"role": "assistant", "content": "A1"},
        {"role": "user", "content": 'The other expert said: "B1". Continue.'},
    ]
    assert first_round.model == "gpt-4o"


async def test_second_participant_gets_single_shot_prompt(first_provider, second_provider, sample_prompts_config, sample_params):
    first_provider.complete_turn = AsyncMock(side_effect=["A1", "A2"])
    second_provider.complete_turn = AsyncMock(side_effect=["B1", "B2"])
    engine = DialogueEngine(first_provider, second_provider, prompts=sample_prompts_config)

    await engine.run(sample_params)

    requests = _requests(second_provider)
    assert [r.conversation for r in requests] == ['Respond to: "A1"', 'Respond to: "A2"']
    assert all(r.model == "gemini-2.5-pro" for r in requests)


async def test_second_memory_strategy_is_configurable(first_provider, second_provider, sample_prompts_config, sample_params):
    first_provider.complete_turn = AsyncMock(side_effect=["A1", "A2"])
    second_provider.complete_turn = AsyncMock(side_effect=["B1", "B2"])
    engine = DialogueEngine(
        first_provider, second_provider, prompts=sample_prompts_config, second_memory=RunningHistory
    )

    await engine.run(sample_params)

    last = _requests(second_provider)[-1].conversation
    assert isinstance(last, list)
    assert {"role": "assistant", "content": "B1"} in last
    assert last[-1] == {"role": "user", "content": 'Respond to: "A2"'}


async def test_sampling_values_passed_to_both(engine, first_provider, second_provider, sample_params):
    await engine.run(sample_params)
    for request in _requests(first_provider) + _requests(second_provider):
        assert request.temperature == 0.8
        assert request.max_output_tokens == 1500


@pytest.mark.parametrize("temperature, expected", [(5.0, 2.0), (-1.0, 0.0), (None, 0.8), ("hot", 0.8)])
async def test_temperature_is_clamped(engine, first_provider, second_provider, sample_params, temperature, expected):
    sample_params.temperature = temperature
    await engine.run(sample_params)
    temps = {r.temperature for r in _requests(first_provider) + _requests(second_provider)}
    assert temps == {expected}


@pytest.mark.parametrize("rounds, expected", [(25, 10), (0, 1), (-3, 1), (None, 3), (4, 4)])
async def test_rounds_are_clamped(engine, first_provider, sample_params, rounds, expected):
    sample_params.rounds = rounds
    outcome = await engine.run(sample_params)
    assert outcome.transcript.count("## Round ") == expected
    assert first_provider.complete_turn.await_count == expected


async def test_second_fails_in_round_two(first_provider, second_provider, sample_prompts_config, sample_params):
    first_provider.complete_turn = AsyncMock(side_effect=["A1", "A2"])
    second_provider.complete_turn = AsyncMock(
        side_effect=["B1", UpstreamError("gemini", "429 rate limit exceeded")]
    )
    engine = DialogueEngine(first_provider, second_provider, prompts=sample_prompts_config)

    outcome = await engine.run(sample_params)

    assert isinstance(outcome, PartialFailure)
    text = outcome.transcript
    assert "## Round 1" in text
    assert "### gpt-4o:\nA1" in text
    assert "### gemini-2.5-pro:\nB1" in text
    assert "429 rate limit exceeded" in text
    assert text.count("### gemini-2.5-pro") == 1
    assert "## Summary" not in text
    assert isinstance(outcome.error, UpstreamError)


async def test_conduct_dialogue_returns_partial_text_instead_of_raising(first_provider, second_provider, sample_params):
    second_provider.complete_turn = AsyncMock(side_effect=RuntimeError("socket closed"))
    engine = DialogueEngine(first_provider, second_provider)

    text = await engine.conduct_dialogue(sample_params)

    assert "socket closed" in text
    assert "## Round 1" in text
    assert "## Summary" not in text


async def test_first_fails_immediately(first_provider, second_provider, sample_params):
    first_provider.complete_turn = AsyncMock(side_effect=UpstreamError("openai", "401 invalid key"))
    engine = DialogueEngine(first_provider, second_provider)

    outcome = await engine.run(sample_params)

    assert isinstance(outcome, PartialFailure)
    assert "## Round" not in outcome.transcript
    assert "401 invalid key" in outcome.transcript
    second_provider.complete_turn.assert_not_awaited()


async def test_no_retry_after_failure(first_provider, second_provider, sample_params):
    second_provider.complete_turn = AsyncMock(side_effect=UpstreamError("gemini", "boom"))
    sample_params.rounds = 5
    engine = DialogueEngine(first_provider, second_provider)

    await engine.run(sample_params)

    assert first_provider.complete_turn.await_count == 1
    assert second_provider.complete_turn.await_count == 1


@pytest.mark.parametrize("unavailable", [Participant.FIRST, Participant.SECOND])
async def test_unavailable_participant_raises_before_any_call(sample_params, unavailable):
    first = MockProvider("openai", available=unavailable != Participant.FIRST)
    second = MockProvider("gemini", available=unavailable != Participant.SECOND)
    engine = DialogueEngine(first, second)

    with pytest.raises(ParticipantUnavailableError) as exc_info:
        await engine.run(sample_params)

    assert exc_info.value.participant == unavailable
    first.complete_turn.assert_not_awaited()
    second.complete_turn.assert_not_awaited()


@pytest.mark.parametrize(
    "topic, error",
    [("\x00\x01", EmptyAfterSanitizationError), ("x" * 1001, InputTooLongError), ("", InvalidInputError)],
)
async def test_bad_topic_raises_before_any_call(engine, first_provider, second_provider, sample_params, topic, error):
    sample_params.topic = topic
    with pytest.raises(error):
        await engine.run(sample_params)
    first_provider.complete_turn.assert_not_awaited()
    second_provider.complete_turn.assert_not_awaited()


async def test_topic_is_sanitized(engine, sample_params):
    sample_params.topic = "  AI\x00Ethics  "
    outcome = await engine.run(sample_params)
    assert "# Wall Bounce Discussion: AIEthics" in outcome.transcript


async def test_on_turn_callback_sees_every_turn(engine, sample_params):
    seen = []
    await engine.run(sample_params, on_turn=lambda rnd, turn: seen.append((rnd, turn.speaker)))
    assert seen == [
        (1, Participant.FIRST),
        (1, Participant.SECOND),
        (2, Participant.FIRST),
        (2, Participant.SECOND),
    ]


async def test_calls_do_not_share_state(engine, first_provider, sample_params):
    await engine.run(sample_params)
    await engine.run(SessionParameters("Other topic", "gpt-4o", "gemini-2.5-pro", rounds=1))
    last_request = _requests(first_provider)[-1]
    assert len(last_request.conversation) == 1
    assert "Other topic" in last_request.conversation[0]["content"]


async def test_summary_uses_configured_template(first_provider, second_provider, sample_params):
    prompts = PromptsConfig(summary="{first_model} vs {second_model} on {topic}: {round_label} ({rounds}).")
    engine = DialogueEngine(first_provider, second_provider, prompts=prompts)

    outcome = await engine.run(sample_params)

    assert outcome.transcript.endswith(
        "## Summary\n\ngpt-4o vs gemini-2.5-pro on Database performance: 2 rounds (2).\n"
    )


async def test_default_summary_single_round(engine, sample_params):
    sample_params.rounds = 1
    outcome = await engine.run(sample_params)
    summary = outcome.transcript[outcome.transcript.index("## Summary"):]
    assert "1 round." in summary
    assert "gpt-4o" in summary and "gemini-2.5-pro" in summary


async def test_topic_braces_do_not_break_templates(engine, sample_params):
    sample_params.topic = 'Parse {"key": 1} payloads'
    outcome = await engine.run(sample_params)
    assert isinstance(outcome, Completed)
    assert 'Parse {"key": 1} payloads' in outcome.transcript
