"""Unit tests for the visualization pipeline.

Covers request gating (blank text, single-flight, cooldown), the remote
success path, error classification with fallback, the unconfigured
provider path, ephemeral messages, and history navigation.
"""

import asyncio
from typing import get_type_hints

import pytest
from pydantic import ValidationError

from src.core.config import Settings
from src.core.exceptions import ImageGenerationError
from src.core.models import (
    GenerationState,
    GenerationStatus,
    ImageSource,
    RemoteErrorKind,
)
from src.services.pipeline import (
    REMOTE_ERROR_MESSAGES,
    VisualizationPipeline,
    build_prompt,
    classify_generation_error,
)

STORY = "Once upon a time a dragon flew over the castle"

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def pipeline(mock_generator, settings, clock, fake_sleep):
    return VisualizationPipeline(mock_generator, settings=settings, clock=clock, sleep=fake_sleep)


@pytest.fixture
def offline_pipeline(settings, clock, fake_sleep):
    """Pipeline with no remote provider at all."""
    return VisualizationPipeline(None, settings=settings, clock=clock, sleep=fake_sleep)


async def _fill(pipeline, clock, count: int) -> None:
    for _ in range(count):
        outcome = await pipeline.request_generation(STORY)
        assert outcome.status in (GenerationStatus.generated, GenerationStatus.fallback)
        clock.advance(60)


# ---------------------------------------------------------------------------
# TestHelpers
# ---------------------------------------------------------------------------


class TestBuildPrompt:
    def test_uses_trailing_excerpt(self):
        text = "x" * 300 + "the end"
        prompt = build_prompt(text, 200)
        assert prompt.endswith("the end")
        assert prompt.count("x") == 193

    def test_short_text_used_whole(self):
        prompt = build_prompt("short story", 200)
        assert prompt == (
            "Generate a beautiful, artistic image based on this story excerpt: short story"
        )


class TestClassifyGenerationError:
    @pytest.mark.parametrize(
        ("exc", "kind"),
        [
            (ImageGenerationError("Billing hard limit has been reached"), RemoteErrorKind.billing_limit),
            (ImageGenerationError("You exceeded your current quota", 429), RemoteErrorKind.quota_exceeded),
            (ImageGenerationError("Slow down", 429), RemoteErrorKind.rate_limited),
            (ImageGenerationError("429 Too Many Requests"), RemoteErrorKind.rate_limited),
            (ImageGenerationError("Internal server error", 500), RemoteErrorKind.other),
            (RuntimeError("boom"), RemoteErrorKind.other),
        ],
    )
    def test_classification(self, exc, kind):
        assert classify_generation_error(exc) is kind


# ---------------------------------------------------------------------------
# TestRequestGating
# ---------------------------------------------------------------------------


class TestRequestGating:
    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    async def test_blank_text_rejected(self, pipeline, mock_generator, text):
        outcome = await pipeline.request_generation(text)

        assert outcome.status is GenerationStatus.empty_input
        assert pipeline.history == ()
        assert pipeline.state.generation is GenerationState.idle
        assert pipeline.state.last_generation_at is None
        mock_generator.generate.assert_not_called()

    async def test_second_request_within_cooldown_is_rate_limited(
        self, pipeline, mock_generator, clock
    ):
        await pipeline.request_generation(STORY)
        clock.advance(20)

        outcome = await pipeline.request_generation(STORY)

        assert outcome.status is GenerationStatus.rate_limited
        assert outcome.retry_after == 40
        assert len(pipeline.history) == 1
        mock_generator.generate.assert_awaited_once()

    async def test_rate_limit_message_lasts_three_seconds(self, pipeline, clock):
        await pipeline.request_generation(STORY)
        clock.advance(20)
        await pipeline.request_generation(STORY)

        assert pipeline.message() == "Please wait 40 seconds before generating another image"
        clock.advance(2.9)
        assert pipeline.message() is not None
        clock.advance(0.2)
        assert pipeline.message() is None

    async def test_accepted_after_cooldown(self, pipeline, clock):
        await pipeline.request_generation(STORY)
        clock.advance(60)

        outcome = await pipeline.request_generation(STORY)

        assert outcome.status is GenerationStatus.generated
        assert len(pipeline.history) == 2

    async def test_failed_request_still_consumes_cooldown(self, pipeline, mock_generator, clock):
        mock_generator.generate.side_effect = ImageGenerationError("boom", 500)
        start = clock.now

        await pipeline.request_generation(STORY)
        clock.advance(10)
        outcome = await pipeline.request_generation(STORY)

        assert pipeline.state.last_generation_at == start
        assert outcome.status is GenerationStatus.rate_limited

    async def test_request_while_loading_is_dropped(self, pipeline, mock_generator, clock):
        release = asyncio.Event()

        async def slow_generate(prompt, **kwargs):
            await release.wait()
            return "https://images.example.com/slow.png"

        mock_generator.generate.side_effect = slow_generate

        first = asyncio.create_task(pipeline.request_generation(STORY))
        await asyncio.sleep(0)
        assert pipeline.is_loading

        clock.advance(120)  # cooldown is not what rejects the second call
        second = await pipeline.request_generation(STORY)
        assert second.status is GenerationStatus.busy

        release.set()
        outcome = await first
        assert outcome.status is GenerationStatus.generated
        assert len(pipeline.history) == 1
        assert not pipeline.is_loading


# ---------------------------------------------------------------------------
# TestRemoteSuccess
# ---------------------------------------------------------------------------


class TestRemoteSuccess:
    async def test_appends_remote_image(self, pipeline, mock_generator):
        outcome = await pipeline.request_generation(STORY)

        assert outcome.status is GenerationStatus.generated
        assert outcome.image.uri == "https://images.example.com/story.png"
        assert outcome.image.source is ImageSource.remote
        assert pipeline.current_image == outcome.image
        assert pipeline.cursor == 0
        assert not pipeline.is_loading
        assert not pipeline.using_fallback

    async def test_sends_trailing_excerpt_prompt(self, pipeline, mock_generator):
        text = "a" * 500 + " and the dragon slept"
        await pipeline.request_generation(text)

        prompt = mock_generator.generate.call_args.args[0]
        assert prompt == build_prompt(text, 200)

    async def test_success_clears_fallback_flag(self, pipeline, mock_generator, clock):
        mock_generator.generate.side_effect = ImageGenerationError("boom", 500)
        await pipeline.request_generation(STORY)
        assert pipeline.using_fallback

        clock.advance(60)
        mock_generator.generate.side_effect = None
        await pipeline.request_generation(STORY)
        assert not pipeline.using_fallback

    async def test_n_generations(self, pipeline, clock):
        await _fill(pipeline, clock, 5)
        assert len(pipeline.history) == 5
        assert pipeline.cursor == 4

    async def test_no_fallback_delay_on_success(self, pipeline, fake_sleep):
        await pipeline.request_generation(STORY)
        fake_sleep.assert_not_awaited()

    async def test_outcome_is_immutable(self, pipeline):
        outcome = await pipeline.request_generation(STORY)

        with pytest.raises(ValidationError):
            outcome.status = GenerationStatus.fallback
        assert outcome.status is GenerationStatus.generated


# ---------------------------------------------------------------------------
# TestFallback
# ---------------------------------------------------------------------------


class TestFallback:
    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (ImageGenerationError("Billing hard limit has been reached", 400), RemoteErrorKind.billing_limit),
            (ImageGenerationError("You exceeded your current quota", 429), RemoteErrorKind.quota_exceeded),
            (ImageGenerationError("Rate limit", 429), RemoteErrorKind.rate_limited),
            (ImageGenerationError("Bad gateway", 502), RemoteErrorKind.other),
        ],
    )
    async def test_remote_error_falls_back(self, pipeline, mock_generator, error, kind):
        mock_generator.generate.side_effect = error

        outcome = await pipeline.request_generation(STORY)

        assert outcome.status is GenerationStatus.fallback
        assert outcome.error_kind is kind
        assert outcome.message == REMOTE_ERROR_MESSAGES[kind]
        assert outcome.image.source is ImageSource.fallback
        assert outcome.image.theme == "fantasy"
        assert pipeline.history == (outcome.image,)
        assert pipeline.cursor == 0
        assert pipeline.using_fallback
        assert not pipeline.is_loading

    async def test_unexpected_exception_is_absorbed(self, pipeline, mock_generator):
        mock_generator.generate.side_effect = RuntimeError("socket closed")

        outcome = await pipeline.request_generation(STORY)

        assert outcome.status is GenerationStatus.fallback
        assert outcome.error_kind is RemoteErrorKind.other

    async def test_remote_message_lasts_five_seconds(self, pipeline, mock_generator, clock):
        mock_generator.generate.side_effect = ImageGenerationError("Rate limit", 429)
        await pipeline.request_generation(STORY)

        assert pipeline.message() == REMOTE_ERROR_MESSAGES[RemoteErrorKind.rate_limited]
        clock.advance(4.9)
        assert pipeline.message() is not None
        clock.advance(0.2)
        assert pipeline.message() is None

    async def test_fallback_waits_configured_delay(self, pipeline, mock_generator, fake_sleep, settings):
        mock_generator.generate.side_effect = ImageGenerationError("boom")
        await pipeline.request_generation(STORY)
        fake_sleep.assert_awaited_once_with(settings.fallback_delay_seconds)

    async def test_placeholder_uses_configured_service(self, pipeline, mock_generator, settings):
        mock_generator.generate.side_effect = ImageGenerationError("boom")
        outcome = await pipeline.request_generation(STORY)
        assert outcome.image.uri.startswith(
            f"{settings.placeholder_base_url}/{settings.placeholder_size}/8b5cf6/"
        )

    async def test_unconfigured_provider_skips_remote(self, pipeline, mock_generator):
        mock_generator.is_configured.return_value = False

        outcome = await pipeline.request_generation(STORY)

        mock_generator.generate.assert_not_called()
        assert outcome.status is GenerationStatus.fallback
        assert outcome.error_kind is None
        assert pipeline.message() is None

    async def test_no_provider(self, offline_pipeline):
        outcome = await offline_pipeline.request_generation(STORY)

        assert outcome.status is GenerationStatus.fallback
        assert not offline_pipeline.remote_enabled
        assert len(offline_pipeline.history) == 1

    async def test_cancelled_request_clears_loading(self, pipeline, fake_sleep, mock_generator):
        mock_generator.generate.side_effect = ImageGenerationError("boom")
        fake_sleep.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await pipeline.request_generation(STORY)

        assert not pipeline.is_loading
        assert pipeline.history == ()


# ---------------------------------------------------------------------------
# TestNavigationAndClear
# ---------------------------------------------------------------------------


class TestNavigationAndClear:
    async def test_prev_at_start_and_next_at_end_are_noops(self, pipeline, clock):
        await _fill(pipeline, clock, 3)

        pipeline.navigate("next")
        assert pipeline.cursor == 2

        pipeline.select_index(0)
        pipeline.navigate("prev")
        assert pipeline.cursor == 0

    async def test_navigate_changes_current_image(self, pipeline, mock_generator, clock):
        mock_generator.generate.side_effect = [
            "https://images.example.com/1.png",
            "https://images.example.com/2.png",
        ]
        await _fill(pipeline, clock, 2)

        pipeline.navigate("prev")
        assert pipeline.current_image.uri == "https://images.example.com/1.png"
        pipeline.navigate("next")
        assert pipeline.current_image.uri == "https://images.example.com/2.png"

    async def test_select_out_of_range_ignored(self, pipeline, clock):
        await _fill(pipeline, clock, 2)
        pipeline.select_index(5)
        assert pipeline.cursor == 1

    async def test_clear_resets_everything(self, pipeline, mock_generator, clock):
        mock_generator.generate.side_effect = ImageGenerationError("boom")
        await _fill(pipeline, clock, 2)

        pipeline.clear()

        assert pipeline.history == ()
        assert pipeline.cursor == -1
        assert pipeline.current_image is None
        assert not pipeline.is_loading
        assert not pipeline.using_fallback
        assert pipeline.message() is None


class TestSettingsInjection:
    def test_settings_parameter_is_typed(self):
        from src.services.speech.microphone import MicrophoneRecognizer

        for init in (VisualizationPipeline.__init__, MicrophoneRecognizer.__init__):
            assert get_type_hints(init)["settings"] == (Settings | None)

    def test_explicit_settings_used(self, mock_generator, settings):
        pipeline = VisualizationPipeline(mock_generator, settings=settings)
        assert pipeline._settings is settings
