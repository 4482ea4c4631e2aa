"""
Pinboard API: Gemini Tagging Service Unit Tests (Mocked)
==========================================================

What:  Tests for GeminiService with a mocked Google Generative AI SDK, the
       circuit breaker, and the shared tag parsing helpers.
Why:   Tests should not make real API calls (costs money, requires network).
How:   Patches the genai module and model to simulate success/failure.

What we test:
    ✅ JSON and comma-separated replies become cleaned tags
    ✅ Video pins get the video prompt
    ✅ API failure becomes TaggingServiceError and counts against the breaker
    ✅ Circuit breaker opens after consecutive failures and recovers
    ❌ Real API calls
"""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pinboard.config import settings
from pinboard.exceptions import CircuitBreakerOpenError, TaggingServiceError
from pinboard.services.gemini_service import CircuitBreaker, GeminiService
from pinboard.services.tagging_base import clean_tags, merge_tags, parse_tag_text


class TestCircuitBreaker:
    """Tests for the CircuitBreaker resilience pattern."""

    def test_initial_state_is_closed(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        assert cb.state == "closed"
        assert cb.failure_count == 0

    def test_stays_closed_under_threshold(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        for _ in range(4):
            cb.record_failure()
        assert cb.state == "closed"
        assert cb.can_execute() is True

    def test_opens_at_threshold(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        for _ in range(3):
            cb.record_failure()
        assert cb.state == "open"

    def test_open_circuit_rejects_calls(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
        cb.record_failure()

        with pytest.raises(CircuitBreakerOpenError):
            cb.can_execute()

    def test_success_resets_failure_count(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()
        assert cb.failure_count == 2

        cb.record_success()
        assert cb.failure_count == 0
        assert cb.state == "closed"

    def test_half_open_after_recovery_timeout(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        time.sleep(0.01)

        assert cb.can_execute() is True
        assert cb.state == "half_open"

    def test_failure_while_half_open_reopens(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=0)
        for _ in range(3):
            cb.record_failure()
        cb.can_execute()

        cb.record_failure()
        assert cb.state == "open"


class TestTagParsing:

    def test_json_array(self):
        assert parse_tag_text('["Nike", "running shoes", "white"]') == ["nike", "running shoes", "white"]

    def test_fenced_json(self):
        assert parse_tag_text('```json\n["red", "lamp"]\n```') == ["red", "lamp"]

    def test_comma_separated_fallback(self):
        assert parse_tag_text("wood, oak,\ndesk") == ["wood", "oak", "desk"]

    def test_empty_reply(self):
        assert parse_tag_text("") == []

    def test_clean_tags_rules(self):
        raw = ["A", "Café!", "café", "x" * 30, "mid-century"]
        assert clean_tags(raw) == ["café", "mid-century"]

    def test_clean_tags_limit(self):
        assert len(clean_tags([f"tag{i}" for i in range(40)], max_tags=15)) == 15

    def test_merge_keeps_manual_first(self):
        assert merge_tags(["diy", "wood"], ["wood", "oak"]) == ["diy", "wood", "oak"]


def _mock_model(text: str) -> MagicMock:
    response = MagicMock()
    response.text = text
    model = MagicMock()
    model.generate_content_async = AsyncMock(return_value=response)
    return model


class TestGeminiServiceMocked:
    """Tests for GeminiService with mocked Gemini API."""

    @pytest.mark.asyncio
    async def test_generate_tags_success(self):
        with patch("pinboard.services.gemini_service.genai") as mock_genai:
            mock_genai.upload_file.return_value = MagicMock()
            service = GeminiService()
            service.model = _mock_model('["Nike", "sneakers", "white"]')

            tags = await service.generate_tags("/path/to/photo.jpg", "image")

        assert tags == ["nike", "sneakers", "white"]
        assert service.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_video_uses_video_prompt(self):
        with patch("pinboard.services.gemini_service.genai"):
            service = GeminiService()
            service.model = _mock_model("skate, park")

            await service.generate_tags("/path/to/clip.mp4", "video")

        prompt = service.model.generate_content_async.call_args.args[0][0]
        assert prompt == GeminiService.VIDEO_PROMPT

    @pytest.mark.asyncio
    async def test_api_failure_raises_tagging_error(self):
        with patch("pinboard.services.gemini_service.genai") as mock_genai:
            mock_genai.upload_file.side_effect = RuntimeError("quota exceeded")
            service = GeminiService()

            with pytest.raises(TaggingServiceError):
                await service.generate_tags("/path/to/photo.jpg")

        assert service.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_generate_tags_circuit_breaker_open(self):
        with patch("pinboard.services.gemini_service.genai"):
            service = GeminiService()
            for _ in range(service.circuit_breaker.failure_threshold):
                service.circuit_breaker.record_failure()

            with pytest.raises(CircuitBreakerOpenError):
                await service.generate_tags("/path/to/photo.jpg")

    @pytest.mark.asyncio
    async def test_unconfigured_key(self, monkeypatch):
        monkeypatch.setattr(settings, "gemini_api_key", "")
        with patch("pinboard.services.gemini_service.genai"):
            service = GeminiService()
            assert service.is_configured is False

            with pytest.raises(TaggingServiceError, match="not configured"):
                await service.generate_tags("/path/to/photo.jpg")

    @pytest.mark.asyncio
    async def test_health_check_returns_bool(self):
        with patch("pinboard.services.gemini_service.genai") as mock_genai:
            mock_genai.list_models.return_value = [MagicMock()]
            service = GeminiService()
            assert await service.health_check() is True

            mock_genai.list_models.side_effect = RuntimeError("offline")
            assert await service.health_check() is False
