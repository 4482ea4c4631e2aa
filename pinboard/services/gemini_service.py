"""
Pinboard API: Google Gemini Tagging Service
=============================================

What:  TaggingService implementation that asks Gemini to describe a pin's
       image or video as a short list of tags.
Why:   Tags feed search ranking and autocomplete without asking users to
       type them.
How:   Uploads the stored file through the Gemini SDK, sends it with a
       media-specific prompt, parses the reply into cleaned tags. Calls are
       wrapped in a tenacity retry and guarded by a circuit breaker.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transient failures
    2. Circuit breaker so a Gemini outage fails fast instead of stalling
       every pin upload for the full retry budget
    3. Callers (PinService, retag tool) treat any failure as "no AI tags"
"""

import logging
import time
import uuid
from pathlib import Path
from typing import List, Optional

import google.generativeai as genai
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
    retry_if_exception_type,
    before_sleep_log,
    RetryError,
)

from pinboard.config import settings
from pinboard.exceptions import CircuitBreakerOpenError, TaggingServiceError
from pinboard.services.tagging_base import TaggingService, parse_tag_text

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker around the Gemini API.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN
        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN
        HALF_OPEN (testing recovery)
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Not thread-safe; uvicorn async workers share one process and one loop.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True if a call may proceed.

        Raises:
            CircuitBreakerOpenError if OPEN and the recovery timeout has not elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Circuit breaker transitioning to HALF_OPEN after %.1fs",
                    elapsed,
                )
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Gemini Service
# ══════════════════════════════════════════════════════════════════════════

class GeminiService(TaggingService):
    """
    Gemini vision implementation of TaggingService.

    Error Handling Chain:
        API call fails → tenacity retries
        → all retries fail → record circuit breaker failure → TaggingServiceError
        → threshold reached → later calls rejected instantly (CircuitBreakerOpenError)
    """

    IMAGE_PROMPT = """Analyze this image very carefully and extract 12-15 short tags.
Always try to identify:
- exact product brands and logos (e.g. nike, adidas, apple)
- product or device models
- clothing, shoe and accessory types
- colors, objects, style and background
Return ONLY a JSON array of lowercase strings, no sentences."""

    VIDEO_PROMPT = """Analyze this video very carefully and extract 12-15 short tags.
Always try to identify:
- exact brands and logos
- products, clothing and accessories shown
- the activity or scene
- colors, objects and mood
Return ONLY a JSON array of lowercase strings, no sentences."""

    def __init__(self):
        if settings.gemini_api_key and settings.gemini_api_key != "your_gemini_api_key_here":
            genai.configure(api_key=settings.gemini_api_key)

        self.model = genai.GenerativeModel(settings.gemini_model)

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "GeminiService initialized with model=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            settings.gemini_model,
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(settings.gemini_api_key) and settings.gemini_api_key != "your_gemini_api_key_here"

    def prompt_for(self, media_type: str) -> str:
        return self.VIDEO_PROMPT if media_type == "video" else self.IMAGE_PROMPT

    async def generate_tags(self, media_path: str, media_type: str = "image") -> List[str]:
        """
        Generate tags for one stored media file.

        Flow:
            1. Check circuit breaker → may raise CircuitBreakerOpenError
            2. Upload + generate with retry
            3. Record success/failure in circuit breaker
            4. Parse the reply into cleaned tags

        Raises:
            CircuitBreakerOpenError, TaggingServiceError
        """
        call_id = str(uuid.uuid4())[:8]

        if not self.is_configured:
            raise TaggingServiceError(message="Gemini API key is not configured")

        self.circuit_breaker.can_execute()

        logger.info(
            "[%s] Requesting Gemini tags for %s: %s",
            call_id,
            media_type,
            Path(media_path).name,
        )

        try:
            text = await self._call_gemini_with_retry(media_path, media_type, call_id)
            self.circuit_breaker.record_success()
        except CircuitBreakerOpenError:
            raise
        except RetryError as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "[%s] All Gemini retries exhausted: %s",
                call_id,
                str(e.last_attempt.exception()) if e.last_attempt else "Unknown error",
            )
            raise TaggingServiceError(
                message="AI tagging failed after multiple attempts. Please try again later.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"call_id": call_id, "attempts": settings.retry_max_attempts},
            )
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Gemini tagging error: %s", call_id, str(e))
            raise TaggingServiceError(
                message="An unexpected error occurred during AI tagging.",
                context={"call_id": call_id, "error_type": type(e).__name__},
            )

        tags = parse_tag_text(text, settings.max_tags)
        if not tags:
            logger.warning("[%s] Gemini returned no usable tags", call_id)
        return tags

    @retry(
        retry=retry_if_exception_type(Exception),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _call_gemini_with_retry(self, media_path: str, media_type: str, call_id: str) -> str:
        """
        The retried unit: upload + generate. Kept separate from
        generate_tags so the circuit breaker check is not retried.
        """
        start_time = time.time()

        try:
            media_file = genai.upload_file(path=media_path)

            response = await self.model.generate_content_async(
                [self.prompt_for(media_type), media_file],
                request_options={"timeout": 60},
            )

            duration_ms = (time.time() - start_time) * 1000
            text = response.text.strip() if response.text else ""

            logger.info(
                "[%s] Gemini tagging completed in %.0fms, %d chars",
                call_id,
                duration_ms,
                len(text),
            )
            return text

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                "[%s] Gemini API call failed after %.0fms: %s",
                call_id,
                duration_ms,
                str(e),
            )
            raise

    async def health_check(self) -> bool:
        """Lists models (free call) to verify the key and connectivity."""
        try:
            models = genai.list_models()
            model_names = [m.name for m in models]
            target = f"models/{settings.gemini_model}"
            if target not in model_names:
                logger.warning("Configured model %s not found in available models", target)
            return True
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False


gemini_service = GeminiService()
