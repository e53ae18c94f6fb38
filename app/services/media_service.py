"""
Blog API — Cloudinary Media Service
=====================================

What:  Compresses images and stores them on Cloudinary; deletes them again.
Why:   Posts keep only the descriptor Cloudinary returns (public_id, format,
       dimensions, URLs). The frontend builds delivery URLs from public_id.
How:   Pillow compression (ImageProcessor) → circuit breaker check →
       Cloudinary upload with tenacity retries. The Cloudinary SDK is
       blocking, so every SDK call runs in Starlette's threadpool.
Who:   BlogService (featured images, body images, cleanup on delete).

Resilience Strategy:
    1. tenacity: exponential backoff with jitter for transient upload errors
       (TRANSIENT_UPLOAD_ERRORS); errors reported by Cloudinary are final
    2. CircuitBreaker: after N consecutive failed uploads, skip the host for
       `cb_recovery_timeout` seconds and fail immediately
    3. Every failure surfaces as MediaServiceError carrying the SDK message
"""

import io
import logging
import time
from typing import Any, Dict, Optional

import cloudinary
import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import CircuitBreakerOpenError, MediaServiceError
from app.services.image_processor import ImageProcessor, image_processor
from app.services.media_base import MediaHost

logger = logging.getLogger(__name__)

# Server-side transformation applied to featured images on upload
FEATURED_TRANSFORMATION = [
    {"width": 1920, "height": 1080, "crop": "limit", "quality": "auto:good"},
    {"fetch_format": "auto"},
]

# Retried: network failures and responses the SDK could not interpret
# (GeneralError), plus throttling. Errors Cloudinary reported itself (bad
# parameters, invalid credentials, missing resources) fail on the first try.
TRANSIENT_UPLOAD_ERRORS = (
    cloudinary.exceptions.GeneralError,
    cloudinary.exceptions.RateLimited,
    ConnectionError,
    TimeoutError,
)

DESCRIPTOR_FIELDS = (
    "url",
    "secure_url",
    "public_id",
    "width",
    "height",
    "format",
    "resource_type",
    "created_at",
)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Consecutive-failure circuit breaker for the media host.

        CLOSED    → failures counted; threshold reached → OPEN
        OPEN      → calls rejected with CircuitBreakerOpenError until
                    recovery_timeout has elapsed → HALF_OPEN
        HALF_OPEN → one trial call; success → CLOSED, failure → OPEN

    Not shared across worker processes; each uvicorn worker keeps its own.
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
        """Returns True when a call may proceed; raises while OPEN."""
        if self.state == self.OPEN:
            elapsed = time.monotonic() - (self.last_failure_time or 0)
            if elapsed < self.recovery_timeout:
                raise CircuitBreakerOpenError(
                    recovery_time=max(1, int(self.recovery_timeout - elapsed))
                )
            logger.info("Media circuit breaker HALF_OPEN after %.1fs", elapsed)
            self.state = self.HALF_OPEN
        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Media circuit breaker CLOSED (host recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.monotonic()

        if self.state == self.HALF_OPEN:
            logger.warning("Media circuit breaker back to OPEN (trial upload failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Media circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Media Service
# ══════════════════════════════════════════════════════════════════════════

class MediaService(MediaHost):
    """Cloudinary-backed implementation of MediaHost."""

    def __init__(self, processor: Optional[ImageProcessor] = None):
        self.processor = processor or image_processor

        if settings.cloudinary_configured:
            cloudinary.config(
                cloud_name=settings.cloudinary_cloud_name,
                api_key=settings.cloudinary_api_key,
                api_secret=settings.cloudinary_api_secret,
                secure=True,
            )

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

    def validate_image(self, content: bytes, content_type: Optional[str]) -> None:
        """Raises ValidationError for a wrong type, bad size or undecodable bytes."""
        self.processor.validate(content, content_type)

    async def upload_image(
        self,
        content: bytes,
        folder: str,
        public_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        compressed = await run_in_threadpool(self.processor.compress, content)

        self.circuit_breaker.can_execute()

        try:
            result = await self._upload_with_retry(compressed, folder, public_id)
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error("Cloudinary upload failed (folder=%s): %s", folder, str(e))
            raise MediaServiceError(
                message="Failed to upload image",
                detail=str(e) or type(e).__name__,
                context={"folder": folder, "public_id": public_id},
            )

        self.circuit_breaker.record_success()
        descriptor = {field: result.get(field) for field in DESCRIPTOR_FIELDS}
        logger.info(
            "Uploaded to Cloudinary: %s (%sx%s %s)",
            descriptor["public_id"],
            descriptor["width"],
            descriptor["height"],
            descriptor["format"],
        )
        return descriptor

    @retry(
        retry=retry_if_exception_type(TRANSIENT_UPLOAD_ERRORS),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1 if settings.retry_max_wait else 0,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _upload_with_retry(
        self,
        content: bytes,
        folder: str,
        public_id: Optional[str],
    ) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "folder": folder,
            "resource_type": "image",
            "overwrite": True,
            "invalidate": True,
        }
        if public_id:
            options["public_id"] = public_id
            options["transformation"] = FEATURED_TRANSFORMATION

        return await run_in_threadpool(
            cloudinary.uploader.upload, io.BytesIO(content), **options
        )

    async def delete_image(self, public_id: str) -> Dict[str, Any]:
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.destroy, public_id, invalidate=True
            )
        except Exception as e:
            logger.error("Error deleting %s from Cloudinary: %s", public_id, str(e))
            raise MediaServiceError(
                message="Failed to delete image",
                detail=str(e) or type(e).__name__,
                context={"public_id": public_id},
            )
        logger.info("Deleted %s from Cloudinary: %s", public_id, result.get("result"))
        return result

    async def health_check(self) -> bool:
        if not settings.cloudinary_configured:
            return False
        try:
            await run_in_threadpool(cloudinary.api.ping)
            return True
        except Exception as e:
            logger.warning("Cloudinary health check failed: %s", str(e))
            return False


media_service = MediaService()
