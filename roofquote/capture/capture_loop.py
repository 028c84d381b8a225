"""
Image Capture Loop.

Drives the viewport through the fixed heading sequence and snapshots each
view. Frames are captured strictly one after another because the viewport
can only show one heading at a time.

State machine (CaptureSession.status):
    PENDING -> CAPTURING -> ANALYZING   (all headings captured)
                         -> FAILED      (any frame failed or run cancelled; frames discarded)
"""

import asyncio
import logging
from typing import Callable, Optional

from ..core.errors import CaptureError, ResourceNotReadyError
from ..core.models import CapturedFrame, CaptureSession, CaptureStatus
from ..utils.logging_config import get_logger
from .viewport import MapViewport

logger = logging.getLogger(__name__)

FrameCallback = Callable[[CapturedFrame], None]


class ImageCaptureLoop:
    """Sequential multi-heading capture over a single viewport."""

    def __init__(self, viewport: MapViewport, settle_delay: float = 1.0):
        self.viewport = viewport
        self.settle_delay = settle_delay

    def _check_ready(self, session: CaptureSession) -> None:
        if not self.viewport.is_ready:
            raise ResourceNotReadyError("Map is not ready for capture")
        if self.viewport.coordinates != session.coordinates:
            raise ResourceNotReadyError("Map is centred on a different location")

    async def run(
        self,
        session: CaptureSession,
        on_frame: Optional[FrameCallback] = None,
    ) -> CaptureSession:
        """
        Capture one frame per heading into session.images.

        Args:
            session: Session to fill; its images are reset first
            on_frame: Called after each frame is appended

        Returns:
            The session, now in ANALYZING status

        Raises:
            ResourceNotReadyError: Viewport not mounted at the session location
            CaptureError: A frame or the on_frame callback failed; session is
                FAILED with no images
            asyncio.CancelledError: The run was cancelled; session is FAILED
                with no images
        """
        try:
            self._check_ready(session)
        except ResourceNotReadyError as e:
            logger.warning(f"Capture refused: {e}", extra={"address": session.address})
            session.images.clear()
            session.fail(str(e))
            raise

        session.status = CaptureStatus.CAPTURING
        session.error = None
        session.images.clear()

        log = get_logger(__name__, address=session.address)
        log.info(f"Capturing {len(session.angles)} headings")

        for angle in session.angles:
            try:
                self.viewport.set_heading(angle)
                await asyncio.sleep(self.settle_delay)
                data_url = await asyncio.to_thread(self.viewport.snapshot)

                frame = CapturedFrame(heading=angle, data_url=data_url)
                session.images.append(frame)
                log.debug(f"Captured heading {angle}°", extra={"heading": angle})
                if on_frame is not None:
                    on_frame(frame)
            except asyncio.CancelledError:
                session.images.clear()
                session.fail("Capture cancelled")
                log.info(f"Capture cancelled at {angle}°", extra={"heading": angle})
                raise
            except Exception as e:
                # No partial sets: a failed heading discards the whole run
                session.images.clear()
                message = f"Failed to capture image at {angle}°: {e}"
                session.fail(message)
                log.error(
                    message,
                    extra={"heading": angle, "error_type": type(e).__name__},
                )
                raise CaptureError(message, cause=e) from e

        session.status = CaptureStatus.ANALYZING
        return session
