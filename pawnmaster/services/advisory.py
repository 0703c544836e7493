"""Advisory service for PawnMaster.

Wraps an external valuation / image-recognition backend. Suggestions are
purely advisory: every failure degrades to ``None`` and nothing here
touches the ledger.
"""
import io
from abc import ABC, abstractmethod
from typing import Optional

from PIL import Image

from pawnmaster.config import ADVISORY_IMAGE_MAX_EDGE, ADVISORY_IMAGE_QUALITY
from pawnmaster.data_structures import ValuationAdvice
from pawnmaster.logging_setup import get_logger

logger = get_logger(__name__)

ADVICE_FIELDS = ("resalePriceRange", "safeLoanRange", "keyChecks", "marketNote")


class AdvisoryBackend(ABC):
    """Abstract base class for remote advisory providers."""

    @abstractmethod
    def valuation_advice(self, brand: str, model: str, condition: str) -> dict:
        """Return a dict with resalePriceRange, safeLoanRange, keyChecks, marketNote."""
        pass

    @abstractmethod
    def describe_image(self, jpeg_bytes: bytes) -> str:
        """Return a short description of the device in a JPEG photo."""
        pass


class NullAdvisoryBackend(AdvisoryBackend):
    """Backend used when no advisory provider is configured."""

    def valuation_advice(self, brand, model, condition):
        return None

    def describe_image(self, jpeg_bytes):
        return None


def prepare_image(image_bytes: bytes, max_edge: int = ADVISORY_IMAGE_MAX_EDGE) -> bytes:
    """Re-encode a photo as an RGB JPEG no larger than ``max_edge`` pixels.

    Raises:
        OSError: If Pillow cannot read the image.
    """
    with Image.open(io.BytesIO(image_bytes)) as img:
        img = img.convert("RGB")
        img.thumbnail((max_edge, max_edge))
        out = io.BytesIO()
        img.save(out, format="JPEG", quality=ADVISORY_IMAGE_QUALITY)
    return out.getvalue()


def parse_advice(payload) -> Optional[ValuationAdvice]:
    """Build ValuationAdvice from a backend payload; None if fields are missing."""
    if not isinstance(payload, dict):
        return None
    if any(key not in payload for key in ADVICE_FIELDS):
        return None
    checks = payload["keyChecks"]
    if isinstance(checks, str):
        checks = [checks]
    elif not isinstance(checks, (list, tuple)):
        return None
    return ValuationAdvice(
        resale_price_range=str(payload["resalePriceRange"]),
        safe_loan_range=str(payload["safeLoanRange"]),
        key_checks=tuple(str(c) for c in checks),
        market_note=str(payload["marketNote"]),
    )


class AdvisoryService:
    """Best-effort access to valuation and image suggestions.

    Methods never raise; a broken or missing backend yields None so the
    pawn form stays fully manual.
    """

    def __init__(self, backend: AdvisoryBackend = None):
        self.backend = backend or NullAdvisoryBackend()

    @property
    def available(self) -> bool:
        return not isinstance(self.backend, NullAdvisoryBackend)

    def get_valuation_advice(self, brand: str, model: str,
                             condition: str) -> Optional[ValuationAdvice]:
        try:
            payload = self.backend.valuation_advice(brand or "", model, condition)
            advice = parse_advice(payload)
        except Exception:
            logger.warning("Valuation advice failed for %s %s", brand, model, exc_info=True)
            return None
        if advice is None and payload is not None:
            logger.warning("Valuation advice for %s %s is incomplete or malformed", brand, model)
        return advice

    def analyze_device_image(self, image_bytes: bytes) -> Optional[str]:
        if not image_bytes:
            return None
        try:
            jpeg = prepare_image(image_bytes)
        except (OSError, Image.DecompressionBombError) as e:
            logger.warning("Unreadable device image: %s", e)
            return None
        try:
            description = self.backend.describe_image(jpeg)
        except Exception:
            logger.warning("Device image analysis failed", exc_info=True)
            return None
        if not description:
            return None
        return str(description).strip()
