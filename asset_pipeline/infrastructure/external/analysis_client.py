# Standard library imports
import logging
import time
from numbers import Real
from typing import Any, Dict, Optional

# External package imports
import httpx

# Local application imports
from ...core.config import get_settings
from ...domain.exceptions import (
    RetryableProcessingError,
    TerminalProcessingError,
    UnrecognizedResponseError,
)
from ...domain.models.analysis import (
    AnalysisResult,
    FieldPrediction,
    DEFAULT_BRAND_CONFIDENCE,
    DEFAULT_MODEL_CONFIDENCE,
    DEFAULT_COLORWAY_CONFIDENCE,
)

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/analyze"

_FIELD_DEFAULTS = (
    ("brand", DEFAULT_BRAND_CONFIDENCE),
    ("model", DEFAULT_MODEL_CONFIDENCE),
    ("colorway", DEFAULT_COLORWAY_CONFIDENCE),
)
_PROCESSED_URL_KEYS = ("processed_image_url", "processedImageUrl")


def _parse_prediction(name: str, raw: Any, default_confidence: float) -> Optional[FieldPrediction]:
    """
    Classify one attribute of the service response.

    Shapes:
        absent  -> None, "", or key missing
        bare    -> "Nike"
        pair    -> {"value": "Nike", "confidence": 0.93}  (confidence optional)

    Raises:
        UnrecognizedResponseError: For any other shape
    """
    if raw is None or raw == "":
        return None

    if isinstance(raw, str):
        return FieldPrediction(value=raw, confidence=default_confidence)

    if isinstance(raw, dict):
        value = raw.get("value")
        if not isinstance(value, str) or not value:
            raise UnrecognizedResponseError(
                f"Analysis field '{name}' has no string value",
                details={"field": name, "raw": raw},
            )
        confidence = raw.get("confidence")
        if confidence is None:
            return FieldPrediction(value=value, confidence=default_confidence)
        if isinstance(confidence, bool) or not isinstance(confidence, Real) or not 0 <= confidence <= 1:
            raise UnrecognizedResponseError(
                f"Analysis field '{name}' has invalid confidence {confidence!r}",
                details={"field": name, "raw": raw},
            )
        return FieldPrediction(value=value, confidence=float(confidence))

    raise UnrecognizedResponseError(
        f"Analysis field '{name}' has unsupported type {type(raw).__name__}",
        details={"field": name, "raw": raw},
    )


def _parse_processed_url(body: Dict[str, Any]) -> Optional[str]:
    for key in _PROCESSED_URL_KEYS:
        raw = body.get(key)
        if raw is None or raw == "":
            continue
        if not isinstance(raw, str):
            raise UnrecognizedResponseError(
                f"Analysis field '{key}' must be a string",
                details={"field": key, "raw": raw},
            )
        return raw
    return None


def parse_analysis_response(body: Any) -> AnalysisResult:
    """
    Normalize a recognition service response into an AnalysisResult.

    brand/model/colorway may each be a bare string or a {value, confidence}
    pair; bare strings get default confidences (0.8 brand/model, 0.7
    colorway). The processed image URL may be spelled snake_case or camelCase.

    Args:
        body: Decoded JSON body

    Returns:
        AnalysisResult with every present attribute in pair form

    Raises:
        UnrecognizedResponseError: If the body or any attribute has an unknown shape
    """
    if not isinstance(body, dict):
        raise UnrecognizedResponseError(
            f"Analysis response must be a JSON object, got {type(body).__name__}"
        )

    predictions = {
        name: _parse_prediction(name, body.get(name), default)
        for name, default in _FIELD_DEFAULTS
    }
    return AnalysisResult(
        brand=predictions["brand"],
        model=predictions["model"],
        colorway=predictions["colorway"],
        processed_image_url=_parse_processed_url(body),
    )


class AnalysisClient:
    """
    HTTP client for the external recognition service.

    Every failure is raised as a ProcessingError whose `retryable` flag tells
    the worker whether the queue should try again: 5xx, connection failures
    and timeouts are retryable, 4xx is not.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize analysis client.

        Args:
            base_url: Base URL of the recognition service. If None, reads from env.
            timeout: Request timeout in seconds. If None, reads from env (default 90).
            transport: Optional httpx transport (used by tests to stub the service).
        """
        settings = get_settings()
        self.base_url = (base_url if base_url is not None else settings.ai_service_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.ai_service_timeout_seconds
        self._transport = transport

    async def analyze(self, source_url: str, category: str) -> AnalysisResult:
        """
        Ask the recognition service to analyze an image.

        Args:
            source_url: Fetchable URL of the original image
            category: Asset category, passed through as context

        Returns:
            Normalized AnalysisResult

        Raises:
            RetryableProcessingError: On 5xx, network failure or timeout
            TerminalProcessingError: On 4xx, missing configuration or unusable response
        """
        if not self.base_url:
            raise TerminalProcessingError("AI_SERVICE_URL environment variable is required")

        endpoint = f"{self.base_url}{ANALYZE_PATH}"
        started = time.monotonic()
        logger.info(f"Calling analysis service endpoint={endpoint} category={category}")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    endpoint,
                    json={"image_url": source_url, "category": category},
                )
            except httpx.TimeoutException as e:
                duration_ms = int((time.monotonic() - started) * 1000)
                logger.error(f"Analysis service timeout after {duration_ms}ms (limit {self.timeout}s)")
                raise RetryableProcessingError("AI service timeout") from e
            except httpx.TransportError as e:
                duration_ms = int((time.monotonic() - started) * 1000)
                logger.error(
                    f"Analysis service unreachable after {duration_ms}ms: {type(e).__name__}: {e}"
                )
                raise RetryableProcessingError(f"AI service unreachable: {e}") from e

        duration_ms = int((time.monotonic() - started) * 1000)

        if not response.is_success:
            status_code = response.status_code
            logger.error(
                f"Analysis service error response status={status_code} "
                f"duration_ms={duration_ms} body={response.text[:500]}"
            )
            message = f"AI service returned {status_code}"
            if status_code >= 500:
                raise RetryableProcessingError(message, status_code=status_code)
            raise TerminalProcessingError(message, status_code=status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise UnrecognizedResponseError("AI service returned a non-JSON body") from e

        result = parse_analysis_response(body)
        logger.info(
            f"Analysis service response received duration_ms={duration_ms} "
            f"has_brand={result.brand is not None} has_model={result.model is not None}"
        )
        return result
