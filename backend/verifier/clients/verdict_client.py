import json
import logging
import re
from typing import Any, List, Optional

import requests

from ..config import Settings
from ..errors import GenerationFailure
from ..fusion import merge_citations
from ..outcome import Degraded, Degradation, Ok, Outcome
from ..prompts import IMAGE_INSIGHT_PROMPT, SUMMARY_PROMPT, VERDICT_PROMPT
from ..schema import VerdictKind, VerdictResult
from .llm_client import LLMClient

logger = logging.getLogger(__name__)

MAX_SOURCE_CHARS = 12000
MAX_SUMMARY_INPUT_CHARS = 8000
MAX_IMAGE_BYTES = 8 * 1024 * 1024

MALFORMED_VERDICT = VerdictResult(
    verdict=VerdictKind.UNVERIFIABLE,
    rationale="Malformed JSON from model",
    citations=[],
)


def build_llm_client(settings: Settings) -> Optional[LLMClient]:
    """The shared Gemini client, or None in mock mode."""
    if settings.mock_mode:
        logger.warning("Mock mode enabled: model calls are replaced by canned responses")
        return None
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set. Model calls will fail.")
    return LLMClient(
        provider=settings.llm_provider,
        model=settings.llm_model,
        api_key=settings.gemini_api_key,
        timeout=settings.external_call_timeout_seconds,
        log_calls=settings.log_llm_calls,
        log_dir=settings.llm_log_dir,
    )


def _strip_fences(text: str) -> str:
    text = (text or "").strip()
    if "```" in text:
        text = text.split("```")[1]
        if text.startswith("json"):
            text = text[4:]
    return text.strip()


def _coerce_confidence(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    return max(0, min(100, int(round(number))))


def parse_verdict(raw: str) -> Optional[VerdictResult]:
    """Parse model output into a VerdictResult, or None when it is unusable."""
    try:
        data = json.loads(_strip_fences(raw))
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    citations = data.get("citations") or []
    if isinstance(citations, str):
        citations = [citations]
    if not isinstance(citations, list):
        citations = []

    return VerdictResult(
        verdict=VerdictKind.from_label(data.get("verdict")),
        label=str(data.get("verdict") or "").strip(),
        rationale=str(data.get("rationale") or ""),
        citations=merge_citations(c for c in citations if isinstance(c, str)),
        confidence=_coerce_confidence(data.get("confidence")),
    )


class VerdictGenerator:
    """
    Turns (claim, source text, extra evidence) into a structured verdict.

    Malformed model output is mapped to a safe Unverifiable default and
    reported as ``Degraded``. Failure of the model call itself is not
    recoverable and raises ``GenerationFailure``.
    """

    def __init__(self, llm: Optional[LLMClient], mock_mode: bool = False):
        self.llm = llm
        self.mock_mode = mock_mode or llm is None

    @classmethod
    def from_settings(cls, settings: Settings, llm: Optional[LLMClient] = None) -> "VerdictGenerator":
        if llm is None and not settings.mock_mode:
            llm = build_llm_client(settings)
        return cls(llm, mock_mode=settings.mock_mode)

    def generate(self, claim: str, source_text: str, extra_evidence: str = "") -> Outcome[VerdictResult]:
        if self.mock_mode:
            return Ok(self._mock_verdict(claim))

        prompt = VERDICT_PROMPT.format(
            claim=claim,
            source_text=(source_text or "")[:MAX_SOURCE_CHARS] or "N/A",
            extra_evidence=extra_evidence or "N/A",
        )

        try:
            result = self.llm.call(prompt, temperature=0.1, max_tokens=1024, json_output=True)
        except Exception as e:
            raise GenerationFailure(f"Verdict generation failed: {e}") from e

        logger.info(f"Verdict generation latency: {result['latency_ms']:.0f}ms")
        logger.debug(f"Verdict response: {result['response'][:500]}")

        verdict = parse_verdict(result["response"])
        if verdict is None:
            logger.error(f"Failed to parse verdict response: {result['response'][:500]}")
            return Degraded(MALFORMED_VERDICT, Degradation.GENERATION_MALFORMED, "unparseable verdict JSON")
        return Ok(verdict)

    @staticmethod
    def _mock_verdict(claim: str) -> VerdictResult:
        return VerdictResult(
            verdict=VerdictKind.UNVERIFIABLE,
            rationale=f"Mock mode: no model was consulted for the claim \"{claim[:120]}\".",
            citations=[],
        )


class Summarizer:
    def __init__(self, llm: Optional[LLMClient], mock_mode: bool = False):
        self.llm = llm
        self.mock_mode = mock_mode or llm is None

    def summarize(self, source_text: str) -> Outcome[List[str]]:
        if self.mock_mode:
            sentences = re.split(r'(?<=[.!?])\s+', source_text.strip())
            return Ok([s for s in sentences if s][:3])

        prompt = SUMMARY_PROMPT.format(text=source_text[:MAX_SUMMARY_INPUT_CHARS])
        try:
            result = self.llm.call(prompt, temperature=0.2, max_tokens=600, json_output=True)
            points = json.loads(_strip_fences(result["response"]))
        except Exception as e:
            logger.warning(f"Summarization failed: {e}")
            return Degraded([], Degradation.ENRICHMENT_UNAVAILABLE, str(e))

        if not isinstance(points, list):
            return Degraded([], Degradation.ENRICHMENT_UNAVAILABLE, "summary was not a JSON array")
        return Ok([str(p).strip() for p in points if str(p).strip()])


class ImageAnalyzer:
    """Short textual insight about an image, in the context of a claim."""

    def __init__(
        self,
        llm: Optional[LLMClient],
        user_agent: str = "FactCheckBot/1.0",
        timeout: float = 15.0,
        mock_mode: bool = False,
    ):
        self.llm = llm
        self.mock_mode = mock_mode or llm is None
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def analyze(self, image_url: str, claim: str) -> Outcome[str]:
        if self.mock_mode:
            return Ok("")

        try:
            with self.session.get(image_url, timeout=self.timeout, stream=True) as response:
                response.raise_for_status()
                mime_type = response.headers.get("Content-Type", "").split(";")[0].strip()
                if not mime_type.startswith("image/"):
                    return Degraded("", Degradation.ENRICHMENT_UNAVAILABLE, f"not an image: {mime_type or 'unknown'}")
                data = self._read_bounded(response)
            if data is None:
                return Degraded("", Degradation.ENRICHMENT_UNAVAILABLE, "image too large")

            parts = [
                IMAGE_INSIGHT_PROMPT.format(claim=claim[:600]),
                {"mime_type": mime_type, "data": data},
            ]
            result = self.llm.call(parts, temperature=0.2, max_tokens=300)
        except Exception as e:
            logger.warning(f"Image analysis failed for {image_url}: {e}")
            return Degraded("", Degradation.ENRICHMENT_UNAVAILABLE, str(e))

        return Ok(result["response"].strip())

    @staticmethod
    def _read_bounded(response) -> Optional[bytes]:
        """Image body, or None once it is known to exceed MAX_IMAGE_BYTES."""
        declared = response.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > MAX_IMAGE_BYTES:
            return None

        chunks = []
        size = 0
        for chunk in response.iter_content(chunk_size=64 * 1024):
            size += len(chunk)
            if size > MAX_IMAGE_BYTES:
                return None
            chunks.append(chunk)
        return b"".join(chunks)
