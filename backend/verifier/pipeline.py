# verifier/pipeline.py
import asyncio
import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from .cache import EphemeralCache
from .claims import derive_claim, fingerprint, model_claim
from .config import Settings
from .errors import GenerationFailure, InvalidRequest
from .fusion import merge_citations, resolve_confidence
from .outcome import Degraded, Degradation, Outcome
from .schema import (
    Corroboration,
    ExtractedEvidence,
    FactCheckRequest,
    FactCheckResponse,
    VerdictResult,
)
from .storage import DurableCache

logger = logging.getLogger(__name__)

IMAGE_ANALYSIS_MAX_SOURCE_CHARS = 200
SUMMARY_MIN_SOURCE_CHARS = 300


class FactChecker:
    """
    Orchestrates one fact-check: caches, extraction, claim derivation, image
    analysis, verdict generation with escalation, summary and confidence.

    Collaborators are blocking and run in worker threads, each bounded by
    ``call_timeout`` so a slow third party never stalls other requests.
    """

    def __init__(
        self,
        extractor,
        image_analyzer,
        general_source,
        factcheck_source,
        generator,
        summarizer,
        ephemeral_cache: EphemeralCache,
        durable_cache: DurableCache,
        call_timeout: float = 45.0,
    ):
        self.extractor = extractor
        self.image_analyzer = image_analyzer
        self.general_source = general_source
        self.factcheck_source = factcheck_source
        self.generator = generator
        self.summarizer = summarizer
        self.ephemeral_cache = ephemeral_cache
        self.durable_cache = durable_cache
        self.call_timeout = call_timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "FactChecker":
        from .clients.google_factcheck_client import GoogleFactCheckClient
        from .clients.scrape_client import EvidenceExtractor
        from .clients.verdict_client import ImageAnalyzer, Summarizer, VerdictGenerator, build_llm_client
        from .clients.wikipedia_client import WikipediaClient

        llm = build_llm_client(settings)
        http = {"user_agent": settings.user_agent, "timeout": settings.http_timeout_seconds}
        return cls(
            extractor=EvidenceExtractor(**http),
            image_analyzer=ImageAnalyzer(llm, mock_mode=settings.mock_mode, **http),
            general_source=WikipediaClient(**http),
            factcheck_source=GoogleFactCheckClient(settings.google_factcheck_api_key, **http),
            generator=VerdictGenerator.from_settings(settings, llm=llm),
            summarizer=Summarizer(llm, mock_mode=settings.mock_mode),
            ephemeral_cache=EphemeralCache(
                ttl_seconds=settings.ephemeral_cache_ttl_seconds,
                max_entries=settings.ephemeral_cache_max_entries,
            ),
            durable_cache=DurableCache.from_url(settings.durable_cache_url),
            call_timeout=settings.external_call_timeout_seconds,
        )

    async def check(self, request: FactCheckRequest) -> FactCheckResponse:
        text, url = request.text, request.url
        if not text and not url:
            raise InvalidRequest()

        if url:
            stored = await self._durable_get(url)
            if stored is not None:
                return stored

        evidence = ExtractedEvidence()
        if url:
            outcome = await self._optional(
                "evidence extraction", self.extractor.extract, url,
                fallback=ExtractedEvidence(), kind=Degradation.EVIDENCE_UNAVAILABLE,
            )
            evidence = outcome.value

        source_text = evidence.source_text
        claim_text = derive_claim(text, source_text, url)
        claim = model_claim(claim_text, evidence)
        has_image = bool(evidence.image)

        image_insight = ""
        if has_image and len(source_text) < IMAGE_ANALYSIS_MAX_SOURCE_CHARS:
            outcome = await self._optional(
                "image analysis", self.image_analyzer.analyze, evidence.image, claim,
                fallback="", kind=Degradation.ENRICHMENT_UNAVAILABLE,
            )
            image_insight = outcome.value or ""

        key = fingerprint(claim, source_text, has_image)
        cached = self.ephemeral_cache.get(key)
        if cached is not None:
            logger.info(f"Ephemeral cache hit: {key}")
            if url:
                cached = cached.model_copy(update={"citations": merge_citations(cached.citations, [url])})
                await self._durable_set(url, cached)
            return cached

        verdict = await self._generate(claim, source_text, image_insight)
        if verdict.is_ambiguous:
            verdict = await self._escalate(claim, source_text, image_insight, verdict)

        summary_points = []
        if len(source_text) > SUMMARY_MIN_SOURCE_CHARS:
            outcome = await self._optional(
                "summarization", self.summarizer.summarize, source_text,
                fallback=[], kind=Degradation.ENRICHMENT_UNAVAILABLE,
            )
            summary_points = outcome.value if isinstance(outcome.value, list) else []

        response = FactCheckResponse(
            **evidence.model_dump(),
            claim_text=claim_text,
            verdict=verdict.verdict,
            verdict_label=verdict.display_label,
            rationale=verdict.rationale,
            citations=merge_citations(verdict.citations, [url] if url else []),
            confidence=resolve_confidence(verdict),
            image_insight=image_insight,
            summary_points=summary_points,
        )

        self.ephemeral_cache.set(key, response)
        if url:
            await self._durable_set(url, response)
        logger.info(f"Fact-check complete: verdict={response.verdict.value} confidence={response.confidence}")
        return response

    async def _escalate(
        self, claim: str, source_text: str, image_insight: str, primary: VerdictResult
    ) -> VerdictResult:
        logger.info(f"Ambiguous verdict ({primary.display_label}); querying corroboration sources")
        general, database = await asyncio.gather(
            self._optional(
                "general-knowledge lookup", self.general_source.query, claim,
                fallback=Corroboration(), kind=Degradation.ENRICHMENT_UNAVAILABLE,
            ),
            self._optional(
                "fact-check database lookup", self.factcheck_source.query, claim,
                fallback=Corroboration(), kind=Degradation.ENRICHMENT_UNAVAILABLE,
            ),
        )
        sources = [general.value, database.value]

        corroboration_text = "\n\n".join(s.text.strip() for s in sources if s.text.strip())
        if not corroboration_text:
            logger.info("No corroborating evidence found; keeping primary verdict")
            return primary

        corroboration_citations = merge_citations(*(s.citations for s in sources))
        extra = "\n\n".join(part for part in (image_insight, corroboration_text) if part)
        rerun = await self._generate(claim, source_text, extra)
        logger.info(f"Escalated verdict: {primary.display_label} -> {rerun.display_label}")
        return rerun.model_copy(update={
            "citations": merge_citations(rerun.citations, corroboration_citations, primary.citations),
        })

    async def _call(self, fn: Callable[..., Any], *args) -> Any:
        return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=self.call_timeout)

    async def _optional(
        self, what: str, fn: Callable[..., Outcome], *args, fallback: Any, kind: Degradation
    ) -> Outcome:
        """Run an enrichment collaborator; anything short of success degrades to ``fallback``."""
        try:
            outcome = await self._call(fn, *args)
        except asyncio.TimeoutError:
            outcome = Degraded(fallback, kind, f"timed out after {self.call_timeout}s")
        except Exception as e:
            outcome = Degraded(fallback, kind, f"{type(e).__name__}: {e}")

        if isinstance(outcome, Degraded):
            logger.warning(f"{what} degraded ({outcome.kind.value}): {outcome.reason}")
        return outcome

    async def _generate(self, claim: str, source_text: str, extra_evidence: str) -> VerdictResult:
        try:
            outcome = await self._call(self.generator.generate, claim, source_text, extra_evidence)
        except GenerationFailure:
            raise
        except asyncio.TimeoutError as e:
            raise GenerationFailure(f"Verdict generation timed out after {self.call_timeout}s") from e
        except Exception as e:
            raise GenerationFailure(f"Verdict generation failed: {e}") from e

        if isinstance(outcome, Degraded):
            logger.warning(f"Verdict generation degraded ({outcome.kind.value}): {outcome.reason}")
        return outcome.value

    async def _durable_get(self, url: str) -> Optional[FactCheckResponse]:
        try:
            return await asyncio.to_thread(self.durable_cache.get, url)
        except SQLAlchemyError as e:
            logger.error(f"Durable cache read failed for {url}: {e}")
            return None
        except ValidationError as e:
            logger.error(f"Unreadable durable cache entry for {url}, treating as miss: {e}")
            return None

    async def _durable_set(self, url: str, response: FactCheckResponse):
        try:
            await asyncio.to_thread(self.durable_cache.set, url, response)
        except SQLAlchemyError as e:
            logger.error(f"Durable cache write failed for {url}: {e}")
