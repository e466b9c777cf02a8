import logging
import threading
import time
from typing import List, Dict, Any, Optional

import requests

from ..fusion import merge_citations
from ..outcome import Degraded, Degradation, Ok, Outcome
from ..schema import Corroboration

logger = logging.getLogger(__name__)


class GoogleFactCheckClient:
    """
    Fact-check-database corroboration via the Google Fact Check Tools API.
    Aggregates published reviews from PolitiFact, Snopes, FactCheck.org, etc.
    """

    BASE_URL = "https://factchecktools.googleapis.com/v1alpha1/claims:search"

    def __init__(
        self,
        api_key: Optional[str],
        user_agent: str = "FactCheckBot/1.0",
        timeout: float = 15.0,
        rate_limit_delay: float = 1.0,
        limit: int = 5,
    ):
        """
        Initialize Google Fact Check client.

        Args:
            api_key: Google Cloud API key with Fact Check Tools API enabled; None disables lookups
            user_agent: User-Agent header sent with every request
            timeout: Per-request timeout in seconds
            rate_limit_delay: Minimum delay in seconds between API calls
            limit: Maximum number of reviews folded into the corroboration text
        """
        self.api_key = api_key
        self.timeout = timeout
        self.rate_limit_delay = rate_limit_delay
        self.limit = limit
        self.last_request_time = 0.0
        self._rate_lock = threading.Lock()
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

        if not api_key:
            logger.warning("No Google Fact Check API key provided. Fact-check database lookups disabled.")

    def search(self, claim: str, language: str = "en") -> List[Dict[str, Any]]:
        """
        Search for published fact-checks matching a claim.

        Returns:
            List of reviews with structure:
            [
                {
                    "statement": "The fact-checked claim",
                    "rating": "Mostly false",
                    "publisher": "PolitiFact",
                    "source_url": "https://...",
                    "claimant": "Speaker name (if available)"
                }
            ]
        """
        self._respect_rate_limit()

        params = {
            "query": claim,
            "pageSize": min(self.limit, 100),  # API max is 100
            "languageCode": language,
            "key": self.api_key,
        }

        logger.info(f"Searching Google Fact Check API for: {claim[:50]}...")
        response = self.session.get(self.BASE_URL, params=params, timeout=self.timeout)
        response.raise_for_status()

        results = []
        for claim_data in response.json().get("claims", []):
            result = self._parse_claim(claim_data)
            if result:
                results.append(result)

        logger.info(f"Found {len(results)} fact-check results")
        return results[:self.limit]

    def query(self, claim: str) -> Outcome[Corroboration]:
        if not self.api_key:
            return Ok(Corroboration())

        try:
            reviews = self.search(claim)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Google Fact Check API error: {str(e)}")
            return Degraded(Corroboration(), Degradation.ENRICHMENT_UNAVAILABLE, str(e))

        lines = []
        for r in reviews:
            line = f"{r['publisher']} rated \"{r['statement']}\" as {r['rating'] or 'unrated'}"
            if r["claimant"]:
                line += f" (claimant: {r['claimant']})"
            lines.append(line + ".")

        return Ok(Corroboration(
            text="\n".join(lines),
            citations=merge_citations(r["source_url"] for r in reviews),
        ))

    def _parse_claim(self, claim_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Parse a single claim from Google Fact Check API response."""
        reviews = claim_data.get("claimReview") or []
        if not reviews:
            return None

        # Use the first review (typically the most relevant)
        review = reviews[0]
        publisher = review.get("publisher") or {}

        return {
            "statement": claim_data.get("text", ""),
            "rating": (review.get("textualRating") or "").strip(),
            "publisher": publisher.get("name") or publisher.get("site") or "Unknown",
            "source_url": review.get("url", ""),
            "claimant": claim_data.get("claimant", ""),
        }

    def _respect_rate_limit(self):
        """Enforce rate limiting to avoid overwhelming the API."""
        # Reserve the next slot under the lock; wait for it outside.
        with self._rate_lock:
            now = time.time()
            slot = max(now, self.last_request_time + self.rate_limit_delay)
            self.last_request_time = slot
        if slot > now:
            time.sleep(slot - now)
