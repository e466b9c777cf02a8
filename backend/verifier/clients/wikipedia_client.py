import logging
from typing import List, Dict, Any, Optional
from urllib.parse import quote

import requests

from ..fusion import merge_citations
from ..outcome import Degraded, Degradation, Ok, Outcome
from ..schema import Corroboration

logger = logging.getLogger(__name__)


class WikipediaClient:
    """
    General-knowledge corroboration from English Wikipedia.

    Searches page titles for the claim, then pulls each page's REST summary.
    """

    SEARCH_URL = "https://en.wikipedia.org/w/api.php"
    SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/{title}"

    def __init__(self, user_agent: str = "FactCheckBot/1.0", timeout: float = 15.0, limit: int = 3):
        self.timeout = timeout
        self.limit = limit
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def search_titles(self, query: str) -> List[str]:
        params = {
            "action": "query",
            "list": "search",
            "srsearch": query,
            "srlimit": str(self.limit),
            "format": "json",
            "utf8": "1",
        }
        response = self.session.get(self.SEARCH_URL, params=params, timeout=self.timeout)
        response.raise_for_status()
        results = response.json().get("query", {}).get("search", [])
        return [r["title"] for r in results if r.get("title")][:self.limit]

    def fetch_summary(self, title: str) -> Optional[Dict[str, Any]]:
        encoded = quote(title.replace(" ", "_"), safe="")
        response = self.session.get(self.SUMMARY_URL.format(title=encoded), timeout=self.timeout)
        if not response.ok:
            logger.debug(f"No Wikipedia summary for {title}: HTTP {response.status_code}")
            return None
        data = response.json()
        extract = (data.get("extract") or "").strip()
        if not extract:
            return None
        page_url = (
            data.get("content_urls", {}).get("desktop", {}).get("page")
            or f"https://en.wikipedia.org/wiki/{encoded}"
        )
        return {"title": data.get("title") or title, "extract": extract, "url": page_url}

    def query(self, claim: str) -> Outcome[Corroboration]:
        try:
            summaries = [s for s in (self.fetch_summary(t) for t in self.search_titles(claim)) if s]
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Wikipedia lookup failed: {e}")
            return Degraded(Corroboration(), Degradation.ENRICHMENT_UNAVAILABLE, str(e))

        logger.info(f"Wikipedia returned {len(summaries)} summaries for: {claim[:50]}...")
        return Ok(Corroboration(
            text="\n\n".join(f"{s['title']}\n{s['extract']}" for s in summaries),
            citations=merge_citations(s["url"] for s in summaries),
        ))
