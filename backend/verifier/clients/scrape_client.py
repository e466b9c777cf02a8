import logging
from typing import Optional
from urllib.parse import urljoin

import requests
import trafilatura
from bs4 import BeautifulSoup

from ..outcome import Degraded, Degradation, Ok, Outcome
from ..schema import ExtractedEvidence

logger = logging.getLogger(__name__)


def _meta(soup: BeautifulSoup, *names: str) -> str:
    for name in names:
        tag = soup.find("meta", attrs={"property": name}) or soup.find("meta", attrs={"name": name})
        if tag and tag.get("content"):
            return tag["content"].strip()
    return ""


def parse_html(html: str, url: str) -> ExtractedEvidence:
    """
    Best-effort evidence from a page.

    trafilatura provides the readable body and metadata. BeautifulSoup fills
    whatever it left empty: Open Graph / Twitter meta tags, <title>,
    rel=canonical and finally plain <p> text.
    """
    text = trafilatura.extract(html, url=url, include_comments=False, include_tables=False) or ""
    logger.info(f"Extracted clean text length: {len(text)} characters")

    meta = trafilatura.extract_metadata(html, default_url=url)
    title = (getattr(meta, "title", None) or "") if meta else ""
    description = (getattr(meta, "description", None) or "") if meta else ""
    image = (getattr(meta, "image", None) or "") if meta else ""
    canonical = (getattr(meta, "url", None) or "") if meta else ""

    if not (text and title and description and image and canonical):
        soup = BeautifulSoup(html, "lxml")
        title = title or _meta(soup, "og:title", "twitter:title") or (
            soup.title.get_text(strip=True) if soup.title else ""
        )
        description = description or _meta(soup, "og:description", "twitter:description", "description")
        image = image or _meta(soup, "og:image", "og:image:url", "twitter:image")
        if not canonical:
            link = soup.find("link", rel="canonical")
            canonical = (link.get("href") or "").strip() if link else ""
        if not text:
            paragraphs = [p.get_text(" ", strip=True) for p in soup.find_all("p")]
            text = "\n".join(p for p in paragraphs if p)
            logger.debug(f"Paragraph fallback text length: {len(text)} characters")

    return ExtractedEvidence(
        title=title.strip(),
        text=text.strip(),
        description=description.strip(),
        image=urljoin(url, image) if image else "",
        canonical_url=urljoin(url, canonical) if canonical else "",
    )


class EvidenceExtractor:
    def __init__(self, user_agent: str = "FactCheckBot/1.0", timeout: float = 15.0):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def fetch(self, url: str) -> Optional[str]:
        logger.info(f"Fetching URL: {url}")
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        logger.info(f"Downloaded content length: {len(response.content)} bytes")
        return response.text

    def extract(self, url: str) -> Outcome[ExtractedEvidence]:
        try:
            html = self.fetch(url)
            if not html:
                return Degraded(ExtractedEvidence(), Degradation.EVIDENCE_UNAVAILABLE, "empty document")
            return Ok(parse_html(html, url))
        except Exception as e:
            logger.warning(f"Evidence extraction failed for {url}: {e}")
            return Degraded(ExtractedEvidence(), Degradation.EVIDENCE_UNAVAILABLE, str(e))
