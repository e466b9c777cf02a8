# verifier/claims.py
import hashlib
import json
from typing import Optional

from .schema import ExtractedEvidence

MAX_CLAIM_LINES = 6
MAX_CLAIM_CHARS = 600
FINGERPRINT_SOURCE_CHARS = 1000


def derive_claim(text: Optional[str], source_text: str, url: Optional[str]) -> str:
    """
    The claim shown to the user.

    Explicit text wins. Otherwise the first non-empty lines of the page are
    used, and when the page gave us nothing a placeholder naming the URL.
    """
    if text:
        return text
    lines = [line.strip() for line in source_text.splitlines() if line.strip()]
    derived = " ".join(lines[:MAX_CLAIM_LINES])[:MAX_CLAIM_CHARS].strip()
    if derived:
        return derived
    return f"Content from {url}"


def model_claim(claim_text: str, evidence: ExtractedEvidence) -> str:
    """The claim sent to the model: meta description when the page has one."""
    description = (evidence.description or "").strip()
    return description or claim_text


def fingerprint(claim: str, source_text: str, has_image: bool) -> str:
    payload = json.dumps(
        {
            "claim": claim,
            "source": source_text[:FINGERPRINT_SOURCE_CHARS],
            "has_image": bool(has_image),
        },
        sort_keys=True,
        ensure_ascii=False,
    )
    return hashlib.md5(payload.encode("utf-8")).hexdigest()
