# verifier/fusion.py
from typing import Iterable, List, Optional

from .schema import VerdictKind, VerdictResult

FALLBACK_CONFIDENCE = {
    VerdictKind.TRUE: 95,
    VerdictKind.MOSTLY_TRUE: 85,
    VerdictKind.MIXED: 60,
    VerdictKind.MOSTLY_FALSE: 65,
    VerdictKind.FALSE: 40,
    VerdictKind.UNVERIFIABLE: 55,
}

def fallback_confidence(kind: VerdictKind) -> int:
    return FALLBACK_CONFIDENCE.get(kind, 55)

def resolve_confidence(result: VerdictResult) -> int:
    # Generator-supplied confidence wins; the table only backfills.
    if result.confidence is not None:
        return result.confidence
    return fallback_confidence(result.verdict)

def merge_citations(*groups: Optional[Iterable[str]]) -> List[str]:
    """Ordered union of citation groups, first occurrence wins, blanks dropped."""
    seen = set()
    merged = []
    for group in groups:
        for c in group or []:
            c = str(c).strip()
            if c and c not in seen:
                seen.add(c)
                merged.append(c)
    return merged
