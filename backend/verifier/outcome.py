# verifier/outcome.py
"""
Explicit result variants returned by every external collaborator.

A collaborator never signals a recoverable problem by raising. It returns
either ``Ok(value)`` or ``Degraded(value, kind, reason)`` where ``value`` is
already the safe fallback (empty evidence, empty insight, default verdict...).
The orchestrator branches on the variant to decide what to log and whether
to escalate.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class Degradation(str, Enum):
    EVIDENCE_UNAVAILABLE = "evidence_unavailable"
    ENRICHMENT_UNAVAILABLE = "enrichment_unavailable"
    GENERATION_MALFORMED = "generation_malformed"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Degraded(Generic[T]):
    value: T
    kind: Degradation
    reason: str = ""


Outcome = Union[Ok[T], Degraded[T]]
