# verifier/schema.py
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class VerdictKind(str, Enum):
    TRUE = "True"
    MOSTLY_TRUE = "Mostly True"
    MIXED = "Mixed"
    MOSTLY_FALSE = "Mostly False"
    FALSE = "False"
    UNVERIFIABLE = "Unverifiable"

    @classmethod
    def from_label(cls, label) -> "VerdictKind":
        """
        Normalize a free-form model label into the closed vocabulary.

        Matching is case-insensitive and by substring, "true" taking
        precedence over "false", and "mostly" acting as a modifier.
        """
        text = str(label or "").lower()
        mostly = "mostly" in text
        if "true" in text:
            return cls.MOSTLY_TRUE if mostly else cls.TRUE
        if "false" in text:
            return cls.MOSTLY_FALSE if mostly else cls.FALSE
        if "mixed" in text:
            return cls.MIXED
        return cls.UNVERIFIABLE


def label_is_ambiguous(label) -> bool:
    """Escalation trigger, read off the raw label before any normalization."""
    text = str(label or "").lower()
    return "mixed" in text or "unverifiable" in text


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FactCheckRequest(CamelModel):
    text: Optional[str] = None
    url: Optional[str] = None

    @field_validator('text', 'url', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ExtractedEvidence(CamelModel):
    title: str = ""
    text: str = ""
    description: str = ""
    image: str = ""
    canonical_url: str = ""

    @property
    def source_text(self) -> str:
        return f"{self.title}\n\n{self.text}".strip()


class VerdictResult(CamelModel):
    verdict: VerdictKind = VerdictKind.UNVERIFIABLE
    label: str = ""  # raw model label
    rationale: str = ""
    citations: List[str] = Field(default_factory=list)
    confidence: Optional[int] = Field(default=None, ge=0, le=100)

    @property
    def display_label(self) -> str:
        return self.label.strip() or self.verdict.value

    @property
    def is_ambiguous(self) -> bool:
        return label_is_ambiguous(self.display_label)


class Corroboration(CamelModel):
    text: str = ""
    citations: List[str] = Field(default_factory=list)


class FactCheckResponse(ExtractedEvidence):
    claim_text: str = ""
    verdict: VerdictKind = VerdictKind.UNVERIFIABLE
    verdict_label: str = ""
    rationale: str = ""
    citations: List[str] = Field(default_factory=list)
    confidence: int = Field(ge=0, le=100)
    image_insight: str = ""
    summary_points: List[str] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class ErrorOut(BaseModel):
    error: str
