"""
Scout Domain Models
Transient values produced by the scout message pipeline:
paste text -> ExtractedFields / SelfPrCandidate -> pattern -> ScoutMessage.
Nothing here is persisted directly; the delivery log stores a snapshot.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Literal

Pattern = Literal["A", "B"]
Gender = Literal["male", "female", "other", "unknown"]

PATTERN_A: Pattern = "A"
PATTERN_B: Pattern = "B"
PATTERNS: tuple[str, ...] = (PATTERN_A, PATTERN_B)

GENDER_UNKNOWN: Gender = "unknown"
GENDERS: tuple[str, ...] = ("male", "female", "other", GENDER_UNKNOWN)

GENDER_LABELS = {
    "male": "男性",
    "female": "女性",
    "other": "その他",
    "unknown": "不明",
}


def gender_label(gender: str | None) -> str:
    """Display label for a gender value; unrecognised values are shown as-is."""
    if gender is None or gender == "":
        return "-"
    return GENDER_LABELS.get(gender, str(gender))


@dataclass(slots=True, frozen=True)
class ExtractedFields:
    """Best-effort fields pulled out of a pasted profile. Each one is independently nullable."""

    student_id7: str | None = None
    university_name: str | None = None
    faculty_name: str | None = None
    department_name: str | None = None
    prefecture: str | None = None
    graduation_year: str | None = None
    gender: Gender = GENDER_UNKNOWN
    last_login_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class SelfPrCandidate:
    """The block of pasted text believed to hold the self-PR narrative."""

    text: str
    heading: str | None = None  # keyword that located the block, None for fallbacks

    @property
    def char_count(self) -> int:
        # str length in Python is already a code point count
        return len(self.text)


@dataclass(slots=True)
class ScoutMessage:
    """Result of one run of the scout message pipeline."""

    pattern: Pattern
    pr_char_count: int
    greeting: str
    body: str
    message: str
    fields: ExtractedFields
    title: str | None = None
    opening_message: str | None = None
    profile_line: str | None = None

    @property
    def opening_char_count(self) -> int:
        return len(self.body.replace("\n", ""))
