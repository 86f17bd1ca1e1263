"""
A/B pattern classification.

Pattern A (personalised title + opening) is used when the student wrote a
substantial self-PR; pattern B (casual-interview template) otherwise.
"""

from scout.models.domain.scout_domain import PATTERN_A, PATTERN_B, Pattern, SelfPrCandidate

PATTERN_A_MIN_CHARS = 200


def classify(candidate: SelfPrCandidate | str) -> Pattern:
    """A when the candidate has at least 200 code points, else B."""
    text = candidate.text if isinstance(candidate, SelfPrCandidate) else candidate
    return PATTERN_A if len(text or "") >= PATTERN_A_MIN_CHARS else PATTERN_B
