"""
Self-PR extraction.

Finds the block of a pasted profile that holds the student's self-promotion
text. Headings are searched in keyword priority order, so a "自己PR" heading
further down the paste still beats an earlier "強み" heading. When no heading
yields a block, the longest blank-line-delimited section of the paste is used.
"""

import re

from scout.models.domain.scout_domain import SelfPrCandidate

# Priority order. Generic "PR" / "経験" / "活動" were dropped: they matched
# unrelated labelled sections of the paste.
PR_HEADINGS: tuple[str, ...] = (
    "自己PR",
    "アピール",
    "強み",
    "ガクチカ",
    "学生時代に力を入れたこと",
)

# A line opening with one of these starts a new section.
SECTION_GLYPHS: tuple[str, ...] = (
    "【", "[", "［", "〈", "《", "<", "＜",
    "■", "□", "◆", "◇", "●", "○", "▼", "▽", "★", "☆",
)
SECTION_WORDS: tuple[str, ...] = ("資格", "趣味", "特技")
SECTION_LINE_MAX = 20

BLANK_RUN_LIMIT = 3

SECTION_SPLIT = re.compile(r"\n\s*\n")

# A line holding nothing but a PR heading, optionally bracketed or followed by a colon.
BARE_HEADING = re.compile(
    r"[【\[［]?(?:" + "|".join(map(re.escape, PR_HEADINGS)) + r")[】\]］]?\s*[:：]?"
)


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _is_blank(line: str) -> bool:
    return line.strip() == ""


def _starts_new_section(line: str) -> bool:
    stripped = line.strip()
    if stripped.startswith(SECTION_GLYPHS):
        return True
    if BARE_HEADING.fullmatch(stripped):
        return True
    if len(stripped) <= SECTION_LINE_MAX:
        return any(word in stripped for word in SECTION_WORDS)
    return False


def _trim_blank_edges(lines: list[str]) -> list[str]:
    start, end = 0, len(lines)
    while start < end and _is_blank(lines[start]):
        start += 1
    while end > start and _is_blank(lines[end - 1]):
        end -= 1
    return lines[start:end]


def _collect_block(lines: list[str], start: int) -> str:
    """Collect lines after a heading until the next section or a long blank run."""
    block: list[str] = []
    blank_run = 0

    for line in lines[start:]:
        if _is_blank(line):
            blank_run += 1
            if blank_run >= BLANK_RUN_LIMIT:
                break
            block.append(line)
            continue

        if _starts_new_section(line):
            break

        blank_run = 0
        block.append(line)

    return "\n".join(_trim_blank_edges(block))


def _find_under_heading(lines: list[str], heading: str) -> str:
    for index, line in enumerate(lines):
        if heading not in line:
            continue
        block = _collect_block(lines, index + 1)
        if block:
            return block
    return ""


def _longest_section(text: str) -> str:
    sections = [section for section in SECTION_SPLIT.split(text) if section.strip()]
    if not sections:
        return text.strip()

    longest = sections[0]
    for section in sections[1:]:
        if len(section) > len(longest):
            longest = section
    return longest.strip("\n")


def extract_self_pr(text: str) -> SelfPrCandidate:
    """
    Extract the self-PR candidate block from a pasted profile.

    Args:
        text: Raw paste

    Returns:
        SelfPrCandidate: never None; empty text only for an empty paste
    """
    if not text:
        return SelfPrCandidate(text="")

    text = _normalize_newlines(text)
    lines = text.split("\n")

    for heading in PR_HEADINGS:
        block = _find_under_heading(lines, heading)
        if block:
            return SelfPrCandidate(text=block, heading=heading)

    return SelfPrCandidate(text=_longest_section(text))
