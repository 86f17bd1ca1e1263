"""
Reflow of generated opening paragraphs.

The generation API returns prose with arbitrary spacing and line breaks. This
module rebuilds it from scratch into a short block of lines:

1. normalise whitespace and drop every line break
2. make sure the closing sentence is present exactly once, at the very end
3. split into sentences on "。" (delimiter kept)
4. greedily pack sentences into lines of at most ``max_chars``; a sentence
   longer than that is cut on "、", then on particles, then hard-cut
5. merge the shortest adjacent pair until there are at most ``max_lines``
6. fold lines shorter than ``min_chars`` into a neighbour
7. check the closing sentence is whole and ends the last line, rebuilding
   the tail if it is not

All lengths are code point counts. The fixed company boilerplate must never
be passed through here; it is appended verbatim by the template assembler.
"""

import re
from dataclasses import dataclass

CLOSING_SENTENCE = "ぜひ一度お話したくご連絡しました！"

SENTENCE_END = "。"
CLAUSE_END = "、"
TERMINAL_MARKS = ("。", "！", "!")
PARTICLES = frozenset("がをにでとはもへや")

_ASCII_SPACES = re.compile(r"[ \t\f\v]+")
_FULLWIDTH_SPACE_RUN = re.compile(r"　{2,}")


@dataclass(frozen=True, slots=True)
class ReflowPolicy:
    max_chars: int = 34
    max_lines: int = 6
    min_chars: int = 12
    particle_split_min: int = 18


DEFAULT_POLICY = ReflowPolicy()


def normalize_text(raw_text: str) -> str:
    """Strip ASCII spaces and line breaks, collapse runs of full-width spaces."""
    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    text = _ASCII_SPACES.sub("", text)
    text = _FULLWIDTH_SPACE_RUN.sub("　", text)
    return text.replace("\n", "")


def ensure_closing(text: str, closing: str = CLOSING_SENTENCE) -> str:
    """
    Return text ending with exactly one copy of ``closing``.

    Anything after the last occurrence is dropped and earlier occurrences are
    removed. When absent, a terminal "。" is added if needed, then the closing.
    """
    if closing in text:
        head = text[: text.rfind(closing)].replace(closing, "")
        return head + closing

    if text and not text.endswith(TERMINAL_MARKS):
        text += SENTENCE_END
    return text + closing


def _split_keep(text: str, delimiter: str) -> list[str]:
    """Split after every delimiter, keeping it attached to the left piece."""
    pieces: list[str] = []
    buf = ""
    for ch in text:
        buf += ch
        if ch == delimiter:
            pieces.append(buf)
            buf = ""
    if buf:
        pieces.append(buf)
    return pieces


def split_sentences(text: str) -> list[str]:
    return _split_keep(text, SENTENCE_END)


def _split_on_particles(text: str, policy: ReflowPolicy) -> list[str]:
    pieces: list[str] = []
    buf = ""
    for ch in text:
        buf += ch
        if ch in PARTICLES and len(buf) >= policy.particle_split_min:
            pieces.append(buf)
            buf = ""
    if buf:
        pieces.append(buf)
    return pieces


def _split_long_sentence(sentence: str, policy: ReflowPolicy) -> list[str]:
    """Cut an over-long sentence on clause commas, then particles, then hard width."""
    if CLAUSE_END in sentence:
        clauses = _split_keep(sentence, CLAUSE_END)
    else:
        clauses = [sentence]

    fragments: list[str] = []
    for clause in clauses:
        if len(clause) <= policy.max_chars:
            fragments.append(clause)
            continue
        for piece in _split_on_particles(clause, policy):
            if len(piece) <= policy.max_chars:
                fragments.append(piece)
            else:
                fragments.extend(
                    piece[i : i + policy.max_chars]
                    for i in range(0, len(piece), policy.max_chars)
                )
    return fragments


def _feed(lines: list[str], piece: str, policy: ReflowPolicy) -> None:
    if not piece:
        return
    if lines and len(lines[-1]) + len(piece) <= policy.max_chars:
        lines[-1] += piece
    else:
        lines.append(piece)


def _pack(body: str, policy: ReflowPolicy) -> list[str]:
    lines: list[str] = []
    for sentence in split_sentences(body):
        if len(sentence) > policy.max_chars:
            for fragment in _split_long_sentence(sentence, policy):
                _feed(lines, fragment, policy)
        else:
            _feed(lines, sentence, policy)
    return lines


def _merge_to_max_lines(lines: list[str], max_lines: int) -> list[str]:
    lines = list(lines)
    while len(lines) > max_lines:
        best = min(range(len(lines) - 1), key=lambda i: len(lines[i]) + len(lines[i + 1]))
        lines[best : best + 2] = [lines[best] + lines[best + 1]]
    return lines


def _merge_short_lines(lines: list[str], min_chars: int) -> list[str]:
    lines = list(lines)
    i = 0
    while i < len(lines) and len(lines) > 1:
        if len(lines[i]) >= min_chars:
            i += 1
            continue
        if i > 0:
            lines[i - 1] += lines.pop(i)
        else:
            lines[1] = lines[0] + lines[1]
            lines.pop(0)
    return lines


def _closing_is_pinned(lines: list[str], closing: str) -> bool:
    if not lines or not lines[-1].endswith(closing):
        return False
    return "".join(lines).count(closing) == 1


def _rebuild_tail(lines: list[str], closing: str, policy: ReflowPolicy) -> list[str]:
    """Repack the body and give the closing sentence a line of its own."""
    body = "".join(lines).replace(closing, "")
    rebuilt = _pack(body, policy)
    rebuilt = _merge_to_max_lines(rebuilt, policy.max_lines - 1)
    rebuilt.append(closing)
    return rebuilt


def reflow_opening_message(
    raw_text: str,
    closing: str = CLOSING_SENTENCE,
    policy: ReflowPolicy = DEFAULT_POLICY,
) -> str:
    """
    Re-wrap a generated opening paragraph.

    Args:
        raw_text: Opening paragraph as returned by the generation API
        closing: Sentence that must end the paragraph, exactly once
        policy: Line width / count limits

    Returns:
        Newline-joined lines; the last line ends with ``closing``
    """
    normalized = normalize_text(raw_text or "")
    text = ensure_closing(normalized, closing)

    # A single unpunctuated sentence that fits the width stays on one line with the closing.
    if SENTENCE_END not in normalized and len(normalized) < policy.max_chars:
        return text

    body = text[: len(text) - len(closing)]

    lines = _pack(body, policy)
    # The closing sentence is packed as one unit and never cut.
    if lines and len(lines[-1]) + len(closing) <= policy.max_chars:
        lines[-1] += closing
    else:
        lines.append(closing)

    lines = _merge_to_max_lines(lines, policy.max_lines)
    lines = _merge_short_lines(lines, policy.min_chars)

    if not _closing_is_pinned(lines, closing):
        lines = _rebuild_tail(lines, closing, policy)

    return "\n".join(lines)
