"""
Scout message generation.
Runs one generation mode against Gemini, re-validates what comes back, and
drives the full pipeline from pasted profile text to the final message.
"""

import json
import re

from scout.infrastructure.observability.logging import get_logger
from scout.models.domain.scout_domain import PATTERN_A, ScoutMessage
from scout.services.gemini_client import GeminiClient, GeminiError, get_gemini_client
from scout.services.prompts import (
    GENERATION_MODES,
    MODE_B_PROFILE_LINE,
    MODE_OPENING,
    MODE_TITLE,
)
from scout.services.scout.classifier import classify
from scout.services.scout.field_extractors import extract_fields
from scout.services.scout.reflow import reflow_opening_message
from scout.services.scout.self_pr import extract_self_pr
from scout.services.scout.templates import assemble, build_greeting_a, build_greeting_b

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\s*")


class GenerationValidationError(Exception):
    """Raised when a generation request is missing its required input."""


class GenerationError(Exception):
    """Raised when the model answered but the answer is unusable."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


def remove_ascii_spaces(text: str) -> str:
    return text.replace(" ", "")


def extract_response_value(raw_text: str, key: str, max_chars: int) -> str:
    """
    Recover the value of ``key`` from a model response.

    Tries, in order: the response as a JSON object, a ``"key": "..."`` regex
    over the raw text, and finally the raw text with code fences removed,
    truncated to ``max_chars`` code points.
    """
    raw_text = raw_text or ""

    try:
        parsed = json.loads(raw_text)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        value = parsed.get(key)
        if isinstance(value, str) and value:
            return value

    match = re.search(rf'"{re.escape(key)}"\s*:\s*"([^"]+)"', raw_text)
    if match:
        return match.group(1).replace("\\n", "\n")

    cleaned = _CODE_FENCE.sub("", raw_text).strip()
    return cleaned[:max_chars]


def clean_title(value: str) -> str:
    """Title: no ASCII spaces, at most 20 code points."""
    limit = GENERATION_MODES[MODE_TITLE].max_chars
    return remove_ascii_spaces(value).strip()[:limit]


def clean_opening_message(value: str) -> str:
    limit = GENERATION_MODES[MODE_OPENING].max_chars
    return value[:limit]


def clean_profile_line(value: str) -> str:
    """Profile line: no ASCII spaces, kept to a single line."""
    return remove_ascii_spaces(value).replace("\n", "").strip()


_CLEANERS = {
    MODE_TITLE: clean_title,
    MODE_OPENING: clean_opening_message,
    MODE_B_PROFILE_LINE: clean_profile_line,
}


async def generate(
    mode: str,
    paste_text: str | None = None,
    faculty_name: str | None = None,
    client: GeminiClient | None = None,
) -> str:
    """
    Run a single generation mode.

    Args:
        mode: "title", "opening" or "b_profile_line"
        paste_text: Pasted profile (title / opening)
        faculty_name: Faculty name (b_profile_line)
        client: Gemini client; the shared one when omitted

    Returns:
        str: Re-validated value for the mode's response key

    Raises:
        GenerationValidationError: Unknown mode or missing input
        GeminiError: Upstream failure
    """
    generation_mode = GENERATION_MODES.get(mode)
    if generation_mode is None:
        raise GenerationValidationError("mode must be 'title', 'opening', or 'b_profile_line'")

    if mode == MODE_B_PROFILE_LINE:
        if not faculty_name or not faculty_name.strip():
            raise GenerationValidationError("faculty_name is required for b_profile_line mode")
        prompt = generation_mode.render_prompt(faculty_name=faculty_name.strip())
    else:
        if not paste_text or not paste_text.strip():
            raise GenerationValidationError("paste_text is required")
        prompt = generation_mode.render_prompt(paste_text=paste_text)

    client = client or get_gemini_client()
    raw_text = await client.generate(
        generation_mode.system_instruction, prompt, generation_mode.response_schema()
    )

    value = extract_response_value(
        raw_text, generation_mode.response_key, generation_mode.max_chars
    )
    cleaned = _CLEANERS[mode](value)

    logger.info(
        "Generation completed",
        mode=mode,
        raw_length=len(raw_text),
        result_length=len(cleaned),
    )
    return cleaned


async def compose_scout_message(paste_text: str, client: GeminiClient | None = None) -> ScoutMessage:
    """
    Build a complete scout message from a pasted profile.

    extract fields -> self-PR -> classify -> greeting (A: generated title,
    B: template with optional generated profile line) -> generated opening ->
    reflow -> assemble.
    """
    if not paste_text or not paste_text.strip():
        raise GenerationValidationError("paste_text is required")

    client = client or get_gemini_client()

    fields = extract_fields(paste_text)
    candidate = extract_self_pr(paste_text)
    pattern = classify(candidate)

    logger.info(
        "Scout pipeline started",
        paste_length=len(paste_text),
        pr_char_count=candidate.char_count,
        pattern=pattern,
    )

    title = None
    profile_line = None
    if pattern == PATTERN_A:
        title = await generate(MODE_TITLE, paste_text=paste_text, client=client)
        if not title:
            raise GenerationError("titleが取得できませんでした")
        greeting = build_greeting_a(title)
    else:
        if fields.faculty_name:
            try:
                profile_line = await generate(
                    MODE_B_PROFILE_LINE, faculty_name=fields.faculty_name, client=client
                )
            except GeminiError as e:
                # The default line is an acceptable stand-in for this one sentence.
                logger.warning("Profile line generation failed", error=str(e))
                profile_line = None
        greeting = build_greeting_b(profile_line)

    opening_message = await generate(MODE_OPENING, paste_text=paste_text, client=client)
    if not opening_message:
        raise GenerationError("opening_messageが取得できませんでした")

    body = reflow_opening_message(opening_message)
    message = assemble(greeting, body)

    result = ScoutMessage(
        pattern=pattern,
        pr_char_count=candidate.char_count,
        greeting=greeting,
        body=body,
        message=message,
        fields=fields,
        title=title,
        opening_message=opening_message,
        profile_line=profile_line or None,
    )

    logger.info(
        "Scout message composed",
        pattern=pattern,
        opening_char_count=result.opening_char_count,
        message_length=len(message),
    )
    return result
