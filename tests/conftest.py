from datetime import UTC, date, datetime

import pytest

from scout.models.domain.delivery_domain import Delivery
from scout.services.gemini_client import GeminiError


class FakeGeminiClient:
    """Returns queued raw responses in order; queued exceptions are raised."""

    def __init__(self, responses: list | None = None):
        self.responses = list(responses or [])
        self.calls: list[dict] = []

    async def generate(self, system_instruction: str, prompt: str, response_schema: dict) -> str:
        self.calls.append(
            {
                "system_instruction": system_instruction,
                "prompt": prompt,
                "response_schema": response_schema,
            }
        )
        if not self.responses:
            raise GeminiError("No response queued")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_gemini():
    def _make(*responses):
        return FakeGeminiClient(list(responses))

    return _make


def build_delivery(**overrides) -> Delivery:
    sent_at = datetime(2026, 2, 24, 6, 0, tzinfo=UTC)
    values = {
        "id": "5f0c2a52-4d1b-4f43-9f43-3f1f3f6b7c01",
        "created_at": sent_at,
        "sent_at": sent_at,
        "send_date": date(2026, 2, 24),
        "time_slot": "12-17",
        "template_type": "A",
        "final_message": "【挑戦を続けるあなたへ】\n\n初めまして。",
        "source_text": None,
        "student_id7": "1234567",
        "university_name": "東京大学",
        "gender": "female",
        "last_login_at": None,
        "offer_status": "none",
        "approved_at": None,
        "on_hold_at": None,
        "cancelled_at": None,
        "notes": {},
    }
    values.update(overrides)
    return Delivery(**values)


@pytest.fixture
def delivery_factory():
    return build_delivery
