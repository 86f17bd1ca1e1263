from unittest.mock import AsyncMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from scout.models.domain.scout_domain import ExtractedFields, ScoutMessage
from scout.routes import generation
from scout.services.gemini_client import GeminiError
from scout.services.generation_service import GenerationError, GenerationValidationError


def make_client() -> TestClient:
    app = FastAPI()
    app.include_router(generation.router)
    return TestClient(app)


def test_single_mode_returns_only_its_key(monkeypatch):
    generate_mock = AsyncMock(return_value="挑戦を続けるあなたへ")
    monkeypatch.setattr("scout.services.generation_service.generate", generate_mock)

    response = make_client().post("/gemini", json={"mode": "title", "paste_text": "自己PR..."})

    assert response.status_code == 200
    assert response.json() == {"title": "挑戦を続けるあなたへ"}
    generate_mock.assert_awaited_once_with("title", paste_text="自己PR...", faculty_name=None)


def test_profile_line_mode_key(monkeypatch):
    monkeypatch.setattr(
        "scout.services.generation_service.generate",
        AsyncMock(return_value="経済学部で学ばれていると拝見しました。"),
    )

    response = make_client().post(
        "/gemini", json={"mode": "b_profile_line", "faculty_name": "経済学部"}
    )

    assert response.json() == {"profile_line": "経済学部で学ばれていると拝見しました。"}


def test_unknown_mode_is_400():
    response = make_client().post("/gemini", json={"mode": "summary", "paste_text": "x"})

    assert response.status_code == 400


def test_upstream_status_is_passed_through(monkeypatch):
    monkeypatch.setattr(
        "scout.services.generation_service.generate",
        AsyncMock(side_effect=GeminiError("Resource exhausted", status_code=429)),
    )

    response = make_client().post("/gemini", json={"mode": "opening", "paste_text": "x"})

    assert response.status_code == 429
    assert response.json()["detail"] == "Resource exhausted"


def test_scout_pipeline_response(monkeypatch):
    result = ScoutMessage(
        pattern="B",
        pr_char_count=42,
        greeting="【就活相談OK｜カジュアル面談】",
        body="初めまして。\nぜひ一度お話したくご連絡しました！",
        message="【就活相談OK｜カジュアル面談】\n\n初めまして。",
        fields=ExtractedFields(student_id7="1234567", gender="female"),
        opening_message="初めまして。ぜひ一度お話したくご連絡しました！",
    )
    compose_mock = AsyncMock(return_value=result)
    monkeypatch.setattr("scout.services.generation_service.compose_scout_message", compose_mock)

    response = make_client().post("/scout/generate", json={"paste_text": "ID: 1234567"})

    assert response.status_code == 200
    body = response.json()
    assert body["pattern"] == "B"
    assert body["pr_char_count"] == 42
    assert body["opening_char_count"] == len("初めまして。ぜひ一度お話したくご連絡しました！")
    assert body["title"] is None
    assert body["fields"]["student_id7"] == "1234567"
    assert body["fields"]["gender"] == "female"
    compose_mock.assert_awaited_once_with("ID: 1234567")


def test_scout_pipeline_blank_paste_is_400(monkeypatch):
    monkeypatch.setattr(
        "scout.services.generation_service.compose_scout_message",
        AsyncMock(side_effect=GenerationValidationError("paste_text is required")),
    )

    response = make_client().post("/scout/generate", json={})

    assert response.status_code == 400


def test_scout_pipeline_generation_failure(monkeypatch):
    monkeypatch.setattr(
        "scout.services.generation_service.compose_scout_message",
        AsyncMock(side_effect=GenerationError("titleが取得できませんでした")),
    )

    response = make_client().post("/scout/generate", json={"paste_text": "自己PR"})

    assert response.status_code == 500
    assert response.json()["detail"] == "titleが取得できませんでした"
