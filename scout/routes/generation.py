"""
Generation API Routes
Single-mode generation proxy and the full scout message pipeline.
"""

from fastapi import APIRouter, HTTPException, status

from scout.infrastructure.observability.logging import get_logger
from scout.models.api.generation_request import GenerateRequest, ScoutGenerateRequest
from scout.models.api.generation_response import GenerateResponse, ScoutMessageResponse
from scout.services import generation_service
from scout.services.gemini_client import GeminiError
from scout.services.generation_service import GenerationError, GenerationValidationError
from scout.services.prompts import GENERATION_MODES

logger = get_logger(__name__)

router = APIRouter(tags=["generation"])


@router.post("/gemini", response_model=GenerateResponse, response_model_exclude_none=True)
async def generate(request: GenerateRequest):
    """Run one generation mode (title / opening / b_profile_line)."""
    try:
        value = await generation_service.generate(
            request.mode or "",
            paste_text=request.paste_text,
            faculty_name=request.faculty_name,
        )
    except GenerationValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except GeminiError as e:
        logger.error("Generation failed", mode=request.mode, error=str(e))
        raise HTTPException(status_code=e.status_code, detail=str(e))

    key = GENERATION_MODES[request.mode].response_key
    return GenerateResponse(**{key: value})


@router.post("/scout/generate", response_model=ScoutMessageResponse)
async def generate_scout_message(request: ScoutGenerateRequest):
    """Build a complete scout message from pasted profile text."""
    try:
        result = await generation_service.compose_scout_message(request.paste_text or "")
    except GenerationValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (GeminiError, GenerationError) as e:
        logger.error("Scout message generation failed", error=str(e))
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return ScoutMessageResponse.from_domain(result)
