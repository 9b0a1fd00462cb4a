"""
AI assistant API Routes
Pass-through endpoints to the AI gateway. Provider failures surface as 500
with the upstream message in `details`.
"""

from fastapi import APIRouter, Depends

from app.infrastructure.observability.logging import get_logger
from app.models.api.crm_request import AdviseRequest, PredictRequest, SummarizeRequest
from app.models.api.crm_response import (
    AdviseResponse,
    ErrorResponse,
    PredictResponse,
    SummarizeResponse,
)
from app.services.ai_gateway_service import AIGatewayService, get_ai_gateway

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/ai",
    tags=["ai"],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)


@router.post("/summarize", response_model=SummarizeResponse)
async def summarize_notes(
    request: SummarizeRequest, gateway: AIGatewayService = Depends(get_ai_gateway)
):
    """Summarize a contact's interaction notes."""
    logger.info("Summarize requested", notes_length=len(request.notes))
    summary = await gateway.summarize(request.notes)
    return SummarizeResponse(summary=summary)


@router.post("/predict", response_model=PredictResponse)
async def predict_probability(
    request: PredictRequest, gateway: AIGatewayService = Depends(get_ai_gateway)
):
    """Estimate an opportunity's closing probability (0-100)."""
    logger.info("Probability prediction requested", value=request.value)
    probability = await gateway.predict_probability(request.description, request.value)
    return PredictResponse(probability=probability)


@router.post("/advise", response_model=AdviseResponse)
async def advise_on_contact(
    request: AdviseRequest, gateway: AIGatewayService = Depends(get_ai_gateway)
):
    """Suggest next steps for working a client."""
    advice = await gateway.advise(request.contact or {}, request.opportunity_description)
    return AdviseResponse(advice=advice)
