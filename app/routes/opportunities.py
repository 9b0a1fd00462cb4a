"""
Opportunities API Routes
Pipeline CRUD. DELETE archives; archived opportunities leave the metrics.
"""

from fastapi import APIRouter, Depends, Query, status

from app.models.api.crm_request import OpportunityCreateRequest, OpportunityUpdateRequest
from app.models.api.crm_response import ErrorResponse
from app.models.domain.crm_domain import Opportunity
from app.repositories import OpportunityRepository, get_opportunity_repository

router = APIRouter(
    prefix="/api/opportunities",
    tags=["opportunities"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)


@router.get("", response_model=list[Opportunity])
def list_opportunities(
    include_archived: bool = Query(
        default=False, alias="includeArchived", description="Include archived opportunities"
    ),
    opportunities: OpportunityRepository = Depends(get_opportunity_repository),
):
    return opportunities.list(include_archived=include_archived)


@router.get("/{opportunity_id}", response_model=Opportunity)
def get_opportunity(
    opportunity_id: str,
    opportunities: OpportunityRepository = Depends(get_opportunity_repository),
):
    return opportunities.get(opportunity_id)


@router.post("", response_model=Opportunity, status_code=status.HTTP_201_CREATED)
def create_opportunity(
    request: OpportunityCreateRequest,
    opportunities: OpportunityRepository = Depends(get_opportunity_repository),
):
    """Create an opportunity. Stage defaults to the first pipeline stage."""
    return opportunities.create(request.changes())


@router.put("/{opportunity_id}", response_model=Opportunity)
def update_opportunity(
    opportunity_id: str,
    request: OpportunityUpdateRequest,
    opportunities: OpportunityRepository = Depends(get_opportunity_repository),
):
    """Partially update an opportunity; probability is clamped to 0..100."""
    return opportunities.update(
        opportunity_id, request.changes(), expected_version=request.version
    )


@router.delete("/{opportunity_id}", response_model=Opportunity)
def archive_opportunity(
    opportunity_id: str,
    opportunities: OpportunityRepository = Depends(get_opportunity_repository),
):
    return opportunities.archive(opportunity_id)
