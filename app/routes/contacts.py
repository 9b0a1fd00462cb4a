"""
Contacts API Routes
CRUD endpoints for contacts. DELETE archives instead of removing.
Domain errors propagate to the application exception handlers.
"""

from fastapi import APIRouter, Depends, Query, status

from app.models.api.crm_request import ContactCreateRequest, ContactUpdateRequest
from app.models.api.crm_response import ErrorResponse
from app.models.domain.crm_domain import Contact
from app.repositories import ContactRepository, get_contact_repository

router = APIRouter(
    prefix="/api/contacts",
    tags=["contacts"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)


@router.get("", response_model=list[Contact])
def list_contacts(
    include_archived: bool = Query(
        default=False, alias="includeArchived", description="Include archived contacts"
    ),
    contacts: ContactRepository = Depends(get_contact_repository),
):
    """List contacts in insertion order."""
    return contacts.list(include_archived=include_archived)


@router.get("/{contact_id}", response_model=Contact)
def get_contact(contact_id: str, contacts: ContactRepository = Depends(get_contact_repository)):
    return contacts.get(contact_id)


@router.post("", response_model=Contact, status_code=status.HTTP_201_CREATED)
def create_contact(
    request: ContactCreateRequest,
    contacts: ContactRepository = Depends(get_contact_repository),
):
    """Create a contact. Email must be valid and unique among active contacts."""
    return contacts.create(request.changes())


@router.put("/{contact_id}", response_model=Contact)
def update_contact(
    contact_id: str,
    request: ContactUpdateRequest,
    contacts: ContactRepository = Depends(get_contact_repository),
):
    """Partially update a contact."""
    return contacts.update(contact_id, request.changes(), expected_version=request.version)


@router.delete("/{contact_id}", response_model=Contact)
def archive_contact(
    contact_id: str, contacts: ContactRepository = Depends(get_contact_repository)
):
    """Archive (soft delete) a contact and return it."""
    return contacts.archive(contact_id)
