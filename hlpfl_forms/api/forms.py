"""Form management endpoints. All routes are owner-scoped."""

from typing import Any

from fastapi import APIRouter, Depends, status

from hlpfl_forms.dependencies import AppServices, get_current_user_id, get_services
from hlpfl_forms.schemas.auth import MessageResponse
from hlpfl_forms.schemas.form import (
    FormCreateRequest,
    FormDetailResponse,
    FormEnvelope,
    FormListResponse,
    FormResponse,
    FormUpdateRequest,
    SubmissionListResponse,
    SubmissionResponse,
)

router = APIRouter(prefix="/forms", tags=["forms"])


@router.get("", response_model=FormListResponse)
async def list_forms(
    user_id: Any = Depends(get_current_user_id),
    services: AppServices = Depends(get_services),
) -> FormListResponse:
    """List the caller's forms with submission counts."""
    forms = await services.forms.list_forms(user_id)
    return FormListResponse(forms=[FormResponse(**form) for form in forms])


@router.post("", response_model=FormEnvelope, status_code=status.HTTP_201_CREATED)
async def create_form(
    request: FormCreateRequest,
    user_id: Any = Depends(get_current_user_id),
    services: AppServices = Depends(get_services),
) -> FormEnvelope:
    form = await services.forms.create_form(user_id, request.model_dump())
    return FormEnvelope(form=FormResponse(**form))


@router.get("/{form_id}", response_model=FormDetailResponse)
async def get_form(
    form_id: str,
    user_id: Any = Depends(get_current_user_id),
    services: AppServices = Depends(get_services),
) -> FormDetailResponse:
    form = await services.forms.get_form(form_id, user_id)
    return FormDetailResponse(form=FormResponse(**form))


@router.put("/{form_id}", response_model=FormEnvelope)
async def update_form(
    form_id: str,
    request: FormUpdateRequest,
    user_id: Any = Depends(get_current_user_id),
    services: AppServices = Depends(get_services),
) -> FormEnvelope:
    """Merge the provided fields into the form. Ownership cannot change."""
    form = await services.forms.update_form(
        form_id, user_id, request.model_dump(exclude_unset=True)
    )
    return FormEnvelope(form=FormResponse(**form))


@router.delete("/{form_id}", response_model=MessageResponse)
async def delete_form(
    form_id: str,
    user_id: Any = Depends(get_current_user_id),
    services: AppServices = Depends(get_services),
) -> MessageResponse:
    """Delete a form together with its submissions."""
    await services.forms.delete_form(form_id, user_id)
    return MessageResponse(message="Form deleted successfully")


@router.get("/{form_id}/submissions", response_model=SubmissionListResponse)
async def list_submissions(
    form_id: str,
    user_id: Any = Depends(get_current_user_id),
    services: AppServices = Depends(get_services),
) -> SubmissionListResponse:
    submissions = await services.forms.list_submissions(form_id, user_id)
    return SubmissionListResponse(
        submissions=[SubmissionResponse(**s) for s in submissions],
        total=len(submissions),
    )
