"""Public form submission endpoint.

No authentication; the auth middleware applies a per-form, per-client rate
limit before the request reaches this handler.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request, status

from hlpfl_forms.core.request_utils import get_client_id
from hlpfl_forms.dependencies import AppServices, get_services
from hlpfl_forms.schemas.form import SubmitResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/submit", tags=["submissions"])


@router.post("/{form_id}", response_model=SubmitResponse, status_code=status.HTTP_201_CREATED)
async def submit_form(
    form_id: str,
    http_request: Request,
    data: dict[str, Any] = Body(...),
    services: AppServices = Depends(get_services),
) -> SubmitResponse:
    """Record a submission against an active form."""
    submission = await services.forms.submit(
        form_id,
        data,
        ip=get_client_id(http_request),
        user_agent=http_request.headers.get("User-Agent"),
    )
    logger.info(f"Submission {submission['id']} recorded for form {form_id}")
    return SubmitResponse(
        message="Form submitted successfully",
        submission_id=submission["id"],
    )
