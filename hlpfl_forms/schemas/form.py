"""Pydantic schemas for forms, submissions and the dashboard."""

from typing import Any

from pydantic import Field

from hlpfl_forms.schemas.auth import ApiModel


class FormCreateRequest(ApiModel):
    # Optional here so a missing name gets the "Form name is required" error
    name: str | None = None
    description: str | None = None
    fields: list[Any] = Field(default_factory=list)
    settings: dict[str, Any] = Field(default_factory=dict)
    status: str | None = None


class FormUpdateRequest(ApiModel):
    name: str | None = None
    description: str | None = None
    fields: list[Any] | None = None
    settings: dict[str, Any] | None = None
    status: str | None = None


class FormResponse(ApiModel):
    id: str
    user_id: int | str
    name: str
    description: str = ""
    fields: list[Any] = Field(default_factory=list)
    settings: dict[str, Any] = Field(default_factory=dict)
    status: str
    created_at: str
    updated_at: str
    submission_count: int | None = None


class FormEnvelope(ApiModel):
    success: bool = True
    form: FormResponse


class FormDetailResponse(ApiModel):
    form: FormResponse


class FormListResponse(ApiModel):
    forms: list[FormResponse]


class SubmissionResponse(ApiModel):
    id: str
    form_id: str
    data: dict[str, Any]
    ip: str | None = None
    user_agent: str | None = None
    created_at: str


class SubmissionListResponse(ApiModel):
    submissions: list[SubmissionResponse]
    total: int


class SubmitResponse(ApiModel):
    success: bool = True
    message: str
    submission_id: str


class DashboardStatsResponse(ApiModel):
    total_forms: int
    total_submissions: int
    today_submissions: int
