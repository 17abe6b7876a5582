# HLPFL Forms Pydantic Schemas
from hlpfl_forms.schemas.auth import (
    ApiModel,
    AuthResponse,
    CsrfTokenResponse,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UserResponse,
    VerifyResponse,
)
from hlpfl_forms.schemas.form import (
    DashboardStatsResponse,
    FormCreateRequest,
    FormDetailResponse,
    FormEnvelope,
    FormListResponse,
    FormResponse,
    FormUpdateRequest,
    SubmissionListResponse,
    SubmissionResponse,
    SubmitResponse,
)

__all__ = [
    "ApiModel",
    "AuthResponse",
    "CsrfTokenResponse",
    "DashboardStatsResponse",
    "FormCreateRequest",
    "FormDetailResponse",
    "FormEnvelope",
    "FormListResponse",
    "FormResponse",
    "FormUpdateRequest",
    "LoginRequest",
    "MessageResponse",
    "RefreshRequest",
    "RefreshResponse",
    "RegisterRequest",
    "SubmissionListResponse",
    "SubmissionResponse",
    "SubmitResponse",
    "UserResponse",
    "VerifyResponse",
]
