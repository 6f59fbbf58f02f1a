"""Segment API endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Response, status

from crm_engine.auth.dependencies import CurrentUser
from crm_engine.dependencies import AppSettings, BackendClient
from crm_engine.schemas.segment import PreviewRequest, PreviewResult, Segment, SegmentCreate
from crm_engine.services.segmentation import build_segment_request, preview
from crm_engine.utils.audit import audit_logged

router = APIRouter()


@router.get("", response_model=list[Segment], response_model_by_alias=True)
async def list_segments(current_user: CurrentUser, backend: BackendClient) -> list[Segment]:
    """List the segments stored in the CRM backend."""
    return await backend.list_segments(current_user.token)


@router.post("/preview", response_model=PreviewResult, response_model_by_alias=True)
async def preview_segment(
    body: PreviewRequest,
    current_user: CurrentUser,
    backend: BackendClient,
    settings: AppSettings,
) -> PreviewResult:
    """Count the audience a rule set selects and return a small sample of it."""
    sample_size = (
        body.sample_size if body.sample_size is not None else settings.preview_sample_size
    )
    customers = await backend.list_customers(current_user.token)
    return preview(customers, body.rules, now=datetime.now(UTC), sample_size=sample_size)


@router.post(
    "",
    response_model=Segment,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(audit_logged("create_segment"))],
)
async def create_segment(
    body: SegmentCreate,
    current_user: CurrentUser,
    backend: BackendClient,
) -> Segment:
    """Validate a segment and hand it to the CRM backend for storage."""
    request = build_segment_request(body.name, body.rules)
    return await backend.create_segment(current_user.token, request)


@router.delete(
    "/{segment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(audit_logged("delete_segment"))],
)
async def delete_segment(
    segment_id: str,
    current_user: CurrentUser,
    backend: BackendClient,
) -> Response:
    """Delete a segment from the CRM backend."""
    await backend.delete_segment(current_user.token, segment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
