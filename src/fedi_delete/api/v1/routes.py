from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Request, status
from pydantic import ValidationError

from fedi_delete.schemas import DeleteActivity, DeleteActivityResponse
from fedi_delete.services import DeleteActivityProcessor, DeleteOutcome


router = APIRouter(prefix="/api/v1", tags=["activities", "v1"])


def get_delete_processor(request: Request) -> DeleteActivityProcessor:
    """Dependency to get the DeleteActivityProcessor from the FastAPI app state."""
    processor: DeleteActivityProcessor = request.app.state.delete_processor
    return processor


@router.post(
    "/activities/delete",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=DeleteActivityResponse,
)
async def receive_delete(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    processor: DeleteActivityProcessor = Depends(get_delete_processor),
    signature_actor: Optional[str] = Header(default=None, alias="X-Signature-Actor"),
):
    """Processes a Delete activity whose signature the inbox gateway has verified.

    Args:
        request: The incoming FastAPI request object.
        payload: The Delete activity JSON document.
        processor: The DeleteActivityProcessor instance.
        signature_actor: The actor URI the inbox gateway verified the signature for.

    Returns:
        A DeleteActivityResponse describing the outcome.

    Raises:
        HTTPException: 400 for malformed activities, 403 when the actor has no
                       authority over the object, 503 when a retry may succeed.
    """
    try:
        activity = DeleteActivity.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from None

    result = await processor.process(activity, sender_uri=signature_actor)

    activities_total = request.app.state.delete_activities_total
    if activities_total is not None:
        activities_total.labels(kind=result.kind.value, outcome=result.outcome.value).inc()
    deliveries_total = request.app.state.delete_deliveries_enqueued_total
    if deliveries_total is not None and result.deliveries_enqueued:
        deliveries_total.inc(result.deliveries_enqueued)

    if result.outcome is DeleteOutcome.REJECTED:
        raise HTTPException(status_code=403, detail=result.reason)
    if result.outcome is DeleteOutcome.RETRYABLE_FAILURE:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="temporary failure, retry the activity",
        )
    return DeleteActivityResponse(
        status="accepted",
        activity_id=result.activity_id,
        kind=result.kind.value,
        state=result.state.value,
        deliveries_enqueued=result.deliveries_enqueued,
    )
