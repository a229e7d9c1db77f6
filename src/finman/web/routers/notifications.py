from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from finman.web.deps import AppDep, AuthTokenDep
from finman.web.openapi import ErrorResponse

router = APIRouter(tags=["notifications"])


class BroadcastRequest(BaseModel):
    """Event pushed to every connected client."""

    event: str = Field(..., min_length=1, description="Event name")
    data: Any = Field(None, description="Event payload")

    model_config = {"json_schema_extra": {"examples": [{"event": "maintenance", "data": {"in_minutes": 5}}]}}


@router.post(
    "/notifications/broadcast",
    summary="Broadcast event",
    description="Send an event to every open real-time connection, authenticated or not. "
    "Only accessible by admin users.",
    operation_id="broadcastEvent",
    status_code=204,
    responses={
        204: {"description": "Event sent"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def broadcast(req: BroadcastRequest, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.broadcast(auth_token, req.event, req.data)
