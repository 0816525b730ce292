from fastapi import APIRouter, Depends, Response, status

from app.dependencies.auth_dependencies import get_current_user
from app.dependencies.service_dependencies import get_read_status_service
from app.models.user import User
from ..schemas.message import MarkMessagesReadRequest
from ..services.read_status_service import MessageReadStatusService

router = APIRouter(prefix="/api/messages", tags=["messages"])

@router.post("/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_messages_read(
    request: MarkMessagesReadRequest,
    current_user: User = Depends(get_current_user),
    read_status_service: MessageReadStatusService = Depends(get_read_status_service),
):
    """
    Mark messages as read by the current user. Read receipts are best effort,
    so this never fails because of the update itself.
    """
    await read_status_service.mark_messages_read(request.message_ids, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
