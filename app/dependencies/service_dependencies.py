from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.globals import event_bus
from app.utils.event_bus import EventPublisher

from app.database.postgres import get_db_session
from app.repositories.chat_repository import ChatRepository
from app.repositories.sqlalchemy_chat_repository import SqlAlchemyChatRepository
from app.services.room_service import RoomService
from app.services.read_status_service import MessageReadStatusService

def get_event_publisher() -> EventPublisher:
    """
    Dependency that provides the process-wide event bus.
    """
    return event_bus

def get_chat_repository(db: AsyncSession = Depends(get_db_session)) -> ChatRepository:
    """
    Dependency that provides the SQLAlchemy-backed repository bound to the request session.
    """
    return SqlAlchemyChatRepository(db)

def get_room_service(
    repository: ChatRepository = Depends(get_chat_repository),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> RoomService:
    """
    Dependency that provides an instance of RoomService.
    """
    return RoomService(repository=repository, event_publisher=event_publisher)

def get_read_status_service(
    repository: ChatRepository = Depends(get_chat_repository),
) -> MessageReadStatusService:
    """
    Dependency that provides an instance of MessageReadStatusService.
    """
    return MessageReadStatusService(repository)
