"""Abstract persistence port for the room listing and read-receipt services.

Services depend only on this interface, never on query builders.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from app.models.room import Room
from app.models.user import User


class ChatRepository(ABC):
    """Queries and mutations the chat services need from the data store."""

    @abstractmethod
    async def find_rooms_page(
        self,
        sort_field: str,
        sort_order: str,
        page: int,
        page_size: int,
        search: Optional[str] = None,
    ) -> Tuple[List[Room], int]:
        """Return one sorted page of rooms (participants loaded) and the total match count."""

    @abstractmethod
    async def find_users_by_ids(self, user_ids: Iterable[UUID]) -> Dict[UUID, User]:
        """Resolve many users in one lookup; unknown ids are absent from the result."""

    @abstractmethod
    async def find_user_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def count_recent_messages_grouped_by_room(
        self, room_ids: Iterable[UUID], since: datetime
    ) -> Dict[UUID, int]:
        """Count non-deleted messages at or after ``since`` per room, in one aggregation."""

    @abstractmethod
    async def find_room_by_id(self, room_id: UUID) -> Optional[Room]:
        pass

    @abstractmethod
    async def insert_room(self, room: Room) -> Room:
        pass

    @abstractmethod
    async def add_participant(self, room: Room, user_id: UUID) -> bool:
        """
        Atomically add ``user_id`` to the room unless already present.

        Returns True when a participant was added. ``room.memberships`` reflects
        the stored participants afterwards.
        """

    @abstractmethod
    async def add_reader_to_messages(
        self, message_ids: Iterable[UUID], user_id: UUID, read_at: datetime
    ) -> int:
        """
        Record ``user_id`` as a reader of every listed message it has not read yet.

        Returns the number of messages modified.
        """

    @abstractmethod
    async def ping(self) -> None:
        pass

    @abstractmethod
    async def find_latest_room_created_at(self) -> Optional[datetime]:
        pass
