import logging
import math
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from ..core.config import settings
from ..core.exceptions import (
    InternalServerErrorException,
    InvalidRoomPasswordException,
    UserNotFoundException,
)
from ..core.security import hash_password, verify_password
from ..models.room import Room
from ..models.room_membership import RoomMembership
from ..models.user import User
from ..repositories.chat_repository import ChatRepository
from ..schemas.room import (
    CreateRoomRequest,
    HealthResponse,
    PageMetadata,
    PageRequest,
    RoomEventType,
    RoomResponse,
    RoomsResponse,
    ServiceHealth,
    SortInfo,
    UNKNOWN_USER_NAME,
    UNTITLED_ROOM_NAME,
    UserResponse,
)
from ..utils.event_bus import EventPublisher

logger = logging.getLogger(__name__)


class RoomService:
    def __init__(
        self,
        repository: ChatRepository,
        event_publisher: EventPublisher,
        recent_message_window: Optional[timedelta] = None,
    ):
        self.repository = repository
        self.event_publisher = event_publisher
        self.recent_message_window = recent_message_window or timedelta(
            minutes=settings.recent_message_window_minutes
        )

    async def list_rooms(self, page_request: PageRequest, acting_email: str) -> RoomsResponse:
        """
        Gets one page of rooms enriched with creator/participant details and
        the recent message count.

        The page costs a constant number of store round trips: the room page
        (with participants), the total count, one bulk user lookup and one
        grouped message count, whatever the page size or participant fan-out.
        A failure of the room query itself yields an unsuccessful, empty result.
        """
        try:
            start_time = time.perf_counter()

            sort_field, sort_order = page_request.resolve_sort()
            rooms, total = await self.repository.find_rooms_page(
                sort_field=PageRequest.storage_sort_field(sort_field),
                sort_order=sort_order.value,
                page=page_request.page,
                page_size=page_request.page_size,
                search=page_request.normalized_search(),
            )

            user_ids = set()
            for room in rooms:
                if room.creator_id is not None:
                    user_ids.add(room.creator_id)
                user_ids.update(room.participant_ids)

            user_map = await self._load_user_map(user_ids)
            logger.debug("Bulk user lookup: %d/%d users loaded", len(user_map), len(user_ids))

            room_ids = [room.id for room in rooms]
            message_count_map = await self._load_message_count_map(room_ids)
            logger.debug(
                "Bulk message count: %d/%d rooms with recent messages",
                len(message_count_map), len(room_ids),
            )

            room_responses = [
                self._build_room_response(room, acting_email, user_map, message_count_map)
                for room in rooms
            ]

            logger.info(
                "Rooms loaded in %.1fms (rooms: %d, users: %d, message counts: %d)",
                (time.perf_counter() - start_time) * 1000,
                len(rooms), len(user_map), len(message_count_map),
            )

            total_pages = math.ceil(total / page_request.page_size) if total else 0
            metadata = PageMetadata(
                total=total,
                page=page_request.page,
                page_size=page_request.page_size,
                total_pages=total_pages,
                has_more=page_request.page + 1 < total_pages,
                current_count=len(room_responses),
                sort=SortInfo(field=sort_field.value, order=sort_order.value),
            )
            return RoomsResponse(success=True, data=room_responses, metadata=metadata)

        except Exception:
            logger.error("Failed to list rooms", exc_info=True)
            return RoomsResponse(success=False, data=[])

    async def get_room(self, room_id: UUID, acting_email: str) -> Optional[RoomResponse]:
        """Gets a single enriched room, or None when it does not exist."""
        room = await self.repository.find_room_by_id(room_id)
        if room is None:
            return None
        user_map = await self._load_user_map(self._room_user_ids(room))
        message_count_map = await self._load_message_count_map([room.id])
        return self._build_room_response(room, acting_email, user_map, message_count_map)

    async def create_room(self, request: CreateRoomRequest, acting_email: str) -> Room:
        """
        Create a new room with the acting user as creator and sole participant.

        Raises:
            UserNotFoundException: If the acting user does not exist
            InternalServerErrorException: If the room cannot be stored
        """
        creator = await self.repository.find_user_by_email(acting_email)
        if creator is None:
            raise UserNotFoundException(detail=f"User not found: {acting_email}")

        room = Room(
            name=request.name,
            creator_id=creator.id,
            has_password=False,
        )
        room.memberships.append(RoomMembership(user_id=creator.id))

        if request.password:
            room.has_password = True
            room.password_hash = hash_password(request.password)

        try:
            room = await self.repository.insert_room(room)
        except Exception as e:
            raise InternalServerErrorException(detail="Failed to create room") from e

        logger.info("Room %s created by %s", room.id, creator.id)

        try:
            user_map = await self._load_user_map({creator.id})
            room_response = self._build_room_response(room, acting_email, user_map, {})
            await self.event_publisher.publish(
                RoomEventType.ROOM_CREATED.value, room_response.model_dump(mode="json")
            )
        except Exception:
            logger.error("Failed to publish %s event for room %s", RoomEventType.ROOM_CREATED.value, room.id, exc_info=True)

        return room

    async def join_room(
        self, room_id: UUID, password: Optional[str], acting_email: str
    ) -> Optional[Room]:
        """
        Add the acting user to a room.

        Returns None if the room doesn't exist. Joining a room the user already
        participates in is a no-op.

        Raises:
            UserNotFoundException: If the acting user does not exist
            InvalidRoomPasswordException: If the room password is missing or wrong
        """
        room = await self.repository.find_room_by_id(room_id)
        if room is None:
            return None

        user = await self.repository.find_user_by_email(acting_email)
        if user is None:
            raise UserNotFoundException(detail=f"User not found: {acting_email}")

        if room.has_password:
            if not password or not room.password_hash or not verify_password(password, room.password_hash):
                raise InvalidRoomPasswordException()

        if user.id not in room.participant_ids:
            if await self.repository.add_participant(room, user.id):
                logger.info("User %s joined room %s", user.id, room.id)

        try:
            user_map = await self._load_user_map(self._room_user_ids(room))
            message_count_map = await self._load_message_count_map([room.id])
            room_response = self._build_room_response(room, acting_email, user_map, message_count_map)
            payload = {"room_id": str(room.id), "room": room_response.model_dump(mode="json")}
            await self.event_publisher.publish(RoomEventType.ROOM_UPDATED.value, payload)
        except Exception:
            logger.error("Failed to publish %s event for room %s", RoomEventType.ROOM_UPDATED.value, room.id, exc_info=True)

        return room

    async def get_health_status(self) -> HealthResponse:
        """Reports database connectivity, latency and the latest room activity."""
        start_time = time.perf_counter()
        connected = False
        latency = 0
        try:
            await self.repository.ping()
            latency = int((time.perf_counter() - start_time) * 1000)
            connected = True
        except Exception:
            logger.warning("Database health check failed", exc_info=True)

        last_activity = None
        if connected:
            try:
                last_activity = await self.repository.find_latest_room_created_at()
            except Exception:
                logger.warning("Failed to load latest room activity", exc_info=True)

        return HealthResponse(
            success=True,
            services={"database": ServiceHealth(connected=connected, latency=latency)},
            last_activity=last_activity,
        )

    @staticmethod
    def _room_user_ids(room: Room) -> set:
        user_ids = set(room.participant_ids)
        if room.creator_id is not None:
            user_ids.add(room.creator_id)
        return user_ids

    async def _load_user_map(self, user_ids: Iterable[UUID]) -> Dict[UUID, User]:
        """One bulk lookup for every user on the page. Failures degrade to an empty map."""
        user_ids = set(user_ids)
        if not user_ids:
            return {}
        try:
            return dict(await self.repository.find_users_by_ids(user_ids))
        except Exception:
            logger.error("Bulk user lookup failed", exc_info=True)
            return {}

    async def _load_message_count_map(self, room_ids: List[UUID]) -> Dict[UUID, int]:
        """One grouped count of recent, non-deleted messages. Failures degrade to an empty map."""
        if not room_ids:
            return {}
        since = datetime.now(timezone.utc) - self.recent_message_window
        try:
            return dict(await self.repository.count_recent_messages_grouped_by_room(room_ids, since))
        except Exception:
            logger.error("Bulk message count failed", exc_info=True)
            return {}

    @staticmethod
    def _build_user_response(user: User) -> UserResponse:
        return UserResponse(
            id=user.id,
            name=user.name or UNKNOWN_USER_NAME,
            email=user.email or "",
            profile_image=user.profile_image or "",
        )

    def _build_room_response(
        self,
        room: Room,
        acting_email: str,
        user_map: Dict[UUID, User],
        message_count_map: Dict[UUID, int],
    ) -> RoomResponse:
        creator = user_map.get(room.creator_id) if room.creator_id is not None else None

        if creator is not None:
            creator_response = self._build_user_response(creator)
        else:
            # Unresolved creator still renders, with placeholder values
            creator_response = UserResponse(id=room.creator_id, name=UNKNOWN_USER_NAME, email="")

        # Participants whose identity could not be resolved are left out
        participants = [
            self._build_user_response(user_map[user_id])
            for user_id in room.participant_ids
            if user_id in user_map
        ]

        return RoomResponse(
            id=room.id,
            name=room.name or UNTITLED_ROOM_NAME,
            has_password=bool(room.has_password),
            creator=creator_response,
            participants=participants,
            created_at=room.created_at,
            is_creator=bool(creator and creator.email and creator.email == acting_email),
            recent_message_count=message_count_map.get(room.id, 0),
        )
