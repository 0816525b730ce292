import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import Table, Uuid, DateTime, and_, exists, func, insert, literal, select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.base import utcnow
from ..models.message import Message
from ..models.message_reader import MessageReader
from ..models.room import Room
from ..models.room_membership import RoomMembership
from ..models.user import User
from .chat_repository import ChatRepository

logger = logging.getLogger(__name__)


def insert_ignoring_conflicts(table: Table, dialect_name: str):
    """INSERT that skips rows colliding with an existing primary key.

    Other rows of the same statement are still written.
    """
    if dialect_name == "postgresql":
        return postgresql.insert(table).on_conflict_do_nothing()
    if dialect_name == "sqlite":
        return sqlite.insert(table).on_conflict_do_nothing()
    return insert(table)


class SqlAlchemyChatRepository(ChatRepository):
    def __init__(self, db: AsyncSession):
        self.db = db

    def _sort_expression(self, sort_field: str):
        if sort_field == "participants":
            return (
                select(func.count(RoomMembership.user_id))
                .where(RoomMembership.room_id == Room.id)
                .correlate(Room)
                .scalar_subquery()
            )
        if sort_field == "name":
            return Room.name
        return Room.created_at

    async def find_rooms_page(
        self,
        sort_field: str,
        sort_order: str,
        page: int,
        page_size: int,
        search: Optional[str] = None,
    ) -> Tuple[List[Room], int]:
        filters = []
        if search:
            filters.append(Room.name.icontains(search, autoescape=True))

        sort_expression = self._sort_expression(sort_field)
        if sort_order == "asc":
            ordering = [sort_expression.asc(), Room.id.asc()]
        else:
            ordering = [sort_expression.desc(), Room.id.desc()]

        rooms_query = (
            select(Room)
            .where(*filters)
            .options(selectinload(Room.memberships))
            .order_by(*ordering)
            .offset(page * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(rooms_query)
        rooms = list(result.scalars().all())

        total_result = await self.db.execute(
            select(func.count(Room.id)).where(*filters)
        )
        total = total_result.scalar_one()
        return rooms, total

    async def find_users_by_ids(self, user_ids: Iterable[UUID]) -> Dict[UUID, User]:
        user_ids = list(user_ids)
        if not user_ids:
            return {}
        result = await self.db.execute(select(User).where(User.id.in_(user_ids)))
        return {user.id: user for user in result.scalars().all()}

    async def find_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def count_recent_messages_grouped_by_room(
        self, room_ids: Iterable[UUID], since: datetime
    ) -> Dict[UUID, int]:
        room_ids = list(room_ids)
        if not room_ids:
            return {}
        counts_query = (
            select(Message.room_id, func.count(Message.id).label("message_count"))
            .where(
                Message.room_id.in_(room_ids),
                Message.is_deleted.is_(False),
                Message.created_at >= since,
            )
            .group_by(Message.room_id)
        )
        result = await self.db.execute(counts_query)
        return {room_id: count for room_id, count in result.all()}

    async def find_room_by_id(self, room_id: UUID) -> Optional[Room]:
        result = await self.db.execute(
            select(Room)
            .where(Room.id == room_id)
            .options(selectinload(Room.memberships))
        )
        return result.scalar_one_or_none()

    async def insert_room(self, room: Room) -> Room:
        self.db.add(room)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(room, attribute_names=["memberships"])
        return room

    async def add_participant(self, room: Room, user_id: UUID) -> bool:
        already_member = exists().where(
            and_(RoomMembership.room_id == room.id, RoomMembership.user_id == user_id)
        )
        stmt = insert(RoomMembership.__table__).from_select(
            ["room_id", "user_id", "joined_at"],
            select(
                literal(room.id, Uuid(as_uuid=True)),
                literal(user_id, Uuid(as_uuid=True)),
                literal(utcnow(), DateTime(timezone=True)),
            ).where(~already_member),
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
            added = result.rowcount > 0
        except IntegrityError:
            # A concurrent join by the same user won the race
            await self.db.rollback()
            await self.db.refresh(room)
            logger.debug("Participant %s already present in room %s", user_id, room.id)
            added = False

        await self.db.refresh(room, attribute_names=["memberships"])
        return added

    async def add_reader_to_messages(
        self, message_ids: Iterable[UUID], user_id: UUID, read_at: datetime
    ) -> int:
        message_ids = list(message_ids)
        if not message_ids:
            return 0
        already_read = exists().where(
            and_(MessageReader.message_id == Message.id, MessageReader.user_id == user_id)
        )
        # NOT EXISTS is not atomic under concurrent writers; ON CONFLICT covers the gap
        stmt = insert_ignoring_conflicts(
            MessageReader.__table__, self.db.get_bind().dialect.name
        ).from_select(
            ["message_id", "user_id", "read_at"],
            select(
                Message.id,
                literal(user_id, Uuid(as_uuid=True)),
                literal(read_at, DateTime(timezone=True)),
            ).where(Message.id.in_(message_ids), ~already_read),
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return result.rowcount

    async def ping(self) -> None:
        await self.db.execute(text("SELECT 1"))

    async def find_latest_room_created_at(self) -> Optional[datetime]:
        result = await self.db.execute(select(func.max(Room.created_at)))
        return result.scalar_one_or_none()
