"""Shared builders for the test suite."""

from datetime import datetime, timedelta, timezone

from app.models.message import Message
from app.models.room import Room
from app.models.room_membership import RoomMembership
from app.models.user import User


class RecordingPublisher:
    def __init__(self):
        self.events = []

    async def publish(self, event_type: str, payload: dict) -> None:
        self.events.append((event_type, payload))


class FailingPublisher:
    def __init__(self):
        self.calls = 0

    async def publish(self, event_type: str, payload: dict) -> None:
        self.calls += 1
        raise ConnectionError("redis is down")


async def create_user(session, name, email, profile_image=None):
    user = User(name=name, email=email, profile_image=profile_image)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def create_room(session, name, creator, participants=(), created_at=None, password_hash=None):
    room = Room(
        name=name,
        creator_id=creator.id,
        has_password=password_hash is not None,
        password_hash=password_hash,
        created_at=created_at or datetime.now(timezone.utc),
    )
    room.memberships.append(RoomMembership(user_id=creator.id))
    for participant in participants:
        room.memberships.append(RoomMembership(user_id=participant.id))
    session.add(room)
    await session.commit()
    await session.refresh(room, attribute_names=["memberships"])
    return room


async def create_message(session, room, sender, minutes_ago=0, is_deleted=False):
    message = Message(
        room_id=room.id,
        sender_id=sender.id,
        content="hello",
        is_deleted=is_deleted,
        created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
    )
    session.add(message)
    await session.commit()
    await session.refresh(message)
    return message
