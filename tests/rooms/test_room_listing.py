from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import delete

from app.models.user import User
from app.schemas.room import PageRequest
from app.services.room_service import RoomService
from tests.utils import create_message, create_room, create_user


@pytest.fixture
def room_service(repository, publisher):
    return RoomService(repository=repository, event_publisher=publisher)


@pytest.mark.asyncio
async def test_listing_uses_one_user_lookup_and_one_count(async_session, repository, room_service, alice, bob, carol):
    dave = await create_user(async_session, "Dave", "dave@example.com")
    await create_room(async_session, "general", alice, participants=[bob, carol])
    await create_room(async_session, "random", bob, participants=[alice, dave])
    await create_room(async_session, "dev", carol, participants=[alice, bob, dave])

    repository.find_users_by_ids = AsyncMock(wraps=repository.find_users_by_ids)
    repository.count_recent_messages_grouped_by_room = AsyncMock(
        wraps=repository.count_recent_messages_grouped_by_room
    )

    result = await room_service.list_rooms(PageRequest(page_size=10), alice.email)

    assert result.success
    assert len(result.data) == 3
    repository.find_users_by_ids.assert_awaited_once()
    user_ids = repository.find_users_by_ids.await_args.args[0]
    assert set(user_ids) == {alice.id, bob.id, carol.id, dave.id}
    repository.count_recent_messages_grouped_by_room.assert_awaited_once()


@pytest.mark.asyncio
async def test_listing_counts_only_recent_non_deleted_messages(async_session, room_service, alice, bob):
    room = await create_room(async_session, "general", alice, participants=[bob])
    await create_message(async_session, room, alice, minutes_ago=5)
    await create_message(async_session, room, bob, minutes_ago=15)
    await create_message(async_session, room, bob, minutes_ago=2, is_deleted=True)

    result = await room_service.list_rooms(PageRequest(), alice.email)

    assert result.data[0].recent_message_count == 1


@pytest.mark.asyncio
async def test_listing_defaults_count_to_zero_for_quiet_rooms(async_session, room_service, alice):
    await create_room(async_session, "quiet", alice)

    result = await room_service.list_rooms(PageRequest(), alice.email)

    assert result.data[0].recent_message_count == 0


@pytest.mark.asyncio
async def test_listing_enriches_creator_and_participants(async_session, room_service, alice, bob):
    await create_room(async_session, "general", alice, participants=[bob])

    as_alice = await room_service.list_rooms(PageRequest(), alice.email)
    as_bob = await room_service.list_rooms(PageRequest(), bob.email)

    room = as_alice.data[0]
    assert room.name == "general"
    assert room.creator.name == "Alice"
    assert room.creator.email == "alice@example.com"
    assert {p.email for p in room.participants} == {"alice@example.com", "bob@example.com"}
    assert room.is_creator is True
    assert as_bob.data[0].is_creator is False


@pytest.mark.asyncio
async def test_unknown_sort_falls_back_to_created_at_desc(async_session, room_service, alice):
    now = datetime.now(timezone.utc)
    await create_room(async_session, "older", alice, created_at=now - timedelta(hours=1))
    await create_room(async_session, "newer", alice, created_at=now)

    result = await room_service.list_rooms(
        PageRequest(sort_field="password", sort_order="random"), alice.email
    )

    assert result.success
    assert [room.name for room in result.data] == ["newer", "older"]
    assert result.metadata.sort.field == "createdAt"
    assert result.metadata.sort.order == "desc"


@pytest.mark.asyncio
async def test_sort_by_name_ascending(async_session, room_service, alice):
    for name in ("charlie", "alpha", "bravo"):
        await create_room(async_session, name, alice)

    result = await room_service.list_rooms(PageRequest(sort_field="name", sort_order="asc"), alice.email)

    assert [room.name for room in result.data] == ["alpha", "bravo", "charlie"]


@pytest.mark.asyncio
async def test_sort_by_participants_count(async_session, room_service, alice, bob, carol):
    await create_room(async_session, "solo", alice)
    await create_room(async_session, "crowd", alice, participants=[bob, carol])
    await create_room(async_session, "pair", alice, participants=[bob])

    result = await room_service.list_rooms(
        PageRequest(sort_field="participantsCount", sort_order="desc"), alice.email
    )

    assert [room.name for room in result.data] == ["crowd", "pair", "solo"]
    assert result.metadata.sort.field == "participantsCount"


@pytest.mark.asyncio
async def test_search_filters_by_name_case_insensitively(async_session, room_service, alice):
    await create_room(async_session, "Python Devs", alice)
    await create_room(async_session, "Rustaceans", alice)

    result = await room_service.list_rooms(PageRequest(search="python"), alice.email)

    assert [room.name for room in result.data] == ["Python Devs"]
    assert result.metadata.total == 1


@pytest.mark.asyncio
async def test_pagination_metadata(async_session, room_service, alice):
    now = datetime.now(timezone.utc)
    for i in range(5):
        await create_room(async_session, f"room-{i}", alice, created_at=now - timedelta(minutes=i))

    first = await room_service.list_rooms(PageRequest(page=0, page_size=2), alice.email)
    last = await room_service.list_rooms(PageRequest(page=2, page_size=2), alice.email)

    assert [room.name for room in first.data] == ["room-0", "room-1"]
    assert first.metadata.total == 5
    assert first.metadata.total_pages == 3
    assert first.metadata.has_more is True
    assert first.metadata.current_count == 2
    assert [room.name for room in last.data] == ["room-4"]
    assert last.metadata.has_more is False
    assert last.metadata.current_count == 1


@pytest.mark.asyncio
async def test_user_lookup_failure_renders_placeholders(async_session, repository, room_service, alice, bob):
    await create_room(async_session, "general", alice, participants=[bob])
    repository.find_users_by_ids = AsyncMock(side_effect=TimeoutError("user store timed out"))

    result = await room_service.list_rooms(PageRequest(), alice.email)

    assert result.success
    room = result.data[0]
    assert room.creator is not None
    assert room.creator.id == alice.id
    assert room.creator.name == "Unknown"
    assert room.creator.email == ""
    assert room.participants == []
    assert room.is_creator is False


@pytest.mark.asyncio
async def test_deleted_participant_is_dropped(async_session, room_service, alice, bob):
    await create_room(async_session, "general", alice, participants=[bob])
    await async_session.execute(delete(User).where(User.id == bob.id))
    await async_session.commit()

    result = await room_service.list_rooms(PageRequest(), alice.email)

    assert [p.email for p in result.data[0].participants] == ["alice@example.com"]


@pytest.mark.asyncio
async def test_missing_user_name_falls_back_to_unknown(async_session, room_service):
    nameless = await create_user(async_session, None, "nameless@example.com")
    await create_room(async_session, "general", nameless)

    result = await room_service.list_rooms(PageRequest(), "nameless@example.com")

    assert result.data[0].creator.name == "Unknown"
    assert result.data[0].participants[0].name == "Unknown"


@pytest.mark.asyncio
async def test_message_count_failure_defaults_to_zero(async_session, repository, room_service, alice):
    room = await create_room(async_session, "general", alice)
    await create_message(async_session, room, alice, minutes_ago=1)
    repository.count_recent_messages_grouped_by_room = AsyncMock(side_effect=RuntimeError("aggregation failed"))

    result = await room_service.list_rooms(PageRequest(), alice.email)

    assert result.success
    assert result.data[0].recent_message_count == 0


@pytest.mark.asyncio
async def test_room_query_failure_returns_unsuccessful_empty_result(repository, room_service, alice):
    repository.find_rooms_page = AsyncMock(side_effect=RuntimeError("connection reset"))

    result = await room_service.list_rooms(PageRequest(), alice.email)

    assert result.success is False
    assert result.data == []
    assert result.metadata is None


@pytest.mark.asyncio
async def test_empty_page_skips_enrichment_calls(repository, room_service, alice):
    repository.find_users_by_ids = AsyncMock()
    repository.count_recent_messages_grouped_by_room = AsyncMock()

    result = await room_service.list_rooms(PageRequest(), alice.email)

    assert result.success
    assert result.data == []
    assert result.metadata.total == 0
    repository.find_users_by_ids.assert_not_awaited()
    repository.count_recent_messages_grouped_by_room.assert_not_awaited()
