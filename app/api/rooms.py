from fastapi import APIRouter, Body, Depends, Query, status
from uuid import UUID
from typing import Optional

from ..schemas.room import (
    CreateRoomRequest,
    HealthResponse,
    JoinRoomRequest,
    PageRequest,
    RoomResponse,
    RoomsResponse,
)
from ..services.room_service import RoomService
from app.core.exceptions import RoomNotFoundException
from app.dependencies.service_dependencies import get_room_service
from app.dependencies.auth_dependencies import get_current_user
from app.models.user import User

router = APIRouter(prefix="/api/rooms", tags=["rooms"])

@router.get("", response_model=RoomsResponse)
async def list_rooms(
    current_user: User = Depends(get_current_user),
    room_service: RoomService = Depends(get_room_service),
    page: int = Query(0, ge=0, description="Zero-based page index"),
    page_size: int = Query(10, ge=1, le=50, alias="pageSize"),
    sort_field: str = Query("createdAt", alias="sortField"),
    sort_order: str = Query("desc", alias="sortOrder"),
    search: Optional[str] = Query(None),
):
    """
    Gets one page of rooms with creator, participants and recent message count.
    Unknown sort fields or orders fall back to createdAt / desc.
    """
    page_request = PageRequest(
        page=page,
        page_size=page_size,
        sort_field=sort_field,
        sort_order=sort_order,
        search=search,
    )
    return await room_service.list_rooms(page_request, current_user.email)

@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    request: CreateRoomRequest,
    current_user: User = Depends(get_current_user),
    room_service: RoomService = Depends(get_room_service)
):
    """
    Create a new room, optionally password protected.

    Args:
        request: Room creation request
        current_user: Authenticated user details
        room_service: Room service instance

    Returns:
        RoomResponse with created room details
    """
    room = await room_service.create_room(request, current_user.email)
    return await room_service.get_room(room.id, current_user.email)

@router.get("/health", response_model=HealthResponse)
async def health(room_service: RoomService = Depends(get_room_service)):
    return await room_service.get_health_status()

@router.get("/{room_id}", response_model=RoomResponse)
async def get_room(
    room_id: UUID,
    current_user: User = Depends(get_current_user),
    room_service: RoomService = Depends(get_room_service)
):
    room = await room_service.get_room(room_id, current_user.email)
    if room is None:
        raise RoomNotFoundException()
    return room

@router.post("/{room_id}/join", response_model=RoomResponse)
async def join_room(
    room_id: UUID,
    request: Optional[JoinRoomRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    room_service: RoomService = Depends(get_room_service)
):
    """
    Join a room. Password protected rooms need the matching password.

    Args:
        room_id: ID of the room
        request: Optional body carrying the room password
        current_user: Authenticated user details
        room_service: Room service instance
    """
    password = request.password if request else None
    room = await room_service.join_room(room_id, password, current_user.email)
    if room is None:
        raise RoomNotFoundException()
    return await room_service.get_room(room.id, current_user.email)
