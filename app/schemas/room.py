from pydantic import BaseModel, Field, field_validator
from uuid import UUID
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

UNKNOWN_USER_NAME = "Unknown"
UNTITLED_ROOM_NAME = "Untitled"

class SortField(str, Enum):
    NAME = "name"
    CREATED_AT = "createdAt"
    PARTICIPANTS_COUNT = "participantsCount"

class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

# Logical sort field -> repository sort key. participantsCount has no stored
# column; the repository orders "participants" by membership cardinality.
STORAGE_SORT_FIELDS: Dict[SortField, str] = {
    SortField.NAME: "name",
    SortField.CREATED_AT: "created_at",
    SortField.PARTICIPANTS_COUNT: "participants",
}

class PageRequest(BaseModel):
    page: int = Field(0, ge=0, description="Zero-based page index")
    page_size: int = Field(10, ge=1, le=50, description="Rooms per page")
    sort_field: str = Field(SortField.CREATED_AT.value, description="name, createdAt or participantsCount")
    sort_order: str = Field(SortOrder.DESC.value, description="asc or desc")
    search: Optional[str] = Field(None, description="Case-insensitive room name substring")

    def resolve_sort(self) -> Tuple[SortField, SortOrder]:
        """
        Normalize the requested sort. Unknown fields fall back to createdAt and
        unknown orders to desc; a bad sort never fails a listing.
        """
        try:
            field = SortField(self.sort_field)
        except ValueError:
            field = SortField.CREATED_AT
        try:
            order = SortOrder((self.sort_order or "").lower())
        except ValueError:
            order = SortOrder.DESC
        return field, order

    @staticmethod
    def storage_sort_field(field: SortField) -> str:
        return STORAGE_SORT_FIELDS[field]

    def normalized_search(self) -> Optional[str]:
        if self.search is None:
            return None
        return self.search.strip() or None

class CreateRoomRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Room name")
    password: Optional[str] = Field(None, max_length=72, description="Optional room password")

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Room name must not be blank")
        return value

class JoinRoomRequest(BaseModel):
    password: Optional[str] = None

class UserResponse(BaseModel):
    id: UUID
    name: str = UNKNOWN_USER_NAME
    email: str = ""
    profile_image: str = ""

    class Config:
        from_attributes = True

class RoomResponse(BaseModel):
    id: UUID
    name: str = UNTITLED_ROOM_NAME
    has_password: bool = False
    creator: Optional[UserResponse] = None
    participants: List[UserResponse] = []
    created_at: Optional[datetime] = None
    is_creator: bool = False
    recent_message_count: int = 0

    class Config:
        from_attributes = True

class SortInfo(BaseModel):
    field: str
    order: str

class PageMetadata(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int
    has_more: bool
    current_count: int
    sort: SortInfo

class RoomsResponse(BaseModel):
    success: bool = True
    data: List[RoomResponse] = []
    metadata: Optional[PageMetadata] = None

class ServiceHealth(BaseModel):
    connected: bool
    latency: int = 0

class HealthResponse(BaseModel):
    success: bool = True
    services: Dict[str, ServiceHealth] = {}
    last_activity: Optional[datetime] = None

class RoomEventType(str, Enum):
    ROOM_CREATED = "room_created"
    ROOM_UPDATED = "room_updated"
