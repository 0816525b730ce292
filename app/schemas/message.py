from pydantic import BaseModel, Field
from uuid import UUID
from typing import List

class MarkMessagesReadRequest(BaseModel):
    message_ids: List[UUID] = Field(default_factory=list, description="Messages the current user has read")
