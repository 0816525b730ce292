from datetime import datetime, timezone
from sqlalchemy import Column, Uuid
from sqlalchemy.orm import as_declarative
import uuid

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

@as_declarative()
class Base:
    pass

class UUIDPrimaryKeyMixin:
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
