from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from app.models.base import Base, UUIDPrimaryKeyMixin, utcnow
from .room_membership import RoomMembership

class Room(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "rooms"
    
    name = Column(String(100), nullable=True)  
    creator_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    has_password = Column(Boolean, default=False, nullable=False)
    password_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    
    messages = relationship("Message", back_populates="room")
    memberships = relationship(
        "RoomMembership",
        back_populates="room",
        order_by=RoomMembership.joined_at,
        cascade="all, delete-orphan",
    )

    @property
    def participant_ids(self) -> list:
        return [membership.user_id for membership in self.memberships]
    
    def __repr__(self):
        return f"<Room(id={self.id}, name='{self.name}', has_password={self.has_password})>"
