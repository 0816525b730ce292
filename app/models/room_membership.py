from sqlalchemy import Column, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base, utcnow

class RoomMembership(Base):
    __tablename__ = "room_memberships"
    
    # Composite key: a user is a participant of a room at most once
    room_id = Column(Uuid(as_uuid=True), ForeignKey("rooms.id"), primary_key=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), primary_key=True)
    joined_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    
    # Relationships
    user = relationship("User", back_populates="room_memberships")
    room = relationship("Room", back_populates="memberships")
    
    def __repr__(self):
        return f"<RoomMembership(room_id={self.room_id}, user_id={self.user_id})>"
