from sqlalchemy.orm import relationship
from sqlalchemy import Column, ForeignKey, Text, DateTime, Boolean, Uuid

from .base import Base, UUIDPrimaryKeyMixin, utcnow
from .message_reader import MessageReader

class Message(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "messages"
    
    content = Column(Text, nullable=False)
    
    sender_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    sender = relationship("User", foreign_keys=[sender_id])
    
    room_id = Column(Uuid(as_uuid=True), ForeignKey("rooms.id"), nullable=False, index=True)
    room = relationship("Room", back_populates="messages")
    
    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    readers = relationship(
        "MessageReader",
        back_populates="message",
        order_by=MessageReader.read_at,
        cascade="all, delete-orphan",
    )
    
    def __repr__(self):
        return f"<Message(id={self.id}, room_id={self.room_id}, content='{self.content[:50]}...')>"
