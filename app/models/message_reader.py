from sqlalchemy import Column, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base, utcnow

class MessageReader(Base):
    __tablename__ = "message_readers"

    # One read receipt per (message, user)
    message_id = Column(Uuid(as_uuid=True), ForeignKey("messages.id"), primary_key=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), primary_key=True)
    read_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    message = relationship("Message", back_populates="readers")

    def __repr__(self):
        return f"<MessageReader(message_id={self.message_id}, user_id={self.user_id})>"
