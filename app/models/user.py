from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from app.models.base import Base, UUIDPrimaryKeyMixin, utcnow

class User(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "users"
    
    name = Column(String(50), nullable=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    profile_image = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    
    # Relationships
    room_memberships = relationship("RoomMembership", back_populates="user")
    
    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
