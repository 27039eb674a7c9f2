from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from jamroom.core.clock import utcnow
from jamroom.db.base import BaseModel, UTCDateTime


class User(BaseModel):
    __tablename__ = "users"

    username = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    # Relationships
    rooms = relationship("Room", back_populates="creator")
    loops = relationship("Loop", back_populates="user")
    participations = relationship("RoomParticipant", back_populates="user")
