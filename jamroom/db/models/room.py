from sqlalchemy import Column, String, Integer, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from jamroom.core.clock import utcnow
from jamroom.db.base import BaseModel, UTCDateTime


class Room(BaseModel):
    __tablename__ = "rooms"

    name = Column(String(255), nullable=False)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    bpm = Column(Integer, nullable=False, default=120)
    key_signature = Column(String(16), nullable=False, default="C Major")
    is_public = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    # Relationships
    creator = relationship("User", back_populates="rooms")
    loops = relationship("Loop", back_populates="room")
    participants = relationship("RoomParticipant", back_populates="room")
