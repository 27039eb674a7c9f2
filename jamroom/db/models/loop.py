from sqlalchemy import Column, String, Text, Integer, Float, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from jamroom.core.clock import utcnow
from jamroom.db.base import BaseModel, UTCDateTime


class Loop(BaseModel):
    __tablename__ = "loops"

    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String(255), nullable=False)
    audio_data = Column(Text, nullable=False)  # base64, хранится как есть
    duration = Column(Float, nullable=False)  # секунды
    volume = Column(Float, nullable=False, default=1.0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    # Relationships
    room = relationship("Room", back_populates="loops")
    user = relationship("User", back_populates="loops")
