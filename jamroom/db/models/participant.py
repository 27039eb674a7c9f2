from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from jamroom.core.clock import utcnow
from jamroom.db.base import BaseModel, UTCDateTime


class RoomParticipant(BaseModel):
    __tablename__ = "room_participants"
    __table_args__ = (
        UniqueConstraint("room_id", "user_id", name="uq_room_participants_room_user"),
    )

    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    joined_at = Column(UTCDateTime, nullable=False, default=utcnow)
    last_active_at = Column(UTCDateTime, nullable=False, default=utcnow)

    # Relationships
    room = relationship("Room", back_populates="participants")
    user = relationship("User", back_populates="participations")
