"""Voice file metadata model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from voice_changer.database import Base

STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"


class VoiceFile(Base):
    """One submission: an uploaded clip plus the text that goes with it."""

    __tablename__ = "voice_files"

    id = Column(Integer, primary_key=True, autoincrement=True)
    original_filename = Column(String(512), nullable=False)
    text_input = Column(String(500), nullable=False)
    status = Column(String(32), nullable=False, default=STATUS_PROCESSING)  # processing, completed
    processed_filename = Column(String(512), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
