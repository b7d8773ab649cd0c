import uuid

from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from jobscout.db.base import Base
from jobscout.db.models.user import utcnow


class GeneratedContent(Base):
    """
    Structured resume material produced for a completed Prompt.
    
    List columns keep the model's output order.
    """
    __tablename__ = "generated_content"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    prompt_id = Column(String, ForeignKey("prompts.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    bullet_points = Column(JSON, nullable=False, default=list)
    skills = Column(JSON, nullable=False, default=list)
    keywords = Column(JSON, nullable=False, default=list)
    achievements = Column(JSON, nullable=False, default=list)
    summary = Column(Text, nullable=True)

    model = Column(String, nullable=False, default="gpt-4o-mini")
    processing_time_ms = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    prompt = relationship("Prompt", back_populates="generated_content")

    def __repr__(self):
        return f"<GeneratedContent(id='{self.id}', prompt_id='{self.prompt_id}')>"
