"""
Prompt model: a submitted job posting plus its processing lifecycle.
"""
import enum
import uuid

from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from jobscout.db.base import Base
from jobscout.db.models.user import utcnow


class PromptStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# Allowed lifecycle moves; completed and failed are terminal
PROMPT_TRANSITIONS = {
    PromptStatus.PENDING: {PromptStatus.PROCESSING},
    PromptStatus.PROCESSING: {PromptStatus.COMPLETED, PromptStatus.FAILED},
    PromptStatus.COMPLETED: set(),
    PromptStatus.FAILED: set(),
}


class Prompt(Base):
    __tablename__ = "prompts"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)  # raw job posting text
    company = Column(String, nullable=True)
    position = Column(String, nullable=True)
    category = Column(String, nullable=False, default="general")

    status = Column(String, nullable=False, default=PromptStatus.PENDING.value)
    is_active = Column(Boolean, nullable=False, default=True)  # soft-delete flag

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", backref="prompts")
    generated_content = relationship(
        "GeneratedContent",
        back_populates="prompt",
        order_by="GeneratedContent.created_at",
        cascade="all, delete-orphan",
    )

    # Monthly usage counts filter on these three columns together
    __table_args__ = (
        Index("idx_prompts_user_active_created", "user_id", "is_active", "created_at"),
    )

    def __repr__(self):
        return f"<Prompt(id='{self.id}', status='{self.status}', title='{self.title}')>"
