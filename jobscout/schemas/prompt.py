"""
Pydantic schemas for prompt endpoints.
"""
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field


class ProcessPromptRequest(BaseModel):
    """Request schema for POST /prompts."""
    jobPost: str = Field(..., min_length=10, description="Raw job posting text (at least 10 characters)")
    title: Optional[str] = Field(None, description="Prompt title; derived from the posting when omitted")
    company: Optional[str] = Field(None, description="Company name")
    position: Optional[str] = Field(None, description="Position title")
    
    class Config:
        json_schema_extra = {
            "example": {
                "jobPost": "We need a backend engineer skilled in Go and PostgreSQL...",
                "company": "Acme",
                "position": "Backend Engineer"
            }
        }


class GeneratedContentResponse(BaseModel):
    """Generated resume content for a prompt."""
    id: str
    prompt_id: str
    user_id: str
    bullet_points: List[str] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    achievements: List[str] = Field(default_factory=list)
    summary: Optional[str] = None
    model: str
    processing_time_ms: Optional[int] = None
    created_at: datetime
    
    class Config:
        from_attributes = True


class UsageSnapshotResponse(BaseModel):
    canCreate: bool
    used: int
    limit: Optional[int] = None


class ProcessPromptResponse(BaseModel):
    """Response schema for POST /prompts."""
    prompt_id: str
    generated_content: GeneratedContentResponse
    success: bool = True
    message: str = "Resume content generated successfully"
    usage: UsageSnapshotResponse


class PromptResponse(BaseModel):
    """A prompt with its generated content (empty when generation failed)."""
    id: str
    user_id: str
    title: str
    content: str
    company: Optional[str] = None
    position: Optional[str] = None
    category: str = "general"
    status: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    generated_content: List[GeneratedContentResponse] = Field(default_factory=list)
    
    class Config:
        from_attributes = True


class PromptListResponse(BaseModel):
    prompts: List[PromptResponse] = Field(default_factory=list)
