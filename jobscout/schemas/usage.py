"""
Pydantic schemas for usage endpoints.
"""
from typing import Optional
from pydantic import BaseModel, Field


class UsageResponse(BaseModel):
    """Response schema for GET /usage."""
    prompts_used: int = Field(..., description="Active prompts created this month")
    prompts_limit: Optional[int] = Field(None, description="Monthly prompt limit (None for unlimited)")
    can_create_prompt: bool = Field(..., description="Whether another prompt may be created")
    remaining: int = Field(..., description="Prompts left this month")
    
    class Config:
        json_schema_extra = {
            "example": {
                "prompts_used": 2,
                "prompts_limit": 5,
                "can_create_prompt": True,
                "remaining": 3
            }
        }
