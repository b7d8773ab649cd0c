"""
Prompt endpoints.

Submit job postings for tailored resume content and manage prompt history.
"""
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status

from jobscout.core.auth_dependency import AuthIdentity, get_current_identity
from jobscout.core.dependencies import get_generating_prompt_service, get_prompt_service
from jobscout.schemas.prompt import (
    GeneratedContentResponse,
    ProcessPromptResponse,
    PromptListResponse,
    PromptResponse,
)
from jobscout.services.prompt_service import PromptService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/prompts", tags=["Prompts"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProcessPromptResponse)
def create_prompt(
    identity: AuthIdentity = Depends(get_current_identity),
    service: PromptService = Depends(get_generating_prompt_service),
    payload: Any = Body(None),
):
    """
    Generate tailored resume content for a job posting.
    
    Body: {jobPost (>= 10 chars), title?, company?, position?}
    
    - 401 when unauthenticated
    - 403 with usage payload when the monthly limit is reached
    - 400 with field errors on invalid input
    - 500 when generation or storage fails (the prompt is kept as failed)
    """
    result = service.process_prompt(identity, payload)
    return ProcessPromptResponse(
        prompt_id=result["prompt_id"],
        generated_content=GeneratedContentResponse.model_validate(result["generated_content"]),
        success=result["success"],
        message=result["message"],
        usage=result["usage"],
    )


@router.get("/user", status_code=status.HTTP_200_OK, response_model=PromptListResponse)
def list_user_prompts(
    identity: AuthIdentity = Depends(get_current_identity),
    service: PromptService = Depends(get_prompt_service),
):
    """List the caller's active prompts, newest first, with generated content."""
    prompts = service.list_user_prompts(identity)
    return PromptListResponse(prompts=[PromptResponse.model_validate(prompt) for prompt in prompts])


@router.get("/{prompt_id}", status_code=status.HTTP_200_OK, response_model=PromptResponse)
def get_prompt(
    prompt_id: str,
    identity: AuthIdentity = Depends(get_current_identity),
    service: PromptService = Depends(get_prompt_service),
):
    """Get one of the caller's active prompts."""
    return PromptResponse.model_validate(service.get_user_prompt(identity, prompt_id))


@router.delete("/{prompt_id}", status_code=status.HTTP_200_OK)
def delete_prompt(
    prompt_id: str,
    identity: AuthIdentity = Depends(get_current_identity),
    service: PromptService = Depends(get_prompt_service),
):
    """Soft-delete a prompt; it no longer counts toward monthly usage."""
    prompt = service.deactivate_prompt(identity, prompt_id)
    return {"success": True, "prompt_id": prompt.id}
