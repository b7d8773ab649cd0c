"""
Usage tracking endpoints.

Provides monthly prompt usage for authenticated users.
"""
import logging
from fastapi import APIRouter, Depends, status

from jobscout.core.auth_dependency import AuthIdentity, get_current_identity
from jobscout.core.dependencies import get_prompt_repository
from jobscout.db.repositories import PromptRepository
from jobscout.schemas.usage import UsageResponse
from jobscout.services.quota_service import get_usage_for_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/usage", tags=["Usage"])


@router.get("", status_code=status.HTTP_200_OK, response_model=UsageResponse)
def get_usage(
    identity: AuthIdentity = Depends(get_current_identity),
    prompts: PromptRepository = Depends(get_prompt_repository),
):
    """
    Get current month prompt usage for the authenticated user.
    
    Returns prompts_used, prompts_limit, can_create_prompt and remaining.
    Requires authentication via Bearer token.
    """
    usage_data = get_usage_for_response(prompts, identity.id)
    
    logger.debug(f"Usage summary requested: user_id={identity.id}, used={usage_data['prompts_used']}")
    
    return usage_data
