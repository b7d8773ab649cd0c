"""
Prompt workflow: submit a job posting and get tailored resume content back.

process_prompt() runs synchronously inside the request:
provision user -> quota check -> validate -> create prompt (processing)
-> generate -> store content -> completed | failed -> respond with fresh usage.
A failed prompt is kept as history; there is no retry of the same record.
"""
import logging
import time
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from jobscout.core.auth_dependency import AuthIdentity
from jobscout.core.errors import (
    GenerationFailed,
    InvalidRequest,
    NotFound,
    PersistenceError,
    UsageLimitExceeded,
)
from jobscout.core.validation import ValidationResult, validate_payload
from jobscout.db.models.prompt import Prompt, PromptStatus
from jobscout.db.repositories import (
    GeneratedContentRepository,
    PromptRepository,
    UserRepository,
)
from jobscout.schemas.prompt import ProcessPromptRequest
from jobscout.services.content_generator import ContentGenerator
from jobscout.services.quota_service import check_usage_limit
from jobscout.services.user_provisioner import ensure_user_exists

logger = logging.getLogger(__name__)

MAX_DERIVED_TITLE_LENGTH = 100
DEFAULT_TITLE = "Job Application"


def validate_prompt_request(payload: Any) -> ValidationResult[ProcessPromptRequest]:
    """Check a POST /prompts body; jobPost must be at least 10 characters."""
    return validate_payload(ProcessPromptRequest, payload)


def derive_title(job_post: str, company: Optional[str] = None, position: Optional[str] = None) -> str:
    """
    Build a prompt title when the caller did not supply one.

    "{position} at {company}" when both are given, "Job Application for {company}"
    with only a company, else the first non-blank line of the posting if it is
    shorter than 100 characters, else "Job Application".
    """
    if company and position:
        return f"{position} at {company}"

    if company:
        return f"Job Application for {company}"

    first_line = next((line.strip() for line in job_post.split("\n") if line.strip()), None)
    if first_line and len(first_line) < MAX_DERIVED_TITLE_LENGTH:
        return first_line

    return DEFAULT_TITLE


class PromptService:
    """Prompt orchestration over the entity repositories and a content generator."""

    def __init__(
        self,
        users: UserRepository,
        prompts: PromptRepository,
        contents: GeneratedContentRepository,
        generator: Optional[ContentGenerator] = None,
    ):
        self.users = users
        self.prompts = prompts
        self.contents = contents
        self.generator = generator

    def _mark_failed(self, prompt_id: str) -> None:
        try:
            self.prompts.set_status(prompt_id, PromptStatus.FAILED)
        except (SQLAlchemyError, LookupError, ValueError) as e:
            self.prompts.rollback()
            logger.error(f"Could not mark prompt failed: prompt_id={prompt_id}, error={e}", exc_info=True)

    def _mark_completed(self, prompt_id: str) -> None:
        """
        Move a prompt with stored content to completed, trying the commit twice.

        Raises:
            PersistenceError: both attempts failed; the prompt is left processing
        """
        last_error = None
        for attempt in (1, 2):
            try:
                self.prompts.set_status(prompt_id, PromptStatus.COMPLETED)
                return
            except SQLAlchemyError as e:
                self.prompts.rollback()
                logger.warning(f"Error completing prompt: prompt_id={prompt_id}, attempt={attempt}, error={e}")
                last_error = e

        logger.error(
            f"Prompt has stored content but is stuck in processing: prompt_id={prompt_id}",
            exc_info=last_error,
        )
        raise PersistenceError("Failed to update prompt status") from last_error

    def process_prompt(self, identity: AuthIdentity, payload: Any) -> Dict[str, Any]:
        """
        Run the full submission workflow for one job posting.

        Raises:
            ProfileCreationFailed: profile row could not be created
            UsageLimitExceeded: monthly quota already used; nothing is created
            InvalidRequest: payload failed validation
            PersistenceError: prompt or content could not be stored
            GenerationFailed: completion call failed; prompt is left failed
        """
        if self.generator is None:
            logger.error("Content generator not configured")
            raise GenerationFailed()

        user = ensure_user_exists(self.users, identity)

        usage = check_usage_limit(self.prompts, user.id)
        if not usage.can_create:
            logger.warning(f"Usage limit exceeded: user_id={user.id}, used={usage.used}, limit={usage.limit}")
            raise UsageLimitExceeded(usage.to_dict())

        result = validate_prompt_request(payload)
        if not result.ok:
            raise InvalidRequest(result.errors)
        request = result.data

        title = request.title or derive_title(request.jobPost, request.company, request.position)

        # Generation happens inline, so the record starts in processing
        try:
            prompt = self.prompts.create(
                user_id=user.id,
                title=title,
                content=request.jobPost,
                company=request.company,
                position=request.position,
                status=PromptStatus.PROCESSING,
            )
        except SQLAlchemyError as e:
            self.prompts.rollback()
            logger.error(f"Error creating prompt: user_id={user.id}, error={e}", exc_info=True)
            raise PersistenceError("Failed to create prompt") from e

        logger.info(f"Prompt created: prompt_id={prompt.id}, user_id={user.id}")

        start = time.perf_counter()
        try:
            generated = self.generator.generate(request.jobPost)
        except GenerationFailed:
            logger.error(f"Generation failed: prompt_id={prompt.id}")
            self._mark_failed(prompt.id)
            raise
        except Exception as e:
            logger.error(f"Generation failed: prompt_id={prompt.id}, error={type(e).__name__}: {e}", exc_info=True)
            self._mark_failed(prompt.id)
            raise GenerationFailed() from e
        processing_time_ms = int((time.perf_counter() - start) * 1000)

        try:
            content = self.contents.create(
                prompt_id=prompt.id,
                user_id=user.id,
                bullet_points=generated.bullet_points,
                skills=generated.skills,
                keywords=generated.keywords,
                achievements=generated.achievements,
                summary=generated.summary,
                model=generated.model,
                processing_time_ms=processing_time_ms,
            )
        except SQLAlchemyError as e:
            self.contents.rollback()
            logger.error(f"Error storing generated content: prompt_id={prompt.id}, error={e}", exc_info=True)
            self._mark_failed(prompt.id)
            raise PersistenceError("Failed to store generated content") from e

        self._mark_completed(prompt.id)

        logger.info(
            f"Prompt completed: prompt_id={prompt.id}, user_id={user.id}, "
            f"processing_time_ms={processing_time_ms}"
        )

        updated_usage = check_usage_limit(self.prompts, user.id)

        return {
            "prompt_id": prompt.id,
            "generated_content": content,
            "success": True,
            "message": "Resume content generated successfully",
            "usage": updated_usage.to_dict(),
        }

    def list_user_prompts(self, identity: AuthIdentity) -> List[Prompt]:
        """Active prompts for the caller, newest first, with generated content."""
        user = ensure_user_exists(self.users, identity)
        try:
            return self.prompts.list_active(user.id)
        except SQLAlchemyError as e:
            self.prompts.rollback()
            logger.error(f"Error fetching prompts: user_id={user.id}, error={e}", exc_info=True)
            raise PersistenceError("Failed to fetch prompts") from e

    def get_user_prompt(self, identity: AuthIdentity, prompt_id: str) -> Prompt:
        prompt = self.prompts.get_for_user(prompt_id, identity.id)
        if prompt is None:
            raise NotFound("Prompt not found")
        return prompt

    def deactivate_prompt(self, identity: AuthIdentity, prompt_id: str) -> Prompt:
        """
        Soft-delete a prompt.

        Deactivated prompts disappear from listings and stop counting toward
        monthly usage.
        """
        prompt = self.get_user_prompt(identity, prompt_id)
        try:
            prompt = self.prompts.deactivate(prompt)
        except SQLAlchemyError as e:
            self.prompts.rollback()
            logger.error(f"Error deactivating prompt: prompt_id={prompt_id}, error={e}", exc_info=True)
            raise PersistenceError("Failed to delete prompt") from e

        logger.info(f"Prompt deactivated: prompt_id={prompt.id}, user_id={identity.id}")
        return prompt
