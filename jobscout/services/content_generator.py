"""
Content generator for tailored resume material.

Builds a fixed-structure instruction from a job posting, calls the completion
service once, and parses the JSON reply. Nothing here touches the database.
"""
import json
import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from jobscout.core.errors import GenerationFailed
from jobscout.llm.provider import LLMProvider

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an expert resume writer and career coach. Always respond with valid JSON only."

USER_PROMPT_TEMPLATE = """
Analyze this job posting and generate tailored resume content:

JOB POSTING:
{job_post}

Please provide a JSON response with the following structure:
{{
  "bullet_points": [
    "Tailored bullet point emphasizing relevant experience #1",
    "Tailored bullet point emphasizing relevant experience #2",
    "Tailored bullet point emphasizing relevant experience #3",
    "Tailored bullet point emphasizing relevant experience #4",
    "Tailored bullet point emphasizing relevant experience #5"
  ],
  "skills": [
    "Skill 1 mentioned in job posting",
    "Skill 2 mentioned in job posting",
    "Skill 3 mentioned in job posting",
    "Additional relevant skill",
    "Additional relevant skill"
  ],
  "keywords": [
    "Important keyword from job posting",
    "Technical term from job posting",
    "Industry-specific term",
    "Action word from requirements",
    "Qualification mentioned"
  ],
  "achievements": [
    "Quantified achievement relevant to role #1",
    "Quantified achievement relevant to role #2",
    "Quantified achievement relevant to role #3"
  ],
  "summary": "A 2-3 sentence professional summary that aligns with this specific job posting, highlighting the most relevant qualifications and experience."
}}

Make sure all content is:
1. Directly relevant to the job posting requirements
2. Uses keywords and terminology from the posting
3. Bullet points are action-oriented and quantifiable when possible
4. Skills match both required and preferred qualifications
5. Summary is compelling and specific to this role
"""

LIST_FIELDS = ("bullet_points", "skills", "keywords", "achievements")


@dataclass
class GeneratedResume:
    """Parsed generator output, in model output order."""
    bullet_points: List[str] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    achievements: List[str] = field(default_factory=list)
    summary: Optional[str] = None
    model: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_generation(content: Optional[str], model: str = "") -> GeneratedResume:
    """
    Parse a completion body into a GeneratedResume.

    Missing list fields become empty lists and a missing summary becomes None.

    Raises:
        GenerationFailed: empty content, non-JSON content, or JSON that is not an object
    """
    if not content or not content.strip():
        logger.error("No content received from completion service")
        raise GenerationFailed()

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse completion response as JSON: {content[:200]}")
        raise GenerationFailed() from e

    if not isinstance(parsed, dict):
        logger.error(f"Completion response is not a JSON object: type={type(parsed).__name__}")
        raise GenerationFailed()

    values = {}
    for name in LIST_FIELDS:
        items = parsed.get(name) or []
        if not isinstance(items, list):
            items = [items]
        values[name] = [str(item) for item in items]

    summary = parsed.get("summary") or None
    if summary is not None and not isinstance(summary, str):
        summary = str(summary)

    return GeneratedResume(summary=summary, model=model, **values)


class ContentGenerator:
    """Turns job posting text into GeneratedResume via an LLMProvider."""

    def __init__(
        self,
        provider: LLMProvider,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 1500,
    ):
        self.provider = provider
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def build_messages(self, job_post: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": USER_PROMPT_TEMPLATE.format(job_post=job_post)},
        ]

    def generate(self, job_post: str) -> GeneratedResume:
        """
        Generate tailored resume content for a job posting.

        Raises:
            GenerationFailed: the provider call failed or returned unusable content
        """
        try:
            response = self.provider.chat(
                messages=self.build_messages(job_post),
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except GenerationFailed:
            raise
        except Exception as e:
            logger.error(f"Completion call failed: {type(e).__name__}: {e}", exc_info=True)
            raise GenerationFailed() from e

        logger.info(
            f"Completion received: provider={self.provider.name}, model={response.model or self.model}, "
            f"tokens_in={response.tokens_in}, tokens_out={response.tokens_out}, "
            f"cost_estimate={response.cost_estimate:.6f}"
        )
        if response.truncated:
            logger.warning(f"Completion hit max_tokens={self.max_tokens}; JSON may be cut off")

        return parse_generation(response.content, model=self.model)
