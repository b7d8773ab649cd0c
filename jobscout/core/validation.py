"""
Explicit request validation returning a tagged result.

Handlers call validate_payload() at the point in their workflow where input
should be checked, instead of letting the framework reject the body up front.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class ValidationResult(Generic[ModelT]):
    ok: bool
    data: Optional[ModelT] = None
    errors: List[Dict[str, str]] = field(default_factory=list)


def validate_payload(schema: Type[ModelT], payload: Any) -> ValidationResult[ModelT]:
    """Validate payload against schema; never raises."""
    if not isinstance(payload, dict):
        return ValidationResult(
            ok=False,
            errors=[{"field": "", "message": "Request body must be a JSON object"}],
        )

    try:
        return ValidationResult(ok=True, data=schema.model_validate(payload))
    except ValidationError as e:
        return ValidationResult(
            ok=False,
            errors=[
                {
                    "field": ".".join(str(part) for part in error["loc"]),
                    "message": error["msg"],
                }
                for error in e.errors()
            ],
        )
