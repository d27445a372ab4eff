"""
Scavenger Hunt Backend - Validation Layer
==========================================

What:  Pure normalization and rejection of client input before any store
       access.
How:   Request bodies are parsed with the pydantic models in
       `scavenger.schemas`; every failing rule is collected and re-raised
       as one ValidationError whose context lists each violation. Path keys
       are normalized here too, so the store only ever sees normalized keys.
Who:   AccountService, WaypointService and ChallengeService.
"""

from typing import Any, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from scavenger.exceptions import ValidationError
from scavenger.schemas.account import Role

ModelT = TypeVar("ModelT", bound=BaseModel)


def violations_from_errors(errors: Iterable[dict]) -> List[dict]:
    """
    Flatten pydantic error dicts into `{field, rule, message}` violations.

    Nested locations are joined with dots (`data.0.location.lat`). Also
    used by the RequestValidationError handler so both paths share a format.
    """
    violations = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        violations.append(
            {
                "field": ".".join(loc) or "body",
                "rule": err.get("type", "invalid"),
                "message": err.get("msg", "invalid value"),
            }
        )
    return violations


def parse_input(model: Type[ModelT], payload: Any) -> ModelT:
    """
    Validate `payload` against `model`.

    Raises:
        ValidationError: listing every violated field and rule, never just the first
    """
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        reject(violations_from_errors(e.errors()), cause=e)


def reject(violations: List[dict], cause: Optional[BaseException] = None) -> None:
    """Raise one ValidationError for `violations` if there are any."""
    if not violations:
        return
    count = len(violations)
    message = "1 validation error" if count == 1 else f"{count} validation errors"
    raise ValidationError(message, violations=violations) from cause


def normalize_username(raw: str) -> str:
    """Path-key form of a username: trimmed and lowercased."""
    return raw.strip().lower()


def normalize_sequence_name(raw: str) -> str:
    """Path-key form of a waypoint sequence name: trimmed and lowercased."""
    return raw.strip().lower()


def ensure_keys_match(path_key: str, body_key: str, field: str) -> None:
    """
    The natural key in the URL and the one in the body must be the same.

    Both keys are expected in normalized form. Renaming an entity through
    an update is not supported.
    """
    if path_key != body_key:
        message = f"{field} in the body must match the {field} in the path"
        raise ValidationError(
            message,
            field=field,
            violations=[{"field": field, "rule": "key_mismatch", "message": message}],
            context={"path": path_key, "body": body_key},
        )


def parse_role_filter(raw: Optional[str]) -> Optional[Role]:
    """Validate the optional `role` list filter against the role enum."""
    if raw is None:
        return None
    try:
        return Role(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(role.value for role in Role)
        message = f"role must be one of: {allowed}"
        raise ValidationError(
            message,
            field="role",
            violations=[{"field": "role", "rule": "enum", "message": message}],
        )
