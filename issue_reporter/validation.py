"""Validation rules shared by the wizard's step gate and the API.

Both sides validate against the pydantic models in ``issue_reporter.schemas``;
the wizard only narrows the reported errors to the fields of the step the
reporter is on, so the two checks cannot drift apart.
"""

import json
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from issue_reporter.schemas import IssueCreate, IssueForm

ModelT = TypeVar("ModelT", bound=BaseModel)

STEP_FIELDS: dict[int, tuple[str, ...]] = {
    1: (
        "title",
        "description",
        "platform",
        "product_category",
        "severity",
        # Guarded here although frequency is collected on step 2
        "custom_frequency_description",
    ),
    2: ("frequency", "reproducible", "reproduction_steps", "actual_behavior"),
    3: ("software_version", "reported_by"),
    4: (),
    5: ("accept_terms",),
}


class IssueValidationError(Exception):
    """Raised when issue data does not satisfy the field schema."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__(format_errors(errors))


def format_errors(errors: Mapping[str, str]) -> str:
    """Aggregate field errors into one human-readable message."""
    parts = [
        f'{message} at "{to_camel(field) if "_" in field else field}"'
        for field, message in errors.items()
    ]
    return "Validation error: " + "; ".join(parts)


def collect_errors(exc: ValidationError) -> dict[str, str]:
    """Map each failing field to its first error message."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "issueData"
        errors.setdefault(field, error["msg"])
    return errors


def _without_blanks(data: Mapping[str, Any]) -> dict[str, Any]:
    return {
        key: value
        for key, value in data.items()
        if value is not None and not (isinstance(value, str) and not value.strip())
    }


def validate_issue(data: Mapping[str, Any], model: type[ModelT] = IssueCreate) -> ModelT:
    """Validate issue data, treating blank strings as missing values."""
    try:
        return model.model_validate(_without_blanks(data))
    except ValidationError as exc:
        raise IssueValidationError(collect_errors(exc)) from exc


def parse_issue_json(raw: str) -> IssueCreate:
    """Parse the ``issueData`` form field of a submission."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise IssueValidationError({"issueData": "Invalid JSON"}) from exc
    if not isinstance(data, dict):
        raise IssueValidationError({"issueData": "Expected a JSON object"})
    return validate_issue(data)


def validate_step(step: int, values: Mapping[str, Any]) -> dict[str, str]:
    """Return the field errors that block leaving ``step``."""
    fields = STEP_FIELDS[step]
    if not fields:
        return {}
    try:
        validate_issue(values, IssueForm)
    except IssueValidationError as exc:
        return {field: message for field, message in exc.errors.items() if field in fields}
    return {}
