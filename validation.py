"""
Action validation.

``validate`` is pure and total: every problem comes back as a ValidationOutcome
so the executor can collect them without stopping the plan.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

import config
from schemas import (
    AddSection,
    BatchUpdate,
    PortfolioDocument,
    RemoveSection,
    ReorderSections,
    ToggleSectionVisibility,
    UpdateContent,
    UpdateLayout,
    UpdateSectionTitle,
    UpdateTheme,
)
from sections import KNOWN_TEMPLATES, is_builtin_section, is_valid_color


class ValidationCode(str, Enum):
    UNKNOWN_SECTION = "UnknownSection"
    UNKNOWN_TEMPLATE = "UnknownTemplate"
    INVALID_COLOR = "InvalidColor"
    MALFORMED_ENTRY = "MalformedEntry"
    BATCH_TOO_DEEP = "BatchTooDeep"
    INVALID_ACTION = "InvalidAction"


class ValidationOutcome(BaseModel):
    code: Optional[ValidationCode] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.code is None

    @classmethod
    def success(cls) -> "ValidationOutcome":
        return cls()

    @classmethod
    def failure(cls, code: ValidationCode, message: str) -> "ValidationOutcome":
        return cls(code=code, message=message)

    def __str__(self):
        if self.ok:
            return "ok"
        return f"{self.code.value}: {self.message}"


OK = ValidationOutcome.success()

TEXT_FIELDS = ("hero_title", "hero_subtitle", "about_text")

# Sub-fields each structured entry must carry, and the ones that must be text when present
REQUIRED_ENTRY_FIELDS = {
    "experience": ("company", "role"),
    "projects": ("title",),
    "testimonials": ("name", "content"),
}
OPTIONAL_TEXT_FIELDS = {
    "experience": ("period", "description"),
    "projects": ("description", "link", "id"),
    "testimonials": ("role", "company", "id"),
}


def _unknown_section(section_id: str) -> ValidationOutcome:
    return ValidationOutcome.failure(ValidationCode.UNKNOWN_SECTION, f"unknown section '{section_id}'")


def _check_section(section_id: str, document: PortfolioDocument) -> ValidationOutcome:
    if not document.is_known_section(section_id):
        return _unknown_section(section_id)
    return OK


def _validate_reorder(action: ReorderSections, document: PortfolioDocument) -> ValidationOutcome:
    seen = set()
    for section_id in action.new_order:
        if section_id in seen:
            return ValidationOutcome.failure(
                ValidationCode.INVALID_ACTION, f"section '{section_id}' appears more than once in newOrder"
            )
        seen.add(section_id)
        if not document.is_known_section(section_id):
            return _unknown_section(section_id)
    return OK


def _validate_toggle(action: ToggleSectionVisibility, document: PortfolioDocument) -> ValidationOutcome:
    return _check_section(action.section_id, document)


def _validate_title(action: UpdateSectionTitle, document: PortfolioDocument) -> ValidationOutcome:
    outcome = _check_section(action.section_id, document)
    if not outcome.ok:
        return outcome
    if not action.new_title.strip():
        return ValidationOutcome.failure(ValidationCode.INVALID_ACTION, "section title cannot be empty")
    return OK


def _validate_entry(field: str, index: int, entry: Any) -> ValidationOutcome:
    where = f"{field}[{index}]"
    if not isinstance(entry, dict):
        return ValidationOutcome.failure(ValidationCode.MALFORMED_ENTRY, f"{where} must be an object")
    for name in REQUIRED_ENTRY_FIELDS[field]:
        value = entry.get(name)
        if not isinstance(value, str) or not value.strip():
            return ValidationOutcome.failure(
                ValidationCode.MALFORMED_ENTRY, f"{where} is missing required field '{name}'"
            )
    for name in OPTIONAL_TEXT_FIELDS[field]:
        value = entry.get(name)
        if value is not None and not isinstance(value, str):
            return ValidationOutcome.failure(
                ValidationCode.MALFORMED_ENTRY, f"{where}.{name} must be a string"
            )
    if field == "projects":
        technologies = entry.get("technologies")
        if technologies is not None and (
            not isinstance(technologies, list) or not all(isinstance(t, str) for t in technologies)
        ):
            return ValidationOutcome.failure(
                ValidationCode.MALFORMED_ENTRY, f"{where}.technologies must be a list of strings"
            )
    return OK


def _validate_content(action: UpdateContent, document: PortfolioDocument) -> ValidationOutcome:
    for field, value in action.updates.provided().items():
        if field in TEXT_FIELDS:
            if not isinstance(value, str):
                return ValidationOutcome.failure(ValidationCode.INVALID_ACTION, f"{field} must be a string")
        elif field == "skills":
            if not isinstance(value, list) or not all(isinstance(skill, str) for skill in value):
                return ValidationOutcome.failure(ValidationCode.INVALID_ACTION, "skills must be a list of strings")
        else:
            if not isinstance(value, list):
                return ValidationOutcome.failure(ValidationCode.INVALID_ACTION, f"{field} must be a list")
            for index, entry in enumerate(value):
                outcome = _validate_entry(field, index, entry)
                if not outcome.ok:
                    return outcome
    return OK


def _validate_theme(action: UpdateTheme, document: PortfolioDocument) -> ValidationOutcome:
    for field, value in action.theme.provided().items():
        if not is_valid_color(value):
            return ValidationOutcome.failure(
                ValidationCode.INVALID_COLOR,
                f"{action.theme.wire_name(field)} '{value}' is not a valid colour",
            )
    return OK


def _validate_add(action: AddSection, document: PortfolioDocument) -> ValidationOutcome:
    if not action.title.strip():
        return ValidationOutcome.failure(ValidationCode.INVALID_ACTION, "custom section title cannot be empty")
    if action.section_id is not None:
        if not action.section_id.strip():
            return ValidationOutcome.failure(ValidationCode.INVALID_ACTION, "sectionId cannot be empty")
        if is_builtin_section(action.section_id) or document.custom_section(action.section_id) is not None:
            return ValidationOutcome.failure(
                ValidationCode.INVALID_ACTION, f"section '{action.section_id}' already exists"
            )
    return OK


def _validate_remove(action: RemoveSection, document: PortfolioDocument) -> ValidationOutcome:
    return _check_section(action.section_id, document)


def _validate_layout(action: UpdateLayout, document: PortfolioDocument) -> ValidationOutcome:
    if action.template not in KNOWN_TEMPLATES:
        return ValidationOutcome.failure(ValidationCode.UNKNOWN_TEMPLATE, f"unknown template '{action.template}'")
    return OK


_VALIDATORS = {
    ReorderSections: _validate_reorder,
    ToggleSectionVisibility: _validate_toggle,
    UpdateSectionTitle: _validate_title,
    UpdateContent: _validate_content,
    UpdateTheme: _validate_theme,
    AddSection: _validate_add,
    RemoveSection: _validate_remove,
    UpdateLayout: _validate_layout,
}


def validate(action, document: PortfolioDocument, depth: int = 0,
             max_depth: int = config.MAX_BATCH_DEPTH) -> ValidationOutcome:
    """Check ``action`` against ``document``.

    ``depth`` is the number of batch_update actions enclosing ``action``. A
    batch is only checked for its own depth; the executor validates its nested
    actions as it reaches them, each against the document as it stands then.
    """
    if isinstance(action, BatchUpdate):
        if depth >= max_depth:
            return ValidationOutcome.failure(
                ValidationCode.BATCH_TOO_DEEP, f"batch_update nested deeper than {max_depth} levels"
            )
        return OK
    validator = _VALIDATORS.get(type(action))
    if validator is None:
        return ValidationOutcome.failure(
            ValidationCode.INVALID_ACTION, f"unsupported action type '{getattr(action, 'type', type(action).__name__)}'"
        )
    return validator(action, document)
