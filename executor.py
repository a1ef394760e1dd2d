"""
Plan executor.

Applies an AIEditPlan to a PortfolioDocument one action at a time, each action
against the document the previous one produced. Invalid actions are recorded
and skipped, and nothing already applied is rolled back: callers wanting
all-or-nothing keep their own snapshot and drop the result when
``result.success`` is false.
"""

import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple
from uuid import uuid4

import config
from schemas import (
    AddSection,
    AIEditPlan,
    AIEditResult,
    ActionOutcome,
    BatchUpdate,
    CustomSection,
    Experience,
    PortfolioDocument,
    Project,
    RemoveSection,
    ReorderSections,
    Testimonial,
    ThemeUpdates,
    ToggleSectionVisibility,
    UpdateContent,
    UpdateLayout,
    UpdateSectionTitle,
    UpdateTheme,
    WireModel,
)
from sections import CUSTOM_SECTION_PREFIX
from validation import validate

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]
Changes = Dict[str, Any]


def new_id() -> str:
    return str(uuid4())


class PlanExecution(NamedTuple):
    document: PortfolioDocument
    result: AIEditResult


def _plain(value):
    if isinstance(value, list):
        return [item.to_wire() if isinstance(item, WireModel) else item for item in value]
    return value


# ---- Reducers: (action, document, new_id) -> (new document, applied changes) ----

def _reorder(action: ReorderSections, document: PortfolioDocument, new_id: IdFactory) -> Tuple[PortfolioDocument, Changes]:
    requested = list(action.new_order)
    order = requested + [section_id for section_id in document.section_ids() if section_id not in requested]
    return document.model_copy(update={"section_order": order}), {"section_order": order}


def _toggle(action: ToggleSectionVisibility, document: PortfolioDocument, new_id: IdFactory):
    visibility = dict(document.section_visibility)
    visibility[action.section_id] = action.visible
    return (
        document.model_copy(update={"section_visibility": visibility}),
        {f"section_visibility.{action.section_id}": action.visible},
    )


def _retitle(action: UpdateSectionTitle, document: PortfolioDocument, new_id: IdFactory):
    title = action.new_title.strip()
    titles = dict(document.section_titles)
    titles[action.section_id] = title
    return (
        document.model_copy(update={"section_titles": titles}),
        {f"section_titles.{action.section_id}": title},
    )


def _project(entry: dict, document: PortfolioDocument, new_id: IdFactory) -> Project:
    project_id = entry.get("id") or new_id()
    previous = next((p for p in document.projects if p.id == project_id), None)
    return Project(
        id=project_id,
        title=entry["title"],
        description=entry.get("description") or "",
        technologies=list(entry.get("technologies") or []),
        link=entry.get("link") or "",
        images=list(previous.images) if previous else [],
        featured_image=previous.featured_image if previous else None,
    )


def _testimonial(entry: dict, document: PortfolioDocument, new_id: IdFactory) -> Testimonial:
    testimonial_id = entry.get("id") or new_id()
    previous = next((t for t in document.testimonials if t.id == testimonial_id), None)
    return Testimonial(
        id=testimonial_id,
        name=entry["name"],
        role=entry.get("role") or "",
        company=entry.get("company"),
        content=entry["content"],
        photo_url=previous.photo_url if previous else None,
    )


def _update_content(action: UpdateContent, document: PortfolioDocument, new_id: IdFactory):
    update: Dict[str, Any] = {}
    for field, value in action.updates.provided().items():
        if field == "skills":
            value = [skill.strip() for skill in value if skill.strip()]
        elif field == "experience":
            value = [
                Experience(
                    company=entry["company"],
                    role=entry["role"],
                    period=entry.get("period") or "",
                    description=entry.get("description") or "",
                )
                for entry in value
            ]
        elif field == "projects":
            value = [_project(entry, document, new_id) for entry in value]
        elif field == "testimonials":
            value = [_testimonial(entry, document, new_id) for entry in value]
        update[field] = value
    changes = {field: _plain(value) for field, value in update.items()}
    return document.model_copy(update=update), changes


def _update_theme(action: UpdateTheme, document: PortfolioDocument, new_id: IdFactory):
    update: Dict[str, Any] = {}
    changes: Changes = {}
    colors = {field: value.strip() for field, value in action.theme.provided().items()}
    if colors:
        update["theme"] = document.theme.model_copy(update=colors)
        for field, value in colors.items():
            changes[f"theme.{ThemeUpdates.wire_name(field)}"] = value
    if action.color_mode:
        update["color_mode"] = action.color_mode
        changes["color_mode"] = action.color_mode
    return document.model_copy(update=update), changes


def _add_section(action: AddSection, document: PortfolioDocument, new_id: IdFactory):
    section_id = action.section_id or f"{CUSTOM_SECTION_PREFIX}{new_id()}"
    section = CustomSection(id=section_id, title=action.title.strip(), content=action.content)
    update = {
        "custom_sections": list(document.custom_sections) + [section],
        "section_order": document.section_ids() + [section_id],
    }
    return document.model_copy(update=update), {f"custom_sections.{section_id}": section.to_wire()}


def _remove_section(action: RemoveSection, document: PortfolioDocument, new_id: IdFactory):
    section_id = action.section_id
    order = [s for s in document.section_ids() if s != section_id]
    update: Dict[str, Any] = {
        "section_order": order,
        "section_visibility": {k: v for k, v in document.section_visibility.items() if k != section_id},
        "section_titles": {k: v for k, v in document.section_titles.items() if k != section_id},
    }
    changes: Changes = {"section_order": order}
    if document.custom_section(section_id) is not None:
        update["custom_sections"] = [s for s in document.custom_sections if s.id != section_id]
        changes[f"custom_sections.{section_id}"] = None
    return document.model_copy(update=update), changes


def _update_layout(action: UpdateLayout, document: PortfolioDocument, new_id: IdFactory):
    return document.model_copy(update={"template": action.template}), {"template": action.template}


_REDUCERS = {
    ReorderSections: _reorder,
    ToggleSectionVisibility: _toggle,
    UpdateSectionTitle: _retitle,
    UpdateContent: _update_content,
    UpdateTheme: _update_theme,
    AddSection: _add_section,
    RemoveSection: _remove_section,
    UpdateLayout: _update_layout,
}


class _PlanRun:
    """Accumulates errors, changes and outcomes across one execute_plan call."""

    def __init__(self, max_depth: int, new_id: IdFactory):
        self.max_depth = max_depth
        self.new_id = new_id
        self.applied_changes: Changes = {}
        self.errors: List[str] = []
        self.outcomes: List[ActionOutcome] = []

    def fail(self, path: str, action, message: str):
        logger.warning("Skipping %s (%s): %s", path, action.type, message)
        self.errors.append(f"{path}: {message}")
        self.outcomes.append(ActionOutcome(path=path, type=action.type, status="failed", error=message))

    def run(self, actions, document: PortfolioDocument, depth: int = 0,
            prefix: str = "actions") -> Tuple[PortfolioDocument, int]:
        """Apply ``actions`` in order; returns the document and how many leaf actions applied."""
        applied = 0
        for index, action in enumerate(actions):
            path = f"{prefix}[{index}]"
            outcome = validate(action, document, depth=depth, max_depth=self.max_depth)
            if not outcome.ok:
                self.fail(path, action, str(outcome))
                continue

            if isinstance(action, BatchUpdate):
                slot = len(self.outcomes)
                errors_before = len(self.errors)
                document, nested = self.run(action.actions, document, depth + 1, f"{path}.actions")
                failed = len(self.errors) - errors_before
                if not failed:
                    status = "applied"
                elif nested:
                    status = "partial"
                else:
                    status = "failed"
                self.outcomes.insert(slot, ActionOutcome(path=path, type=action.type, status=status))
                applied += nested
                continue

            document, changes = _REDUCERS[type(action)](action, document, self.new_id)
            self.applied_changes.update(changes)
            self.outcomes.append(ActionOutcome(path=path, type=action.type, status="applied"))
            applied += 1
        return document, applied


def execute_plan(plan: AIEditPlan, document: PortfolioDocument, *,
                 max_batch_depth: Optional[int] = None,
                 id_factory: Optional[IdFactory] = None) -> PlanExecution:
    """Apply every action of ``plan`` to a copy of ``document``.

    ``id_factory`` supplies ids for new custom sections, projects and
    testimonials; pass a deterministic one to make replays reproducible.
    """
    if max_batch_depth is None:
        max_batch_depth = config.MAX_BATCH_DEPTH
    run = _PlanRun(max_batch_depth, id_factory or new_id)
    updated, applied = run.run(plan.actions, document.model_copy(deep=True))
    logger.info(
        "Executed plan: %d action(s), %d applied, %d error(s)",
        len(plan.actions), applied, len(run.errors),
    )
    result = AIEditResult(
        success=not run.errors,
        plan=plan,
        applied_changes=run.applied_changes,
        errors=list(run.errors) or None,
        outcomes=run.outcomes,
    )
    return PlanExecution(updated, result)


def apply_action(action, document: PortfolioDocument, **kwargs) -> PortfolioDocument:
    """Validate and apply a single action; an invalid one leaves the document as it was."""
    plan = AIEditPlan(summary="", actions=[action], confidence="high")
    return execute_plan(plan, document, **kwargs).document
