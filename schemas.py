"""
Schemas for the AI Portfolio Editor

PortfolioDocument is the record an edit plan is applied to. PortfolioAction is
the closed set of edits a generator may propose, tagged on ``type`` exactly as
it travels over the wire. Field names are snake_case in Python; the wire keeps
the camelCase names the generator is prompted with (``newOrder``, ``sectionId``,
``primaryColor`` ...), so always serialise with ``to_wire()`` or ``by_alias``.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

import config
from errors import ExecutionPartialFailure
from sections import (
    BUILTIN_SECTIONS,
    DEFAULT_SECTION_ORDER,
    DEFAULT_THEME,
    SECTION_DISPLAY_NAMES,
)


def _new_id() -> str:
    return str(uuid4())


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---- Portfolio document ----

class Experience(WireModel):
    company: str = ""
    role: str = ""
    period: str = ""
    description: str = ""


class Project(WireModel):
    id: str = Field(default_factory=_new_id)
    title: str = ""
    description: str = ""
    technologies: List[str] = []
    link: str = ""
    images: List[str] = []
    featured_image: Optional[str] = None


class Testimonial(WireModel):
    id: str = Field(default_factory=_new_id)
    name: str = ""
    role: str = ""
    company: Optional[str] = None
    content: str = ""
    photo_url: Optional[str] = None


class Certificate(WireModel):
    id: str = Field(default_factory=_new_id)
    name: str = ""
    issuer: str = ""
    date: str = ""
    pdf_url: Optional[str] = None
    thumbnail_url: Optional[str] = None


class CustomSectionLink(WireModel):
    label: str
    url: str


class CustomSection(WireModel):
    id: str
    title: str
    content: str = ""
    media: List[str] = []
    links: List[CustomSectionLink] = []


class PortfolioTheme(WireModel):
    primary_color: str = Field(DEFAULT_THEME["primaryColor"], alias="primaryColor")
    background_color: str = Field(DEFAULT_THEME["backgroundColor"], alias="backgroundColor")
    text_color: str = Field(DEFAULT_THEME["textColor"], alias="textColor")


class PortfolioDocument(WireModel):
    id: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None
    hero_title: Optional[str] = None
    hero_subtitle: Optional[str] = None
    about_text: Optional[str] = None
    skills: List[str] = []
    projects: List[Project] = []
    experience: List[Experience] = []
    education: List[Dict[str, Any]] = []
    testimonials: List[Testimonial] = []
    certificates: List[Certificate] = []
    custom_sections: List[CustomSection] = []
    template: str = Field("minimal", description="minimal|professional|creative|developer|elegant|designer|bold")
    theme: PortfolioTheme = Field(default_factory=PortfolioTheme)
    color_mode: Literal["light", "dark"] = "dark"
    section_order: List[str] = Field(default_factory=lambda: list(DEFAULT_SECTION_ORDER))
    section_visibility: Dict[str, bool] = {}
    section_titles: Dict[str, str] = {}

    def custom_section_ids(self) -> List[str]:
        return [section.id for section in self.custom_sections]

    def custom_section(self, section_id: str) -> Optional[CustomSection]:
        for section in self.custom_sections:
            if section.id == section_id:
                return section
        return None

    def is_known_section(self, section_id: str) -> bool:
        return section_id in BUILTIN_SECTIONS or self.custom_section(section_id) is not None

    def section_ids(self) -> List[str]:
        """Known ids of ``section_order`` in order, then custom sections the order omits.

        Unknown and repeated ids in the stored order are ignored.
        """
        ordered: List[str] = []
        for section_id in self.section_order:
            if self.is_known_section(section_id) and section_id not in ordered:
                ordered.append(section_id)
        for section_id in self.custom_section_ids():
            if section_id not in ordered:
                ordered.append(section_id)
        return ordered

    def is_visible(self, section_id: str) -> bool:
        return self.section_visibility.get(section_id, True)

    def section_title(self, section_id: str) -> str:
        if section_id in self.section_titles:
            return self.section_titles[section_id]
        custom = self.custom_section(section_id)
        if custom is not None:
            return custom.title
        return SECTION_DISPLAY_NAMES.get(section_id, section_id)


# ---- Actions ----

class ContentUpdates(WireModel):
    """Untyped payload of update_content.

    Values are kept as sent; the validator type-checks each provided field.
    """

    hero_title: Optional[Any] = Field(None, validation_alias=AliasChoices("hero_title", "heroTitle"))
    hero_subtitle: Optional[Any] = Field(None, validation_alias=AliasChoices("hero_subtitle", "heroSubtitle"))
    about_text: Optional[Any] = Field(None, validation_alias=AliasChoices("about_text", "aboutText"))
    skills: Optional[Any] = None
    experience: Optional[Any] = None
    projects: Optional[Any] = None
    testimonials: Optional[Any] = None

    def provided(self) -> Dict[str, Any]:
        return {name: value for name, value in self if value is not None}


class ThemeUpdates(WireModel):
    primary_color: Optional[Any] = Field(None, alias="primaryColor")
    background_color: Optional[Any] = Field(None, alias="backgroundColor")
    text_color: Optional[Any] = Field(None, alias="textColor")

    def provided(self) -> Dict[str, Any]:
        return {name: value for name, value in self if value is not None}

    @classmethod
    def wire_name(cls, name: str) -> str:
        return cls.model_fields[name].alias or name


class BaseAction(WireModel):
    reasoning: Optional[str] = None


class ReorderSections(BaseAction):
    type: Literal["reorder_sections"] = "reorder_sections"
    new_order: List[str] = Field(alias="newOrder")


class ToggleSectionVisibility(BaseAction):
    type: Literal["toggle_section_visibility"] = "toggle_section_visibility"
    section_id: str = Field(alias="sectionId")
    visible: bool


class UpdateSectionTitle(BaseAction):
    type: Literal["update_section_title"] = "update_section_title"
    section_id: str = Field(alias="sectionId")
    new_title: str = Field(alias="newTitle")


class UpdateContent(BaseAction):
    type: Literal["update_content"] = "update_content"
    updates: ContentUpdates = Field(default_factory=ContentUpdates)


class UpdateTheme(BaseAction):
    type: Literal["update_theme"] = "update_theme"
    theme: ThemeUpdates = Field(default_factory=ThemeUpdates)
    color_mode: Optional[Literal["light", "dark"]] = Field(None, alias="colorMode")


class AddSection(BaseAction):
    type: Literal["add_section"] = "add_section"
    section_type: Literal["custom"] = Field("custom", alias="sectionType")
    title: str = ""
    content: str = ""
    # Optional so a replayed plan can reproduce the same id
    section_id: Optional[str] = Field(None, alias="sectionId")


class RemoveSection(BaseAction):
    type: Literal["remove_section"] = "remove_section"
    section_id: str = Field(alias="sectionId")


class UpdateLayout(BaseAction):
    type: Literal["update_layout"] = "update_layout"
    template: str


class BatchUpdate(BaseAction):
    type: Literal["batch_update"] = "batch_update"
    actions: List["PortfolioAction"] = []


PortfolioAction = Annotated[
    Union[
        ReorderSections,
        ToggleSectionVisibility,
        UpdateSectionTitle,
        UpdateContent,
        UpdateTheme,
        AddSection,
        RemoveSection,
        UpdateLayout,
        BatchUpdate,
    ],
    Field(discriminator="type"),
]

BatchUpdate.model_rebuild()


def batch_nesting(actions: Any) -> int:
    """Deepest level of batch_update nesting in raw or parsed ``actions``.

    Walks iteratively so arbitrarily deep input cannot exhaust the stack.
    """
    deepest = 0
    pending = [(actions, 1)]
    while pending:
        items, level = pending.pop()
        if not isinstance(items, list):
            continue
        for item in items:
            if isinstance(item, BatchUpdate):
                children = item.actions
            elif isinstance(item, dict) and item.get("type") == "batch_update":
                children = item.get("actions")
            else:
                continue
            deepest = max(deepest, level)
            pending.append((children, level + 1))
    return deepest


# ---- Plans and results ----

class EditContext(WireModel):
    role: Optional[str] = None


class AIEditPlan(WireModel):
    summary: str
    actions: List[PortfolioAction]
    confidence: Literal["high", "medium", "low"]

    @model_validator(mode="before")
    @classmethod
    def _bound_nesting(cls, data: Any) -> Any:
        if isinstance(data, dict):
            depth = batch_nesting(data.get("actions"))
            if depth > config.MAX_PLAN_NESTING:
                raise ValueError(
                    f"batch_update nested {depth} levels deep; at most {config.MAX_PLAN_NESTING} allowed"
                )
        return data


class ActionOutcome(WireModel):
    path: str
    type: str
    status: Literal["applied", "partial", "failed"]
    error: Optional[str] = None


class AIEditResult(WireModel):
    success: bool
    plan: AIEditPlan
    applied_changes: Dict[str, Any] = Field(default_factory=dict, alias="appliedChanges")
    errors: Optional[List[str]] = None
    outcomes: List[ActionOutcome] = []

    def raise_for_errors(self):
        if self.errors:
            raise ExecutionPartialFailure(self.errors)
