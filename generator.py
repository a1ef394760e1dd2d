"""
Plan generation.

A PlanGenerator turns a free-text instruction and the current document into an
AIEditPlan. The remote implementation forces the model to answer through a
single function call whose parameters mirror the action schema, then parses the
answer through the same pydantic models a hand-built plan would use.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import ValidationError

import errors
from errors import GenerationFailed
from llm import CompletionClient
from schemas import AIEditPlan, EditContext, PortfolioDocument
from sections import BUILTIN_SECTIONS, KNOWN_TEMPLATES

logger = logging.getLogger(__name__)

PLAN_FUNCTION = "apply_portfolio_changes"

SYSTEM_PROMPT = f"""You are an expert portfolio editor and career consultant. You make STRUCTURAL and CONTENT changes to a personal portfolio.

CAPABILITIES:
1. REORDER SECTIONS (reorder_sections) - change the order of sections
2. TOGGLE VISIBILITY (toggle_section_visibility) - show or hide a section
3. UPDATE TITLES (update_section_title) - rename a section
4. UPDATE CONTENT (update_content) - rewrite hero, about, skills, experience, projects, testimonials
5. UPDATE THEME (update_theme) - change colors (hex codes) and color mode
6. CHANGE LAYOUT (update_layout) - switch template
7. ADD SECTIONS (add_section) - create a custom section
8. REMOVE SECTIONS (remove_section) - delete a section
9. GROUP CHANGES (batch_update) - bundle related actions

SECTION IDs: {", ".join(BUILTIN_SECTIONS)}, plus the ids of existing custom sections

TEMPLATES: {", ".join(KNOWN_TEMPLATES)}

USER INTENT MAPPING:
- "Make it more creative" -> creative template, vibrant colors, projects higher up
- "More professional" -> professional template, muted colors, experience higher up
- "Focus on projects" -> move projects up, hide less relevant sections
- "Senior-level tone" -> rewrite content with leadership language and quantified achievements
- "Move X above Y" -> reorder sections accordingly
- "Hide X" -> set the visibility of X to false
- "Make it shorter" -> hide less important sections, condense content

RESPONSE FORMAT:
Always call the {PLAN_FUNCTION} function. Include a one or two sentence summary.
Set confidence to "high" when the request is clear, "medium" when it is ambiguous and "low" when you are unsure.

WRITING STYLE:
- Use action verbs: Led, Built, Increased, Delivered, Architected
- Be specific and quantified: "Reduced load time by 60%" rather than "Improved performance"
- Match the language to the user's career level and industry"""

_STRING = {"type": "string"}
_STRING_LIST = {"type": "array", "items": _STRING}

PLAN_TOOL = {
    "type": "function",
    "function": {
        "name": PLAN_FUNCTION,
        "description": "Apply a structured set of changes to the portfolio. Call this with your edit plan.",
        "parameters": {
            "type": "object",
            "properties": {
                "summary": {"type": "string", "description": "Brief explanation of the changes (1-2 sentences)"},
                "confidence": {
                    "type": "string",
                    "enum": ["high", "medium", "low"],
                    "description": "Confidence in understanding the user's intent",
                },
                "actions": {
                    "type": "array",
                    "description": "Actions to apply, in order",
                    "items": {
                        "type": "object",
                        "properties": {
                            "type": {
                                "type": "string",
                                "enum": [
                                    "reorder_sections",
                                    "toggle_section_visibility",
                                    "update_section_title",
                                    "update_content",
                                    "update_theme",
                                    "update_layout",
                                    "add_section",
                                    "remove_section",
                                    "batch_update",
                                ],
                            },
                            "reasoning": {"type": "string", "description": "Why this action is taken"},
                            "newOrder": {**_STRING_LIST, "description": "New order of section ids"},
                            "sectionId": {"type": "string", "description": "Section id to modify"},
                            "visible": {"type": "boolean"},
                            "newTitle": {"type": "string"},
                            "updates": {
                                "type": "object",
                                "properties": {
                                    "hero_title": _STRING,
                                    "hero_subtitle": _STRING,
                                    "about_text": _STRING,
                                    "skills": _STRING_LIST,
                                    "experience": {
                                        "type": "array",
                                        "items": {
                                            "type": "object",
                                            "properties": {
                                                "company": _STRING,
                                                "role": _STRING,
                                                "period": _STRING,
                                                "description": _STRING,
                                            },
                                            "required": ["company", "role"],
                                        },
                                    },
                                    "projects": {
                                        "type": "array",
                                        "items": {
                                            "type": "object",
                                            "properties": {
                                                "title": _STRING,
                                                "description": _STRING,
                                                "technologies": _STRING_LIST,
                                                "link": _STRING,
                                            },
                                            "required": ["title"],
                                        },
                                    },
                                    "testimonials": {
                                        "type": "array",
                                        "items": {
                                            "type": "object",
                                            "properties": {
                                                "name": _STRING,
                                                "role": _STRING,
                                                "company": _STRING,
                                                "content": _STRING,
                                            },
                                            "required": ["name", "content"],
                                        },
                                    },
                                },
                            },
                            "theme": {
                                "type": "object",
                                "properties": {
                                    "primaryColor": _STRING,
                                    "backgroundColor": _STRING,
                                    "textColor": _STRING,
                                },
                            },
                            "colorMode": {"type": "string", "enum": ["light", "dark"]},
                            "template": {"type": "string", "enum": list(KNOWN_TEMPLATES)},
                            "sectionType": {"type": "string", "enum": ["custom"]},
                            "title": {"type": "string", "description": "Title for a new custom section"},
                            "content": {"type": "string", "description": "Content for a new custom section"},
                            "actions": {
                                "type": "array",
                                "items": {"type": "object"},
                                "description": "Nested actions for batch_update",
                            },
                        },
                        "required": ["type"],
                    },
                },
            },
            "required": ["summary", "confidence", "actions"],
        },
    },
}

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


def build_user_prompt(instruction: str, document: PortfolioDocument, context: Optional[EditContext] = None) -> str:
    role = (context.role if context else None) or document.role or "Not specified"
    hidden = [section_id for section_id in document.section_ids() if not document.is_visible(section_id)]
    skills = ", ".join(document.skills[:5]) + ("..." if len(document.skills) > 5 else "")
    about = f"{document.about_text[:100]}..." if document.about_text else "Not set"
    summary = "\n".join([
        "CURRENT PORTFOLIO STATE:",
        f"- Role/Industry: {role}",
        f"- Template: {document.template}",
        f"- Color Mode: {document.color_mode}",
        f"- Section Order: {' -> '.join(document.section_ids())}",
        f"- Hidden Sections: {', '.join(hidden) or 'None'}",
        "",
        "CONTENT SUMMARY:",
        f"- Hero: {document.hero_title or 'Not set'} | {document.hero_subtitle or 'Not set'}",
        f"- About: {about}",
        f"- Skills: {skills or 'None'}",
        f"- Experience: {len(document.experience)} entries",
        f"- Projects: {len(document.projects)} entries",
        f"- Testimonials: {len(document.testimonials)} entries",
        f"- Custom sections: {', '.join(f'{s.id} ({s.title})' for s in document.custom_sections) or 'None'}",
    ])
    return (
        f'User Command: "{instruction}"\n\n'
        f"{summary}\n\n"
        f"FULL PORTFOLIO DATA:\n{json.dumps(document.to_wire(), indent=2)}\n\n"
        "Analyze the user's command and apply appropriate structural and content changes. "
        "If they ask for a style change, also update content to match. If they want emphasis on "
        "something, reorder sections and possibly hide less relevant ones."
    )


def _loads(raw: Any) -> Any:
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        raise GenerationFailed("No structured response from AI", reason=errors.MALFORMED_RESPONSE)
    try:
        return json.loads(_FENCE_RE.sub("", raw.strip()))
    except (json.JSONDecodeError, RecursionError) as exc:
        raise GenerationFailed("AI response is not valid JSON", reason=errors.MALFORMED_RESPONSE) from exc


def parse_plan_message(message: Any) -> AIEditPlan:
    """Read an AIEditPlan out of a chat completion message.

    Tool call arguments win; JSON in the message content is accepted for models
    that ignore ``tool_choice``.
    """
    if not isinstance(message, dict):
        raise GenerationFailed("No structured response from AI", reason=errors.MALFORMED_RESPONSE)

    raw = None
    for call in message.get("tool_calls") or []:
        function = call.get("function") if isinstance(call, dict) else None
        if isinstance(function, dict) and function.get("arguments"):
            raw = function["arguments"]
            break
    if raw is None:
        raw = message.get("content")
    if not raw:
        raise GenerationFailed("No structured response from AI", reason=errors.MALFORMED_RESPONSE)

    try:
        return AIEditPlan.model_validate(_loads(raw))
    except ValidationError as exc:
        logger.error("AI plan failed schema validation: %s", exc.errors(include_url=False)[:5])
        raise GenerationFailed(
            "AI response did not match the portfolio action schema", reason=errors.MALFORMED_RESPONSE
        ) from exc


class PlanGenerator(ABC):
    """Produces an AIEditPlan for an instruction.

    Implementations raise GenerationFailed, never anything else.
    """

    @abstractmethod
    def generate(self, instruction: str, document: PortfolioDocument,
                 context: Optional[EditContext] = None) -> AIEditPlan:
        ...

    def close(self):
        pass


class RemotePlanGenerator(PlanGenerator):
    def __init__(self, client: Optional[CompletionClient] = None):
        self.client = client or CompletionClient()

    def generate(self, instruction: str, document: PortfolioDocument,
                 context: Optional[EditContext] = None) -> AIEditPlan:
        if not instruction or not instruction.strip():
            raise GenerationFailed("Command is required", reason=errors.INVALID_REQUEST)

        logger.info('Generating plan for command "%s..."', instruction[:50])
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_user_prompt(instruction, document, context)},
        ]
        message = self.client.complete(
            messages,
            tools=[PLAN_TOOL],
            tool_choice={"type": "function", "function": {"name": PLAN_FUNCTION}},
        )
        plan = parse_plan_message(message)
        logger.info("Generated plan with %d actions, confidence: %s", len(plan.actions), plan.confidence)
        return plan

    def close(self):
        self.client.close()


class StaticPlanGenerator(PlanGenerator):
    """Returns the same plan for every instruction."""

    def __init__(self, plan: AIEditPlan):
        self.plan = plan
        self.calls = []

    def generate(self, instruction: str, document: PortfolioDocument,
                 context: Optional[EditContext] = None) -> AIEditPlan:
        self.calls.append(instruction)
        return self.plan.model_copy(deep=True)
