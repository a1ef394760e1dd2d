"""
Portfolio insights: role detection and quality scoring.

Both are single completion calls on top of CompletionClient. Transport and
upstream failures surface as the same classified GenerationFailed the edit
pipeline raises; only the answer parsing lives here.
"""

import json
import logging
import re
from typing import List, Literal, Optional

from pydantic import Field, ValidationError

import config
import errors
from errors import GenerationFailed
from llm import CompletionClient
from schemas import PortfolioDocument, WireModel

logger = logging.getLogger(__name__)

VALID_ROLES = (
    "developer",
    "designer",
    "product_manager",
    "data_scientist",
    "devops_engineer",
    "qa_engineer",
    "security_engineer",
    "mobile_developer",
    "ux_researcher",
    "content_writer",
    "marketing_manager",
    "brand_designer",
    "business_analyst",
    "project_manager",
    "sales_engineer",
    "consultant",
)
DEFAULT_ROLE = "developer"

ROLE_SYSTEM_PROMPT = """You are a career role classifier. Analyze the provided profile/resume content and determine the most appropriate professional role.

Available roles (use EXACT string):
- developer: Software developers, engineers, programmers, full-stack/backend/frontend developers
- designer: UI/UX designers, graphic designers, visual designers
- product_manager: Product managers, product owners
- data_scientist: Data scientists, ML engineers, AI researchers, data analysts
- devops_engineer: DevOps engineers, SRE, platform engineers, infrastructure engineers
- qa_engineer: QA engineers, testers, quality analysts
- security_engineer: Security engineers, cybersecurity specialists, penetration testers
- mobile_developer: iOS/Android developers, React Native/Flutter developers
- ux_researcher: UX researchers, user researchers
- content_writer: Content writers, copywriters, technical writers
- marketing_manager: Marketing managers, digital marketers, growth marketers
- brand_designer: Brand designers, identity designers
- business_analyst: Business analysts, systems analysts
- project_manager: Project managers, scrum masters, agile coaches
- sales_engineer: Sales engineers, solutions engineers, pre-sales consultants
- consultant: Consultants, advisors, strategists

Respond with ONLY the role ID from the list above. If unsure, respond with "developer"."""

EVALUATION_SYSTEM_PROMPT = """You are an expert portfolio reviewer and career coach. Evaluate the portfolio from a recruiter's perspective.

Score the portfolio from 0-100 based on:
- Completeness (all sections filled)
- Professional tone and clarity
- Impactful project descriptions
- Relevant skills highlighting
- Clear value proposition
- Call-to-actions and links

Return ONLY valid JSON with this structure:
{
  "score": 0-100,
  "summary": "One sentence overall assessment",
  "suggestions": [
    {
      "category": "projects" | "about" | "skills" | "experience" | "links" | "general",
      "priority": "high" | "medium" | "low",
      "suggestion": "Specific, actionable improvement"
    }
  ]
}

Be constructive but honest. Prioritize suggestions that will have the biggest impact."""

# Characters of profile text sent for role detection
ROLE_CONTENT_LIMIT = 3000

_FENCED_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


class RoleDetection(WireModel):
    role: str
    # "low" when the model's answer was not a known role and the default was used
    confidence: Literal["high", "low"] = "high"


class Suggestion(WireModel):
    category: Literal["projects", "about", "skills", "experience", "links", "general"] = "general"
    priority: Literal["high", "medium", "low"] = "medium"
    suggestion: str


class PortfolioEvaluation(WireModel):
    score: int = Field(ge=0, le=100)
    summary: str
    suggestions: List[Suggestion] = []


def _text_of(message) -> Optional[str]:
    content = message.get("content") if isinstance(message, dict) else None
    return content if isinstance(content, str) else None


def detect_role(content: str, source: str = "text", client: Optional[CompletionClient] = None) -> RoleDetection:
    """Classify profile text (a resume, a LinkedIn export, free text) into one of VALID_ROLES."""
    if not content or not content.strip():
        raise GenerationFailed("No content provided", reason=errors.INVALID_REQUEST)

    client = client or CompletionClient()
    logger.info("Detecting role from %s, content length: %d", source, len(content))
    message = client.complete(
        [
            {"role": "system", "content": ROLE_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": f"Analyze this {source} content and determine the professional role:\n\n"
                           f"{content[:ROLE_CONTENT_LIMIT]}",
            },
        ],
        model=config.AI_ASSIST_MODEL,
        max_tokens=50,
        temperature=0.1,
    )

    answer = (_text_of(message) or "").strip().strip("\"'.`").lower()
    if answer not in VALID_ROLES:
        logger.info("Invalid role detected: %r, defaulting to %s", answer, DEFAULT_ROLE)
        return RoleDetection(role=DEFAULT_ROLE, confidence="low")
    logger.info("Detected role: %s", answer)
    return RoleDetection(role=answer)


def build_evaluation_prompt(document: PortfolioDocument) -> str:
    about = f"{len(document.about_text)} characters" if document.about_text else "Empty"
    return "\n".join([
        "Evaluate this portfolio:",
        "",
        f"Role: {document.role or 'Not specified'}",
        f"Hero Title: {document.hero_title or 'Not set'}",
        f"Hero Subtitle: {document.hero_subtitle or 'Not set'}",
        f"About: {about}",
        f"Skills: {len(document.skills)} skills listed",
        f"Projects: {len(document.projects)} projects",
        f"Experience: {len(document.experience)} entries",
        f"Testimonials: {len(document.testimonials)} entries",
        f"Custom sections: {len(document.custom_sections)}",
        "",
        "Full Content:",
        json.dumps(document.to_wire(), indent=2),
    ])


def parse_evaluation(content: Optional[str]) -> PortfolioEvaluation:
    """Read a PortfolioEvaluation from model output: bare JSON, a fenced block, or JSON inside prose."""
    if not content or not content.strip():
        raise GenerationFailed("No evaluation generated", reason=errors.MALFORMED_RESPONSE)

    candidates = [content.strip()]
    fenced = _FENCED_RE.search(content)
    if fenced:
        candidates.append(fenced.group(1).strip())
    start, end = content.find("{"), content.rfind("}")
    if start != -1 and end > start:
        candidates.append(content[start:end + 1])

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, RecursionError):
            continue
        try:
            return PortfolioEvaluation.model_validate(data)
        except ValidationError as exc:
            logger.error("Evaluation failed schema validation: %s", exc.errors(include_url=False)[:5])
            raise GenerationFailed(
                "AI evaluation did not match the expected format", reason=errors.MALFORMED_RESPONSE
            ) from exc
    raise GenerationFailed("Could not parse evaluation response", reason=errors.MALFORMED_RESPONSE)


def evaluate_portfolio(document: PortfolioDocument, client: Optional[CompletionClient] = None) -> PortfolioEvaluation:
    """Score ``document`` from 0 to 100 with prioritised suggestions."""
    client = client or CompletionClient()
    logger.info("Evaluating portfolio quality...")
    message = client.complete(
        [
            {"role": "system", "content": EVALUATION_SYSTEM_PROMPT},
            {"role": "user", "content": build_evaluation_prompt(document)},
        ],
        model=config.AI_ASSIST_MODEL,
    )
    evaluation = parse_evaluation(_text_of(message))
    logger.info("Portfolio evaluated, score: %d", evaluation.score)
    return evaluation
