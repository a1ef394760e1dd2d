import logging
from typing import Optional

import config
import errors
from errors import GenerationFailed
from llm import CompletionClient

logger = logging.getLogger(__name__)


def build_system_prompt(scope: str, section_type: Optional[str] = None, role: Optional[str] = None) -> str:
    prompt = f"""You are a professional content editor for portfolios and resumes. Improve or rewrite content based on the user's command.

RULES:
1. Output only the improved content: no explanations, no markdown wrappers
2. Preserve the original meaning and key information
3. Match the tone expected for {role or "professional"} roles
4. Keep formatting consistent (bullets, structure)
5. Do not add information that was not in the original
6. Keep each section's purpose:
   - Summary/About: professional summary, career highlights
   - Experience: action verbs, quantified achievements
   - Skills: technical and soft skills, relevant keywords
   - Projects: impact and technologies
   - Education: degrees, institutions, relevant coursework

Current scope: {scope}"""
    if section_type:
        prompt += f"\nSection type: {section_type}"
    return prompt


def rewrite_content(command: str, content: str, scope: str = "section",
                    section_type: Optional[str] = None, role: Optional[str] = None,
                    client: Optional[CompletionClient] = None) -> str:
    """Apply a free-text editing command to ``content`` and return the rewritten text."""
    if not command or not command.strip() or not content or not content.strip():
        raise GenerationFailed("Command and content are required", reason=errors.INVALID_REQUEST)

    client = client or CompletionClient()
    messages = [
        {"role": "system", "content": build_system_prompt(scope, section_type, role)},
        {
            "role": "user",
            "content": f'Command: "{command}"\n\nContent to edit:\n{content}\n\n'
                       "Return ONLY the improved content, nothing else.",
        },
    ]
    logger.info('Rewriting %s content for command "%s..."', scope, command[:50])
    message = client.complete(messages, model=config.AI_REWRITE_MODEL, temperature=0.7, max_tokens=2000)
    edited = message.get("content") if isinstance(message, dict) else None
    if not isinstance(edited, str) or not edited.strip():
        raise GenerationFailed("No content returned from AI", reason=errors.MALFORMED_RESPONSE)
    return edited.strip()
