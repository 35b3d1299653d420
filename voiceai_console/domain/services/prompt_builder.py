"""
Agent Prompt Builder
Assembles the agent wizard's prompt sections from wizard answers
"""
import re
import logging
from typing import Dict, List, Optional, Sequence

from jinja2 import Environment, BaseLoader

from voiceai_console.domain.models.agent import FAQ, Voice

logger = logging.getLogger(__name__)

INDUSTRY_DESCRIPTIONS: Dict[str, str] = {
    "Automotive": "an automotive company helping customers find their perfect vehicle",
    "Real Estate": "a real estate company helping clients find their dream properties",
    "Healthcare": "a healthcare provider dedicated to patient care and wellness",
    "Technology/SaaS": "a technology company providing innovative software solutions",
    "Insurance": "an insurance company protecting what matters most to our clients",
    "Finance": "a financial services company helping clients achieve their financial goals",
    "Retail": "a retail company providing quality products and exceptional service",
    "Education": "an education platform empowering learners to reach their potential",
    "Other": "a company dedicated to serving our customers",
}

USE_CASE_ROLES: Dict[str, str] = {
    "Lead Qualification": "warm, patient, and professional lead qualification specialist",
    "Customer Support": "helpful and knowledgeable customer support representative",
    "Sales": "friendly and consultative sales representative",
    "Appointment Scheduling": "efficient and courteous scheduling coordinator",
    "Survey": "engaging survey coordinator",
    "Debt Collection": "assertive yet cooperative collections specialist",
    "General": "professional representative",
}

HINGLISH_VOICE_NAMES = {"english indian woman"}
VARIABLE_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

_env = Environment(loader=BaseLoader(), keep_trailing_newline=False)

ROLE_TEMPLATE = _env.from_string(
    "Your name is {{ agent_name }}. You're a {{ role }} at {{ company_name }}, {{ industry }}."
)

WELCOME_TEMPLATE = _env.from_string(
    "Hi, I'm {{ agent_name }} calling you from {{ company_name }}"
)

PROMPT_TEMPLATE = _env.from_string("""{{ role_section }}
{{ language_line }}
{% if business_context %}
### Business Context
{{ business_context }}
{% endif %}{% if tasks %}
### Tasks
{{ tasks }}
{% endif %}{% if conversation_flow %}
### Conversation Flow
{{ conversation_flow }}
{% endif %}{% if faqs %}
### FAQs
{% for faq in faqs %}Q: {{ faq.question }}
A: {{ faq.answer }}
{% endfor %}{% endif %}""")

HINGLISH_INSTRUCTIONS = """##INSTRUCTION FOR LLM OUTPUT:
Always output currency amounts using "rupay" and write out numbers in words. Never use the rupee sign, Rs. or digits for Indian currency.
- For time write digits in english format (e.g., "6:45" as "six forty-five")
- Use a mix of English for hard Hindi words to keep TTS pronunciation clear.

IMPORTANT LANGUAGE INSTRUCTION:
You can speak both English and Hinglish. If the user speaks primarily in English, respond in clear English.
If the user speaks in Hindi or Hinglish, respond in natural Hinglish."""

VOICE_PERSONALITIES: Dict[str, str] = {
    "hindi man": "VOICE PERSONALITY: Speak with a male personality. Use masculine tone, style, and pronouns.",
    "hindi woman": "VOICE PERSONALITY: Speak with a female personality. Use feminine tone, style, and pronouns.",
    "english indian woman": "VOICE PERSONALITY: Speak with a female personality. Use feminine tone, style, and pronouns.",
}


def generate_role_section(agent_name: str, use_case: str, company_name: str, industry: str) -> str:
    """Role line; unknown use cases and industries fall back to General / Other."""
    return ROLE_TEMPLATE.render(
        agent_name=agent_name,
        role=USE_CASE_ROLES.get(use_case, USE_CASE_ROLES["General"]),
        company_name=company_name,
        industry=INDUSTRY_DESCRIPTIONS.get(industry, INDUSTRY_DESCRIPTIONS["Other"]),
    )


def _find_voice(voice_id: Optional[str], voices: Sequence[Voice]) -> Optional[Voice]:
    return next((v for v in voices if v.id == voice_id), None)


def language_from_voice(voice_id: Optional[str], voices: Sequence[Voice]) -> str:
    """Speaking language implied by the voice name (English when unknown)."""
    voice = _find_voice(voice_id, voices)
    if voice is None:
        return "English"

    name = voice.name.lower()
    if "hindi" in name or "hinglish" in name or name in HINGLISH_VOICE_NAMES:
        return "Hinglish"
    if "spanish" in name:
        return "Spanish"
    if "french" in name:
        return "French"
    return "English"


def generate_language_line(language: str) -> str:
    return f"Your speaking language is {language}."


def hidden_language_instructions(voice_id: Optional[str], voices: Sequence[Voice]) -> str:
    """Extra instructions appended for Hinglish voices; empty for everything else."""
    voice = _find_voice(voice_id, voices)
    if voice is None or language_from_voice(voice_id, voices) != "Hinglish":
        return ""

    personality = VOICE_PERSONALITIES.get(voice.name.lower())
    if personality:
        return f"{HINGLISH_INSTRUCTIONS}\n\n{personality}"
    return HINGLISH_INSTRUCTIONS


def extract_variables(prompt: str) -> List[str]:
    """Unique {{variable}} names in order of first appearance."""
    variables: List[str] = []
    for match in VARIABLE_PATTERN.finditer(prompt or ""):
        name = match.group(1).strip()
        if name and name not in variables:
            variables.append(name)
    return variables


def generate_welcome_message(agent_name: str, company_name: str) -> str:
    return WELCOME_TEMPLATE.render(agent_name=agent_name.strip(), company_name=company_name.strip())


def assemble_prompt(
    agent_name: str,
    use_case: str,
    company_name: str,
    industry: str,
    language: str = "English",
    business_context: str = "",
    tasks: str = "",
    conversation_flow: str = "",
    faqs: Optional[Sequence[FAQ]] = None
) -> str:
    """Full agent prompt as shown on the wizard's review step."""
    prompt = PROMPT_TEMPLATE.render(
        role_section=generate_role_section(agent_name, use_case, company_name, industry),
        language_line=generate_language_line(language),
        business_context=business_context.strip(),
        tasks=tasks.strip(),
        conversation_flow=conversation_flow.strip(),
        faqs=list(faqs or []),
    )
    logger.debug(f"Assembled prompt for {agent_name}: {len(prompt.split())} words")
    return prompt.strip()
