"""
Tests for the agent prompt builder
"""


def voices():
    from voiceai_console.domain.models.agent import Voice
    return [
        Voice(id="v-en", name="British Narrator"),
        Voice(id="v-hi", name="Hindi Woman", language="hi"),
        Voice(id="v-in", name="English Indian Woman"),
        Voice(id="v-es", name="Spanish Man", language="es"),
    ]


class TestRoleAndLanguage:
    """Tests for role and language sections"""

    def test_role_section(self):
        """Role line uses the use-case role and industry description"""
        from voiceai_console.domain.services.prompt_builder import generate_role_section

        role = generate_role_section("Sarah", "Sales", "Acme Motors", "Automotive")

        assert role == (
            "Your name is Sarah. You're a friendly and consultative sales representative at Acme Motors, "
            "an automotive company helping customers find their perfect vehicle."
        )

    def test_unknown_role_and_industry_fall_back(self):
        """Unknown choices use the General role and Other industry"""
        from voiceai_console.domain.services.prompt_builder import generate_role_section

        role = generate_role_section("Sam", "Astrology", "Stars Inc", "Space")

        assert "professional representative" in role
        assert "a company dedicated to serving our customers" in role

    def test_language_from_voice(self):
        """Voice names decide the speaking language"""
        from voiceai_console.domain.services.prompt_builder import language_from_voice

        assert language_from_voice("v-en", voices()) == "English"
        assert language_from_voice("v-hi", voices()) == "Hinglish"
        assert language_from_voice("v-in", voices()) == "Hinglish"
        assert language_from_voice("v-es", voices()) == "Spanish"
        assert language_from_voice("missing", voices()) == "English"

    def test_hidden_instructions_only_for_hinglish(self):
        """Hinglish voices get currency and personality instructions"""
        from voiceai_console.domain.services.prompt_builder import hidden_language_instructions

        hidden = hidden_language_instructions("v-hi", voices())

        assert "rupay" in hidden
        assert "female personality" in hidden
        assert hidden_language_instructions("v-en", voices()) == ""


class TestAssembly:
    """Tests for full prompt assembly"""

    def test_sections_in_order(self):
        """Filled sections appear under their headings; empty ones are skipped"""
        from voiceai_console.domain.models.agent import FAQ
        from voiceai_console.domain.services.prompt_builder import assemble_prompt

        prompt = assemble_prompt(
            agent_name="Sarah",
            use_case="Lead Qualification",
            company_name="Acme",
            industry="Insurance",
            business_context="We sell term life cover.",
            tasks="1. Confirm interest",
            faqs=[FAQ(question="Is there a fee?", answer="No.")],
        )

        assert prompt.startswith("Your name is Sarah.")
        assert "Your speaking language is English." in prompt
        assert prompt.index("### Business Context") < prompt.index("### Tasks") < prompt.index("### FAQs")
        assert "### Conversation Flow" not in prompt
        assert "Q: Is there a fee?\nA: No." in prompt

    def test_extract_variables(self):
        """Variables are unique and in order of first appearance"""
        from voiceai_console.domain.services.prompt_builder import extract_variables

        assert extract_variables("Hi {{first_name}}, about {{ product }} for {{first_name}}") == ["first_name", "product"]
        assert extract_variables("") == []

    def test_welcome_message(self):
        """Default greeting names the agent and the company"""
        from voiceai_console.domain.services.prompt_builder import generate_welcome_message

        assert generate_welcome_message(" Sarah ", "Acme") == "Hi, I'm Sarah calling you from Acme"
