"""
Tests for client-side form validation
"""
import pytest


class TestPhoneValidation:
    """Tests for phone normalization and country patterns"""

    def test_normalize_adds_us_country_code(self):
        """10-digit numbers are treated as US/Canada"""
        from voiceai_console.core.validation import normalize_phone_number

        assert normalize_phone_number("(415) 555-0123") == "+14155550123"
        assert normalize_phone_number("1-415-555-0123") == "+14155550123"

    def test_normalize_keeps_international(self):
        """Numbers with a leading + keep their country code"""
        from voiceai_console.core.validation import normalize_phone_number

        assert normalize_phone_number("+91 98765 43210") == "+919876543210"

    @pytest.mark.parametrize("raw", ["", "12", "1234567890123456"])
    def test_normalize_rejects_bad_lengths(self, raw):
        """Empty, too short and too long numbers raise"""
        from voiceai_console.core.validation import normalize_phone_number

        with pytest.raises(ValueError):
            normalize_phone_number(raw)

    def test_country_patterns(self):
        """Known dial codes use their stricter pattern"""
        from voiceai_console.core.validation import is_valid_phone

        assert is_valid_phone("+14155550123")
        assert not is_valid_phone("+11155550123")  # US area codes never start with 1
        assert is_valid_phone("+919876543210")
        assert not is_valid_phone("+915876543210")
        assert is_valid_phone("+447911123456")
        assert is_valid_phone("+4915112345678")
        assert not is_valid_phone("4155550123")

    def test_clean_phone_falls_back_to_input(self):
        """Unnormalizable input is returned stripped for the validator to report"""
        from voiceai_console.core.validation import clean_phone

        assert clean_phone(" 12 ") == "12"
        assert clean_phone(None) == ""


class TestForms:
    """Tests for whole-form validators"""

    def test_agent_basic_info_collects_every_error(self):
        """All invalid wizard fields are reported at once"""
        from voiceai_console.core.errors import ValidationError
        from voiceai_console.core.validation import validate_agent_basic_info

        with pytest.raises(ValidationError) as exc_info:
            validate_agent_basic_info("Al", "", "", " ")

        assert exc_info.value.field_errors == {
            "agent_name": "Agent name must be at least 3 characters",
            "intended_role": "Agent role is required",
            "target_industry": "Industry is required",
            "company_name": "Company name is required",
        }

    def test_agent_name_letters_only(self):
        """Digits and symbols are not allowed in agent names"""
        from voiceai_console.core.validation import validate_agent_name

        assert validate_agent_name("Sarah Jones") is None
        assert validate_agent_name("R2D2") == "Agent name can only contain letters and spaces"

    def test_valid_lead_form_passes(self):
        """A complete lead form raises nothing"""
        from voiceai_console.core.validation import validate_lead_form

        validate_lead_form("Amy", "a1", "+14155550123")

    @pytest.mark.parametrize("code,valid", [("1234", True), ("12345678", True), ("123", False), ("12a4", False), ("", False)])
    def test_otp_code_format(self, code, valid):
        """OTP codes are 4-8 digits"""
        from voiceai_console.core.errors import ValidationError
        from voiceai_console.core.validation import validate_otp_code

        if valid:
            validate_otp_code(code)
        else:
            with pytest.raises(ValidationError):
                validate_otp_code(code)

    def test_audio_file_size_limit(self):
        """Files over the limit are rejected with the limit in MB"""
        from voiceai_console.core.errors import ValidationError
        from voiceai_console.core.validation import validate_audio_file

        validate_audio_file("call.MP3", 1024)

        with pytest.raises(ValidationError) as exc_info:
            validate_audio_file("call.wav", 200 * 1024 * 1024)

        assert exc_info.value.field_errors["file"] == "File size exceeds 100MB limit"
