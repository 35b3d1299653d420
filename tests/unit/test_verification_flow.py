"""
Unit tests for the lead verification flow
Schedule-call gating, OTP submission and retry after verification
"""
import pytest
from unittest.mock import AsyncMock


def make_lead(is_verified: bool = False):
    from voiceai_console.domain.models.lead import Lead
    return Lead(id="l1", agent_id="a1", first_name="Ravi", phone_e164="+919876543210", is_verified=is_verified)


class FlowHarness:
    """Real query services over mocked adapters"""

    def __init__(self, cache, config, clock, verified_leads_only=False, lead=None):
        from voiceai_console.domain.models.call import ScheduleCallResult
        from voiceai_console.domain.models.demo import DemoStatus
        from voiceai_console.domain.models.lead import LeadList, VerificationRequest
        from voiceai_console.domain.services.account_queries import AccountQueries
        from voiceai_console.domain.services.lead_queries import LeadQueries
        from voiceai_console.domain.services.verification_flow import LeadVerificationFlow

        lead = lead or make_lead()
        self.lead_api = AsyncMock()
        self.lead_api.get_lead.return_value = lead
        self.lead_api.list_leads.return_value = LeadList(leads=[lead], total=1)
        self.lead_api.request_verification.return_value = VerificationRequest(
            verification_id="v1", message="Code sent", expires_in_seconds=300
        )
        self.lead_api.verify_lead.return_value = make_lead(is_verified=True)

        self.call_api = AsyncMock()
        self.call_api.schedule_call.return_value = ScheduleCallResult(message="Call scheduled", call_id="c1")

        self.auth_api = AsyncMock()
        self.demo_api = AsyncMock()
        self.demo_api.get_status.return_value = DemoStatus(verified_leads_only=verified_leads_only)

        leads = LeadQueries(cache, self.lead_api, self.call_api, config)
        account = AccountQueries(cache, self.auth_api, self.demo_api, config)
        self.flow = LeadVerificationFlow("l1", leads, account, clock=clock)


class TestReactiveVerification:
    """Backend rejects the call because the lead is unverified"""

    @pytest.mark.asyncio
    async def test_must_be_verified_answer_opens_otp_prompt(self, cache, config, clock):
        """A "must be verified" rejection requests an OTP instead of failing"""
        from voiceai_console.core.errors import VerificationRequiredError
        from voiceai_console.domain.services.verification_flow import ScheduleOutcome, VerificationState

        harness = FlowHarness(cache, config, clock)
        harness.call_api.schedule_call.side_effect = VerificationRequiredError(403, "Lead must be verified before calling")

        result = await harness.flow.schedule_call()

        assert result.outcome == ScheduleOutcome.VERIFICATION_REQUIRED
        assert result.verification_id == "v1"
        assert result.expires_in_seconds == 300
        assert harness.flow.state == VerificationState.VERIFICATION_REQUESTED
        harness.lead_api.request_verification.assert_awaited_once_with("l1")

    @pytest.mark.asyncio
    async def test_message_match_without_code(self, cache, config, clock):
        """Plain ApiErrors mentioning verification are recognised too"""
        from voiceai_console.core.errors import ApiError
        from voiceai_console.domain.services.verification_flow import ScheduleOutcome

        harness = FlowHarness(cache, config, clock)
        harness.call_api.schedule_call.side_effect = ApiError(400, "This lead must be verified first")

        result = await harness.flow.schedule_call()

        assert result.outcome == ScheduleOutcome.VERIFICATION_REQUIRED

    @pytest.mark.asyncio
    async def test_correct_code_retries_schedule(self, cache, config, clock):
        """After a correct code the lead is verified and the call is scheduled"""
        from voiceai_console.core.errors import VerificationRequiredError
        from voiceai_console.domain.models.call import ScheduleCallResult
        from voiceai_console.domain.services.verification_flow import ScheduleOutcome, VerificationState

        harness = FlowHarness(cache, config, clock)
        harness.call_api.schedule_call.side_effect = [
            VerificationRequiredError(403, "Lead must be verified before calling"),
            ScheduleCallResult(message="Call scheduled", call_id="c1"),
        ]
        await harness.flow.schedule_call()

        result = await harness.flow.submit_code("123456")

        assert result.outcome == ScheduleOutcome.SCHEDULED
        assert result.call.call_id == "c1"
        assert harness.flow.state == VerificationState.VERIFIED
        harness.lead_api.verify_lead.assert_awaited_once_with("l1", "v1", "123456")
        assert harness.call_api.schedule_call.await_count == 2

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, cache, config, clock):
        """Failures unrelated to verification are raised"""
        from voiceai_console.core.errors import ApiError

        harness = FlowHarness(cache, config, clock)
        harness.call_api.schedule_call.side_effect = ApiError(429, "Daily call limit reached")

        with pytest.raises(ApiError):
            await harness.flow.schedule_call()

        harness.lead_api.request_verification.assert_not_called()


class TestVerifiedLeadsOnlyPolicy:
    """Account policy gating"""

    @pytest.mark.asyncio
    async def test_unverified_lead_is_never_called(self, cache, config, clock):
        """Under verified_leads_only an unverified lead gets an OTP, not a call"""
        from voiceai_console.domain.services.verification_flow import ScheduleOutcome

        harness = FlowHarness(cache, config, clock, verified_leads_only=True)

        result = await harness.flow.schedule_call()

        assert result.outcome == ScheduleOutcome.VERIFICATION_REQUIRED
        harness.call_api.schedule_call.assert_not_called()

    @pytest.mark.asyncio
    async def test_verified_lead_is_scheduled(self, cache, config, clock):
        """Verified leads are called straight away"""
        from voiceai_console.domain.services.verification_flow import ScheduleOutcome

        harness = FlowHarness(cache, config, clock, verified_leads_only=True, lead=make_lead(is_verified=True))

        result = await harness.flow.schedule_call()

        assert result.outcome == ScheduleOutcome.SCHEDULED
        harness.call_api.schedule_call.assert_awaited_once_with("l1")
        harness.lead_api.request_verification.assert_not_called()


class TestCodeSubmission:
    """OTP submission edge cases"""

    @pytest.mark.asyncio
    async def test_expired_code_is_rejected_locally(self, cache, config, clock):
        """Submitting after the countdown ends asks for a new code"""
        from voiceai_console.core.errors import VerificationError
        from voiceai_console.domain.services.verification_flow import CODE_EXPIRED_MESSAGE, VerificationState

        harness = FlowHarness(cache, config, clock, verified_leads_only=True)
        await harness.flow.schedule_call()
        clock.advance(301)

        with pytest.raises(VerificationError) as exc_info:
            await harness.flow.submit_code("123456")

        assert exc_info.value.message == CODE_EXPIRED_MESSAGE
        assert harness.flow.state == VerificationState.VERIFICATION_REQUESTED
        harness.lead_api.verify_lead.assert_not_called()

    @pytest.mark.asyncio
    async def test_resend_restarts_countdown(self, cache, config, clock):
        """A new code gets a fresh expiry"""
        harness = FlowHarness(cache, config, clock, verified_leads_only=True)
        await harness.flow.schedule_call()
        clock.advance(200)
        assert harness.flow.expires_in == 100

        await harness.flow.request_verification()

        assert harness.flow.expires_in == 300

    @pytest.mark.asyncio
    async def test_wrong_code_keeps_prompt_open(self, cache, config, clock):
        """A rejected code surfaces the backend message"""
        from voiceai_console.core.errors import ApiError, VerificationError
        from voiceai_console.domain.services.verification_flow import VerificationState

        harness = FlowHarness(cache, config, clock, verified_leads_only=True)
        harness.lead_api.verify_lead.side_effect = ApiError(400, "Invalid verification code")
        await harness.flow.schedule_call()

        with pytest.raises(VerificationError) as exc_info:
            await harness.flow.submit_code("000000")

        assert exc_info.value.message == "Invalid verification code"
        assert harness.flow.error == "Invalid verification code"
        assert harness.flow.state == VerificationState.VERIFICATION_REQUESTED
        harness.call_api.schedule_call.assert_not_called()

    @pytest.mark.asyncio
    async def test_submit_without_request(self, cache, config, clock):
        """No code can be submitted before one was requested"""
        from voiceai_console.core.errors import VerificationError

        harness = FlowHarness(cache, config, clock)

        with pytest.raises(VerificationError):
            await harness.flow.submit_code("123456")
