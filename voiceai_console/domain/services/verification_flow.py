"""
Lead Verification Flow
Gates schedule-call behind OTP verification when the account requires it.

States: unverified -> verification_requested -> verified

A schedule-call for an unverified lead under the verified-leads-only policy
issues a verification request instead of calling. A correct code moves the
lead to verified and retries the schedule-call. The backend may also reject
a schedule-call for an unverified lead the client did not know about; that
restarts the same flow.
"""
import logging
import time
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel

from voiceai_console.core.errors import (
    ApiError,
    AuthenticationError,
    VerificationError,
    is_verification_required,
)
from voiceai_console.domain.models.call import ScheduleCallResult
from voiceai_console.domain.models.lead import VerificationRequest
from voiceai_console.domain.services.account_queries import AccountQueries
from voiceai_console.domain.services.lead_queries import LeadQueries

logger = logging.getLogger(__name__)

CODE_EXPIRED_MESSAGE = "Verification code expired. Please request a new code."


class VerificationState(str, Enum):
    UNVERIFIED = "unverified"
    VERIFICATION_REQUESTED = "verification_requested"
    VERIFIED = "verified"


class ScheduleOutcome(str, Enum):
    SCHEDULED = "scheduled"
    VERIFICATION_REQUIRED = "verification_required"


class ScheduleResult(BaseModel):
    """What the leads page shows after a schedule-call attempt"""
    outcome: ScheduleOutcome
    message: str = ""
    call: Optional[ScheduleCallResult] = None
    verification_id: Optional[str] = None
    expires_in_seconds: Optional[int] = None


class LeadVerificationFlow:
    """
    Verification state for one lead.

    Args:
        lead_id: Lead being scheduled
        leads: Lead query service
        account: Account query service (policy lookup)
        clock: Monotonic clock for the code expiry countdown
    """

    def __init__(
        self,
        lead_id: str,
        leads: LeadQueries,
        account: AccountQueries,
        clock: Callable[[], float] = time.monotonic
    ):
        self.lead_id = lead_id
        self.leads = leads
        self.account = account
        self._clock = clock

        self.state = VerificationState.UNVERIFIED
        self.verification: Optional[VerificationRequest] = None
        self.requested_at: Optional[float] = None
        self.error: Optional[str] = None

    @property
    def expires_in(self) -> int:
        """Seconds left on the current code (0 when none or expired)."""
        if self.verification is None or self.requested_at is None:
            return 0
        remaining = self.verification.expires_in_seconds - (self._clock() - self.requested_at)
        return max(0, int(remaining))

    @property
    def is_expired(self) -> bool:
        return self.verification is not None and self.expires_in <= 0

    def _pending_result(self) -> ScheduleResult:
        return ScheduleResult(
            outcome=ScheduleOutcome.VERIFICATION_REQUIRED,
            message=self.verification.message if self.verification else "",
            verification_id=self.verification.verification_id if self.verification else None,
            expires_in_seconds=self.expires_in,
        )

    async def schedule_call(self) -> ScheduleResult:
        """
        Schedule a call, or start verification when the lead must be verified.

        Raises:
            ApiError / NetworkError: Scheduling failed for another reason
        """
        lead = await self.leads.lead(self.lead_id)
        if lead.is_verified:
            self.state = VerificationState.VERIFIED

        policy = await self.account.demo_status()
        if policy.verified_leads_only and self.state != VerificationState.VERIFIED:
            logger.info(f"Lead {self.lead_id} must be verified before calling")
            return await self.request_verification()

        try:
            call = await self.leads.schedule_call(
                self.lead_id,
                optimistic=self.state == VerificationState.VERIFIED or not policy.verified_leads_only,
            )
        except ApiError as e:
            if isinstance(e, AuthenticationError) or not is_verification_required(e):
                raise
            logger.info(f"Backend requires verification for lead {self.lead_id}")
            return await self.request_verification()

        return ScheduleResult(outcome=ScheduleOutcome.SCHEDULED, message=call.message, call=call)

    async def request_verification(self) -> ScheduleResult:
        """Send (or resend) an OTP to the lead."""
        self.verification = await self.leads.request_verification(self.lead_id)
        self.requested_at = self._clock()
        self.state = VerificationState.VERIFICATION_REQUESTED
        self.error = None
        return self._pending_result()

    async def submit_code(self, otp_code: str) -> ScheduleResult:
        """
        Verify the lead with an OTP code.

        On success the lead is verified and the original schedule-call is
        retried. An expired or rejected code leaves the flow in
        verification_requested.

        Raises:
            ValidationError: Code is not 4-8 digits
            VerificationError: No pending request, code expired or rejected
        """
        if self.state != VerificationState.VERIFICATION_REQUESTED or self.verification is None:
            raise VerificationError("No verification in progress for this lead")

        if self.is_expired:
            self.error = CODE_EXPIRED_MESSAGE
            raise VerificationError(CODE_EXPIRED_MESSAGE)

        try:
            await self.leads.verify(self.lead_id, self.verification.verification_id, otp_code)
        except AuthenticationError:
            raise
        except ApiError as e:
            self.error = e.message
            logger.info(f"Verification code rejected for lead {self.lead_id}: {e.message}")
            raise VerificationError(e.message) from e

        self.state = VerificationState.VERIFIED
        self.error = None
        logger.info(f"Lead {self.lead_id} verified")

        return await self.schedule_call()
