"""
Demo Account Models
Account stage and restrictions for demo/trial companies
"""
from pydantic import BaseModel
from typing import Optional, List


class DemoStatus(BaseModel):
    """Account policy returned by /demo/status"""
    demo_mode: bool = False
    account_stage: str = "active"
    verified_leads_only: bool = False
    calls_made: int = 0
    calls_limit: int = 0
    calls_remaining: int = 0
    global_calls_today: int = 0
    global_daily_limit: int = 0
    global_calls_remaining: int = 0
    demo_phone_number: str = ""
    restrictions: List[str] = []
    upgrade_available: bool = False
    agents_count: Optional[int] = None
    agents_limit: Optional[int] = None
    agents_remaining: Optional[int] = None

    @property
    def can_create_agent(self) -> bool:
        """Demo accounts stop at their agent limit; other accounts are not capped."""
        if not self.demo_mode or self.agents_remaining is None:
            return True
        return self.agents_remaining > 0
