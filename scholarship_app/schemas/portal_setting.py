"""
Portal setting schemas
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class DeadlineUpdate(BaseModel):
    """None clears the deadline"""
    application_deadline: Optional[datetime] = None


class DeadlineResponse(BaseModel):
    application_deadline: Optional[datetime]
    deadline_passed: bool
