"""
Application schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Any
from datetime import datetime
from scholarship_app.models.application import ApplicationStatus, YearInCollege


class Step1PersonalInfo(BaseModel):
    """Step 1: personal information"""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=30)
    date_of_birth: str = Field(..., min_length=1, max_length=20)
    profile_photo_id: Optional[str] = None


class Step2Address(BaseModel):
    """Step 2: address"""
    street_address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=2, max_length=2)
    zip_code: str = Field(..., min_length=5, max_length=10)


class Step3Education(BaseModel):
    """Step 3: education"""
    high_school_name: str = Field(..., min_length=1, max_length=200)
    high_school_city: str = Field(..., min_length=1, max_length=100)
    high_school_state: str = Field(..., min_length=2, max_length=2)
    graduation_date: str = Field(..., min_length=1, max_length=20)
    gpa: float = Field(..., ge=0.0, le=4.0)
    act_score: Optional[int] = Field(None, ge=1, le=36)
    sat_score: Optional[int] = Field(None, ge=400, le=1600)
    college_name: str = Field(..., min_length=1, max_length=200)
    college_city: str = Field(..., min_length=1, max_length=100)
    college_state: str = Field(..., min_length=2, max_length=2)
    year_in_college: YearInCollege
    major: Optional[str] = Field(None, max_length=100)


class Step4Eligibility(BaseModel):
    """Step 4: eligibility questions"""
    is_first_time_applying: bool
    is_previous_recipient: bool
    is_full_time_student: bool
    is_michigan_resident: bool


class Step5Documents(BaseModel):
    """Step 5: documents and essay"""
    transcript_file_id: Optional[str] = None
    essay_file_id: Optional[str] = None
    essay_text: Optional[str] = None
    essay_word_count: Optional[int] = Field(None, ge=0)


class Step6Endorsement(BaseModel):
    """Step 6: member endorsement (recommenders are invited separately)"""
    endorser_name: Optional[str] = Field(None, max_length=100)
    endorser_email: Optional[str] = Field(None, max_length=255)
    endorser_phone: Optional[str] = Field(None, max_length=30)
    endorsement_confirmed: bool = False


class CurrentStepUpdate(BaseModel):
    step: int = Field(..., ge=1, le=7)


class SubmitRequest(BaseModel):
    """Electronic signature; must match the applicant's full name"""
    signature: str


class WithdrawRequest(BaseModel):
    reason: Optional[str] = None


class StatusUpdate(BaseModel):
    status: ApplicationStatus


class ApplicationResponse(BaseModel):
    """Schema for application response"""
    id: int
    user_id: int
    status: ApplicationStatus
    current_step: int
    completed_steps: List[int]

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None
    profile_photo_id: Optional[str] = None

    street_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    high_school_name: Optional[str] = None
    high_school_city: Optional[str] = None
    high_school_state: Optional[str] = None
    graduation_date: Optional[str] = None
    gpa: Optional[float] = None
    act_score: Optional[int] = None
    sat_score: Optional[int] = None
    college_name: Optional[str] = None
    college_city: Optional[str] = None
    college_state: Optional[str] = None
    year_in_college: Optional[YearInCollege] = None
    major: Optional[str] = None

    is_first_time_applying: Optional[bool] = None
    is_previous_recipient: Optional[bool] = None
    is_full_time_student: Optional[bool] = None
    is_michigan_resident: Optional[bool] = None

    transcript_file_id: Optional[str] = None
    essay_file_id: Optional[str] = None
    essay_word_count: Optional[int] = None

    endorser_name: Optional[str] = None
    endorser_email: Optional[str] = None
    endorser_phone: Optional[str] = None
    endorsement_confirmed: Optional[bool] = None

    signature: Optional[str] = None
    submitted_at: Optional[datetime] = None
    withdrawn_at: Optional[datetime] = None
    withdrawn_reason: Optional[str] = None
    ai_summary: Optional[str] = None

    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Requirement(BaseModel):
    """One eligibility checklist row"""
    id: str
    label: str
    met: bool
    current_value: Any = None
    step: Optional[int] = None  # Wizard step where the requirement is fixed


class ChecklistResponse(BaseModel):
    application_id: int
    requirements: List[Requirement]
    met_count: int
    total_count: int
    all_requirements_met: bool
