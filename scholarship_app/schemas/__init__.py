"""
Pydantic schemas
"""
from scholarship_app.schemas.user import UserBase, UserRegister, UserResponse, Token, TokenData
from scholarship_app.schemas.application import (
    Step1PersonalInfo, Step2Address, Step3Education, Step4Eligibility, Step5Documents, Step6Endorsement,
    CurrentStepUpdate, SubmitRequest, WithdrawRequest, StatusUpdate,
    ApplicationResponse, Requirement, ChecklistResponse
)
from scholarship_app.schemas.recommendation import (
    RecommenderInvite, LetterSubmit, RecommendationResponse, RecommendationFormResponse
)
from scholarship_app.schemas.evaluation import (
    EvaluationSubmit, EvaluationResponse, RankingEntry, RankingsResponse, EvaluatorStats
)
from scholarship_app.schemas.audit import AuditLogResponse
from scholarship_app.schemas.portal_setting import DeadlineUpdate, DeadlineResponse

__all__ = [
    # User
    "UserBase", "UserRegister", "UserResponse", "Token", "TokenData",
    # Application
    "Step1PersonalInfo", "Step2Address", "Step3Education", "Step4Eligibility",
    "Step5Documents", "Step6Endorsement", "CurrentStepUpdate", "SubmitRequest",
    "WithdrawRequest", "StatusUpdate", "ApplicationResponse", "Requirement", "ChecklistResponse",
    # Recommendation
    "RecommenderInvite", "LetterSubmit", "RecommendationResponse", "RecommendationFormResponse",
    # Evaluation
    "EvaluationSubmit", "EvaluationResponse", "RankingEntry", "RankingsResponse", "EvaluatorStats",
    # Audit
    "AuditLogResponse",
    # Settings
    "DeadlineUpdate", "DeadlineResponse",
]
