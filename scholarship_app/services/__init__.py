"""
Service layer
"""
from scholarship_app.services.auth import (
    verify_password, get_password_hash, authenticate_user, register_user,
    create_access_token, create_user_token, decode_token, get_current_user,
    get_current_committee_member, get_current_active_admin, update_last_login
)
from scholarship_app.services.audit import audit_recorder
from scholarship_app.services.email import email_service
from scholarship_app.services.applications import application_service
from scholarship_app.services.recommendations import recommendation_service
from scholarship_app.services.evaluations import evaluation_service

__all__ = [
    # Auth
    "verify_password", "get_password_hash", "authenticate_user", "register_user",
    "create_access_token", "create_user_token", "decode_token", "get_current_user",
    "get_current_committee_member", "get_current_active_admin", "update_last_login",
    # Services
    "audit_recorder",
    "email_service",
    "application_service",
    "recommendation_service",
    "evaluation_service",
]
