"""
Onboarding Module

Post-acceptance onboarding questionnaire, gated on an ACCEPTED application
(admins bypass the gate).
"""

from .router import router

__all__ = ["router"]
