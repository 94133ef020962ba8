"""
Membership Applications Module

Handles the membership application workflow:
1. Applicant starts an application and saves drafts
2. Applicant uploads a payment proof through a pre-signed URL
3. Applicant submits (or reapplies after a rejection)
4. Admin verifies the payment against object storage and decides

API Endpoints:
- /application/* - Applicant endpoints (see router.py)
- /admin/applications/* - Admin review endpoints (see admin_router.py)
"""

from .router import router

__all__ = ["router"]
