"""
Domain

Statement building and data access.
"""

from stillface.domain.dao import INSERT_FAILED, QueryOutcome, StillFaceDAO

__all__ = ["INSERT_FAILED", "QueryOutcome", "StillFaceDAO"]
