"""
Pydantic schema for a reconciliation pass summary.
"""

from pydantic import BaseModel


class FailureResponse(BaseModel):
    subscription_id: int
    error_type: str
    error: str


class ReconciliationSummaryResponse(BaseModel):
    pass_name: str
    created: int
    skipped: int
    failed: int
    cancelled: int
    failures: list[FailureResponse]
