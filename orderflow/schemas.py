"""
Pydantic Schemas for Request/Response Validation

- Sold-out reset trigger report
- Prep time estimate request/response
- Health and error envelopes

Author: Khalil Bannouri
Version: 3.1.0
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Any
from datetime import datetime
from enum import Enum


# =============================================================================
# ENUMS
# =============================================================================

class ResetModeEnum(str, Enum):
    SMART = "smart"
    ALL = "all"


class ResetStatusEnum(str, Enum):
    RESET = "reset"
    SKIPPED = "skipped"
    FAILED = "failed"


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class PrepTimeItem(BaseModel):
    """Single order line to estimate."""
    menu_item_id: str = Field(..., min_length=1, max_length=36, examples=["0b7c7c1e-..."])
    quantity: int = Field(default=1, ge=1, le=99, examples=[2])
    prep_time_minutes: Optional[int] = Field(None, ge=0, le=600, examples=[15])


class PrepTimeEstimateRequest(BaseModel):
    """Request schema for a prep time estimate."""
    items: List[PrepTimeItem] = Field(default_factory=list)
    start_time: Optional[datetime] = Field(None, examples=["2026-10-19T18:30:00Z"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResetResultResponse(_CamelModel):
    """Per-tenant outcome of a reset cycle."""
    tenant_id: str
    tenant_name: str
    status: ResetStatusEnum
    reset_count: int
    skip_reason: Optional[str] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None


class CycleReportResponse(_CamelModel):
    """Response of the sold-out reset trigger."""
    success: bool = True
    mode: ResetModeEnum
    timestamp: datetime
    total_items_reset: int
    tenants_affected: int
    tenants_failed: int
    details: List[ResetResultResponse]


class PrepTimeEstimateResponse(BaseModel):
    """Estimated prep duration and ready time."""
    tenant_id: str
    prep_time_minutes: int
    estimated_ready_time: datetime


class ErrorDetail(BaseModel):
    kind: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: ErrorDetail


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    timestamp: datetime
