"""
API schemas (Pydantic models) for request/response validation.
"""

from typing import Optional
from pydantic import BaseModel


# ============================================================================
# Record Schemas
# ============================================================================

class UnifiedRecordResponse(BaseModel):
    """
    Unified telemetry record.

    Field names match the record produced by the FIT parser so clients do
    not care which format a ride came from. NaN samples are sent as null.
    """
    timestamps: list[Optional[float]]
    velocity: list[Optional[float]]
    power: list[Optional[float]]
    airSpeed: list[Optional[float]]
    altitude: list[Optional[float]]
    positionLat: list[Optional[float]]
    positionLong: list[Optional[float]]
    distance: list[float]  # cumulative great-circle distance, meters

    windAngle: Optional[list[Optional[float]]] = None
    temperature: Optional[list[Optional[float]]] = None
    humidity: Optional[list[Optional[float]]] = None
    pressure: Optional[list[Optional[float]]] = None
    cdaReference: Optional[list[Optional[float]]] = None
    lapNumber: Optional[list[Optional[float]]] = None

    hasEnvironmentalData: bool
    hasCdaReference: bool
    hasLapData: bool
    hasWindAngle: bool
    dataPointCount: int
    timeRangeSeconds: Optional[float]


class IntervalStatsResponse(BaseModel):
    """Distribution of timer gaps, in seconds (null when the timer has blanks)."""
    min: Optional[float]
    max: Optional[float]
    mean: Optional[float]
    median: Optional[float]
    standard_deviation: Optional[float]


class ParseResponse(BaseModel):
    """Result of ingesting one CSV document."""
    record: UnifiedRecordResponse
    interval_stats: IntervalStatsResponse
    resampled: bool
    row_length_mismatches: list[int]
    summary: list[str]


class IntervalAnalysisResponse(BaseModel):
    """Timer regularity of a CSV document, before any resampling."""
    interval_stats: IntervalStatsResponse
    needs_resampling: bool
    threshold_s: float
    data_point_count: int


# ============================================================================
# Error Schemas
# ============================================================================

class ErrorDetail(BaseModel):
    """Body of a structural parse failure (sent as `detail`)."""
    message: str
    code: Optional[str] = None
    missing_columns: Optional[list[str]] = None
