"""
API routes for ingesting aerosensor CSV files.
"""

import logging
import math
from typing import Optional

import numpy as np
from fastapi import APIRouter, HTTPException, Query, Request

from aero_ingest.api.schemas import (
    ErrorDetail,
    IntervalAnalysisResponse,
    IntervalStatsResponse,
    ParseResponse,
    UnifiedRecordResponse,
)
from aero_ingest.models.telemetry import IntervalStatistics, NormalizedRecord, RecordSummary
from aero_ingest.services import resampler
from aero_ingest.services.csv_parser import (
    CsvParseError,
    EmptyInput,
    MissingColumns,
    ResampleMode,
    ingest_csv,
)
from aero_ingest.utils.coordinates import cumulative_distance


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/records", tags=["records"])

_ERROR_RESPONSES = {
    400: {"model": ErrorDetail, "description": "Empty or undecodable CSV"},
    422: {"model": ErrorDetail, "description": "Required columns missing"},
}


def _nan_to_none(value: float) -> Optional[float]:
    """Convert NaN to None for JSON serialization."""
    if math.isnan(value):
        return None
    return float(value)


def _clean_array(arr: Optional[np.ndarray]) -> Optional[list[Optional[float]]]:
    """Convert numpy array to list, replacing NaN with None."""
    if arr is None:
        return None
    return [None if math.isnan(x) else float(x) for x in arr]


def _build_record_response(record: NormalizedRecord) -> UnifiedRecordResponse:
    unified = record.to_unified_dict()
    arrays = {
        key: _clean_array(value)
        for key, value in unified.items()
        if isinstance(value, np.ndarray)
    }
    scalars = {k: v for k, v in unified.items() if not isinstance(v, np.ndarray)}
    scalars["timeRangeSeconds"] = _nan_to_none(scalars["timeRangeSeconds"])

    return UnifiedRecordResponse(
        **arrays,
        **scalars,
        distance=cumulative_distance(record.position_lat, record.position_long).tolist(),
    )


def _build_interval_response(stats: IntervalStatistics) -> IntervalStatsResponse:
    return IntervalStatsResponse(
        min=_nan_to_none(stats.min),
        max=_nan_to_none(stats.max),
        mean=_nan_to_none(stats.mean),
        median=_nan_to_none(stats.median),
        standard_deviation=_nan_to_none(stats.standard_deviation),
    )


async def _read_csv_body(request: Request) -> str:
    body = await request.body()
    try:
        return body.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise HTTPException(
            status_code=400,
            detail=ErrorDetail(message=f"CSV body is not valid UTF-8: {e}", code="invalid_encoding").model_dump(),
        ) from e


def _http_error(error: CsvParseError) -> HTTPException:
    logger.warning("Rejected CSV upload: %s", error)
    if isinstance(error, MissingColumns):
        return HTTPException(
            status_code=422,
            detail=ErrorDetail(
                message=str(error),
                code="missing_columns",
                missing_columns=error.missing_columns,
            ).model_dump(),
        )
    if isinstance(error, EmptyInput):
        code = "empty_input"
    else:
        code = "parse_error"
    return HTTPException(
        status_code=400,
        detail=ErrorDetail(message=str(error), code=code).model_dump(),
    )


@router.post("/parse", response_model=ParseResponse, responses=_ERROR_RESPONSES)
async def parse_record(
    request: Request,
    resample: ResampleMode = Query(ResampleMode.AUTO, description="When to resample to 1 Hz"),
):
    """
    Parse an aerosensor CSV export (sent as the raw request body).

    Returns the unified record, the timer interval statistics used to decide
    on resampling, and a short feature summary.
    """
    content = await _read_csv_body(request)

    try:
        result = ingest_csv(content, resample=resample)
    except CsvParseError as e:
        raise _http_error(e) from e

    return ParseResponse(
        record=_build_record_response(result.record),
        interval_stats=_build_interval_response(result.intervals),
        resampled=result.resampled,
        row_length_mismatches=result.mismatched_rows,
        summary=RecordSummary.from_record(result.record).lines(),
    )


@router.post("/intervals", response_model=IntervalAnalysisResponse, responses=_ERROR_RESPONSES)
async def analyze_intervals(request: Request):
    """
    Report timer regularity without returning the record itself.
    """
    content = await _read_csv_body(request)

    try:
        result = ingest_csv(content, resample=ResampleMode.NEVER)
    except CsvParseError as e:
        raise _http_error(e) from e

    return IntervalAnalysisResponse(
        interval_stats=_build_interval_response(result.intervals),
        needs_resampling=resampler.needs_resampling(result.intervals),
        threshold_s=resampler.RESAMPLE_STD_THRESHOLD_S,
        data_point_count=result.record.data_point_count,
    )
