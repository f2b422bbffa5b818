"""
Canonicalizer for raw aerosensor telemetry.

Converts source units into the unified record's units.
"""

from __future__ import annotations

import os
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from aero_ingest.models import raw as cols
from aero_ingest.models.raw import RawTable
from aero_ingest.models.telemetry import FeatureFlags, NormalizedRecord


# Fixed-point coordinate divisor; firmware stores degrees * 1e7
COORD_SCALE = float(os.getenv("AERO_INGEST_COORD_SCALE", "1e7"))

MS_PER_S = 1000.0
CM_PER_M = 100.0
KMH_PER_MS = 3.6
MM_PER_M = 1000.0
PA_PER_HPA = 100.0


def normalize_units(raw: RawTable, coord_scale: Optional[float] = None) -> NormalizedRecord:
    """
    Convert a RawTable into a NormalizedRecord.

    Required columns must be present (the validator guarantees this for
    parsed files). NaN cells stay NaN through every conversion.
    """
    scale = COORD_SCALE if coord_scale is None else float(coord_scale)
    if scale <= 0:
        raise ValueError(f"Coordinate scale must be positive, got {scale}")

    return NormalizedRecord(
        timestamps=raw[cols.TIMER_MS] / MS_PER_S,
        velocity=raw[cols.SPEED_CM_S] / CM_PER_M,
        power=raw[cols.POWER_W].copy(),
        air_speed=raw[cols.WIND_MAGNITUDE_KMH] / KMH_PER_MS,
        altitude=raw[cols.GPS_ALTITUDE_MM] / MM_PER_M,
        position_lat=raw[cols.LATITUDE] / scale,
        position_long=raw[cols.LONGITUDE] / scale,
        wind_angle=_optional(raw, cols.WIND_ANGLE_DEG),
        temperature=_optional(raw, cols.TEMPERATURE),
        humidity=_optional(raw, cols.HUMIDITY),
        pressure=_optional(raw, cols.PRESSURE_PA, divisor=PA_PER_HPA),
        cda_reference=_optional(raw, cols.CDA),
        lap_number=_optional(raw, cols.LAP_NUMBER),
    )


def analyze_features(record: NormalizedRecord) -> FeatureFlags:
    """Capability flags for the record as it currently stands."""
    return record.feature_flags()


def _optional(
    raw: RawTable,
    name: str,
    divisor: float = 1.0,
) -> Optional[NDArray[np.float64]]:
    values = raw.get(name)
    if values is None:
        return None
    if divisor == 1.0:
        return values.astype(np.float64, copy=True)
    return values / divisor
