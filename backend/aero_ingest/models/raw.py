"""
Raw telemetry model (source-format, unnormalized).

The CSV adapter loads aerosensor files into this structure before
unit normalization.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from numpy.typing import NDArray


# Source column names as written by the aerosensor firmware (exact, case-sensitive)
TIMER_MS = "Timer (ms)"
SPEED_CM_S = "ANT+ Speed (cm/s)"
POWER_W = "Power (w)"
WIND_MAGNITUDE_KMH = "Wind Magnitude (km/h)"
LATITUDE = "Latitude"
LONGITUDE = "Longitude"
GPS_ALTITUDE_MM = "GPS Altitude (mm)"

TEMPERATURE = "Temperature"
HUMIDITY = "Humidity (%RH)"
PRESSURE_PA = "Barometric Pressure (Pa)"
WIND_ANGLE_DEG = "Wind Angle (deg)"
CDA = "CdA"
LAP_NUMBER = "Lap Number"

REQUIRED_COLUMNS: tuple[str, ...] = (
    TIMER_MS,
    SPEED_CM_S,
    POWER_W,
    WIND_MAGNITUDE_KMH,
    LATITUDE,
    LONGITUDE,
    GPS_ALTITUDE_MM,
)

OPTIONAL_COLUMNS: tuple[str, ...] = (
    TEMPERATURE,
    HUMIDITY,
    PRESSURE_PA,
    WIND_ANGLE_DEG,
    CDA,
    LAP_NUMBER,
)

RECOGNIZED_COLUMNS: tuple[str, ...] = REQUIRED_COLUMNS + OPTIONAL_COLUMNS


@dataclass
class RawTable:
    """Recognized CSV columns as float arrays, NaN where a cell had no value."""

    header: list[str]
    row_count: int
    columns: dict[str, NDArray[np.float64]] = field(default_factory=dict)

    # 1-based line numbers of rows whose cell count differs from the header
    mismatched_rows: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        for name, values in self.columns.items():
            if len(values) != self.row_count:
                raise ValueError(
                    f"Column {name!r} has {len(values)} values, expected {self.row_count}"
                )

    def has_column(self, name: str) -> bool:
        return name in self.columns

    def get(self, name: str) -> Optional[NDArray[np.float64]]:
        return self.columns.get(name)

    def __getitem__(self, name: str) -> NDArray[np.float64]:
        return self.columns[name]
