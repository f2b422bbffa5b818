"""
Unified telemetry record.

All aerosensor CSV input is normalized into this structure with:
- fixed units (SI, pressure in hPa, positions in decimal degrees)
- optional channels that are either fully present or absent
- capability flags derived from the channels, never stored
"""

from dataclasses import dataclass, fields
from typing import Iterator, Optional

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class ChannelInfo:
    """Metadata for a single record channel."""

    field: str        # attribute name on NormalizedRecord
    unified_key: str  # key used by the unified (FIT-compatible) record
    unit: str
    optional: bool = False


CHANNELS: tuple[ChannelInfo, ...] = (
    ChannelInfo("timestamps", "timestamps", "s"),
    ChannelInfo("velocity", "velocity", "m/s"),
    ChannelInfo("power", "power", "W"),
    ChannelInfo("air_speed", "airSpeed", "m/s"),
    ChannelInfo("altitude", "altitude", "m"),
    ChannelInfo("position_lat", "positionLat", "deg"),
    ChannelInfo("position_long", "positionLong", "deg"),
    ChannelInfo("wind_angle", "windAngle", "deg", optional=True),
    ChannelInfo("temperature", "temperature", "degC", optional=True),
    ChannelInfo("humidity", "humidity", "%RH", optional=True),
    ChannelInfo("pressure", "pressure", "hPa", optional=True),
    ChannelInfo("cda_reference", "cdaReference", "", optional=True),
    ChannelInfo("lap_number", "lapNumber", "", optional=True),
)


@dataclass(frozen=True)
class FeatureFlags:
    """Snapshot of the optional capabilities available in a record."""

    has_environmental_data: bool
    has_cda_reference: bool
    has_lap_data: bool
    has_wind_angle: bool


@dataclass(frozen=True)
class NormalizedRecord:
    """
    Unified per-sample telemetry record.

    Every present array shares the length of `timestamps`. Arrays are
    copied on construction and made read-only; transformations build a
    new record instead of editing this one.
    """

    timestamps: NDArray[np.float64]     # seconds, as recorded
    velocity: NDArray[np.float64]       # m/s (ground speed)
    power: NDArray[np.float64]          # W
    air_speed: NDArray[np.float64]      # m/s (wind magnitude)
    altitude: NDArray[np.float64]       # m
    position_lat: NDArray[np.float64]   # decimal degrees
    position_long: NDArray[np.float64]  # decimal degrees

    wind_angle: Optional[NDArray[np.float64]] = None     # deg
    temperature: Optional[NDArray[np.float64]] = None    # degC
    humidity: Optional[NDArray[np.float64]] = None       # %RH
    pressure: Optional[NDArray[np.float64]] = None       # hPa
    cda_reference: Optional[NDArray[np.float64]] = None  # may contain NaN
    lap_number: Optional[NDArray[np.float64]] = None

    def __post_init__(self) -> None:
        n_samples = len(self.timestamps)
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            arr = np.array(value, dtype=np.float64)
            if arr.ndim != 1 or len(arr) != n_samples:
                raise ValueError(
                    f"Channel {f.name!r} has shape {arr.shape}, expected ({n_samples},)"
                )
            arr.setflags(write=False)
            object.__setattr__(self, f.name, arr)

    # ------------------------------------------------------------------
    # Derived capability flags
    # ------------------------------------------------------------------

    @property
    def has_environmental_data(self) -> bool:
        """Temperature, humidity and pressure columns are all present."""
        return (
            self.temperature is not None
            and self.humidity is not None
            and self.pressure is not None
        )

    @property
    def has_cda_reference(self) -> bool:
        """CdA column is present and has at least one valid sample."""
        if self.cda_reference is None:
            return False
        return bool(np.any(~np.isnan(self.cda_reference)))

    @property
    def has_lap_data(self) -> bool:
        return self.lap_number is not None

    @property
    def has_wind_angle(self) -> bool:
        return self.wind_angle is not None and len(self.wind_angle) > 0

    @property
    def data_point_count(self) -> int:
        return len(self.timestamps)

    @property
    def time_range_seconds(self) -> float:
        if len(self.timestamps) == 0:
            return 0.0
        return float(self.timestamps[-1] - self.timestamps[0])

    def feature_flags(self) -> FeatureFlags:
        return FeatureFlags(
            has_environmental_data=self.has_environmental_data,
            has_cda_reference=self.has_cda_reference,
            has_lap_data=self.has_lap_data,
            has_wind_angle=self.has_wind_angle,
        )

    def channels(self) -> Iterator[tuple[ChannelInfo, NDArray[np.float64]]]:
        """Yield (info, values) for every present channel."""
        for info in CHANNELS:
            values = getattr(self, info.field)
            if values is not None:
                yield info, values

    def to_unified_dict(self) -> dict:
        """
        Render the record with the field names used by the FIT parser.

        Absent optional channels are omitted rather than emitted empty.
        """
        result: dict = {info.unified_key: values for info, values in self.channels()}
        result.update(
            hasEnvironmentalData=self.has_environmental_data,
            hasCdaReference=self.has_cda_reference,
            hasLapData=self.has_lap_data,
            hasWindAngle=self.has_wind_angle,
            dataPointCount=self.data_point_count,
            timeRangeSeconds=self.time_range_seconds,
        )
        return result


@dataclass(frozen=True)
class IntervalStatistics:
    """Distribution of gaps between consecutive timestamps (seconds)."""

    min: float
    max: float
    mean: float
    median: float
    standard_deviation: float


@dataclass
class RecordSummary:
    """Human-oriented summary of a parsed record."""

    data_point_count: int
    duration_minutes: float
    has_environmental_data: bool
    has_cda_reference: bool
    has_lap_data: bool
    has_wind_angle: bool
    cda_reference_mean: Optional[float] = None
    lap_count: int = 0

    @classmethod
    def from_record(cls, record: NormalizedRecord) -> "RecordSummary":
        cda_mean = None
        if record.has_cda_reference:
            cda_mean = float(np.nanmean(record.cda_reference))

        lap_count = 0
        if record.lap_number is not None:
            laps = record.lap_number[~np.isnan(record.lap_number)]
            lap_count = len(np.unique(laps))

        return cls(
            data_point_count=record.data_point_count,
            duration_minutes=record.time_range_seconds / 60.0,
            has_environmental_data=record.has_environmental_data,
            has_cda_reference=record.has_cda_reference,
            has_lap_data=record.has_lap_data,
            has_wind_angle=record.has_wind_angle,
            cda_reference_mean=cda_mean,
            lap_count=lap_count,
        )

    def lines(self) -> list[str]:
        lines = [
            f"Data Points: {self.data_point_count}",
            f"Duration: {self.duration_minutes:.1f} minutes",
            "",
            "Features:",
            "  [ok] Basic data (speed, power, GPS, air speed)",
        ]

        if self.has_environmental_data:
            lines.append("  [ok] Environmental data (temperature, humidity, pressure)")
        else:
            lines.append("  [!!] Environmental data (will use Weather API)")

        if self.cda_reference_mean is not None:
            lines.append(f"  [ok] CdA reference (avg: {self.cda_reference_mean:.3f})")
        else:
            lines.append("  [--] No CdA reference data")

        if self.has_lap_data:
            lines.append(f"  [ok] Lap data ({self.lap_count} laps)")
        else:
            lines.append("  [--] No lap data")

        if self.has_wind_angle:
            lines.append("  [ok] Wind angle data")
        else:
            lines.append("  [!!] No wind angle data")

        return lines

    def to_text(self) -> str:
        return "\n".join(self.lines())
