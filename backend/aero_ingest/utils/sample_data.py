"""
Sample data generator for testing.

Generates realistic-looking aerosensor rides in the Gibli CSV export format.
"""

from pathlib import Path
from typing import Optional

import numpy as np

from aero_ingest.models import raw as cols


def generate_gibli_csv(
    duration_s: float = 60.0,
    sample_rate_hz: float = 1.0,
    start_ms: float = 0.0,
    timer_jitter_ms: float = 0.0,
    center_lat: float = 43.3858622,
    center_lon: float = -1.6512345,
    mean_speed_ms: float = 10.0,
    mean_power_w: float = 250.0,
    include_environment: bool = True,
    include_wind_angle: bool = True,
    include_cda: bool = False,
    lap_length_s: Optional[float] = None,
    nan_every: Optional[int] = None,
    seed: int = 0,
) -> str:
    """
    Build CSV text for an out-and-back ride along a straight road.

    With `timer_jitter_ms` > 0 the timer gaps are irregular, which is what
    triggers resampling. `nan_every` blanks the speed and power cells of
    every n-th row.
    """
    rng = np.random.default_rng(seed)
    n_samples = max(int(duration_s * sample_rate_hz), 2)

    dt_ms = 1000.0 / sample_rate_hz
    timer = start_ms + np.arange(n_samples) * dt_ms
    if timer_jitter_ms > 0:
        timer = timer + rng.uniform(-timer_jitter_ms, timer_jitter_ms, n_samples)
        timer = np.maximum.accumulate(np.round(timer))

    # Speed with gentle variation, power loosely following it
    phase = np.linspace(0, 4 * np.pi, n_samples)
    speed = mean_speed_ms + 1.5 * np.sin(phase) + rng.normal(0, 0.2, n_samples)
    power = mean_power_w + 40.0 * np.sin(phase) + rng.normal(0, 10.0, n_samples)
    air_speed = speed + 2.0 * np.cos(phase / 2)

    # Ride east then back west along the same latitude
    elapsed_s = (timer - timer[0]) / 1000.0
    half = elapsed_s[-1] / 2 if elapsed_s[-1] > 0 else 1.0
    along_m = mean_speed_ms * np.where(elapsed_s <= half, elapsed_s, 2 * half - elapsed_s)
    meters_per_deg_lon = 111320.0 * np.cos(np.radians(center_lat))
    lat = np.full(n_samples, center_lat)
    lon = center_lon + along_m / meters_per_deg_lon
    altitude_m = 50.0 + 5.0 * np.sin(phase / 2)

    header = [
        cols.TIMER_MS,
        cols.SPEED_CM_S,
        cols.POWER_W,
        cols.WIND_MAGNITUDE_KMH,
        cols.LATITUDE,
        cols.LONGITUDE,
        cols.GPS_ALTITUDE_MM,
    ]
    columns = [
        [f"{t:.0f}" for t in timer],
        [f"{v * 100:.0f}" for v in speed],
        [f"{p:.0f}" for p in power],
        [f"{w * 3.6:.2f}" for w in air_speed],
        [f"{x * 1e7:.0f}" for x in lat],
        [f"{x * 1e7:.0f}" for x in lon],
        [f"{a * 1000:.0f}" for a in altitude_m],
    ]

    if include_environment:
        header += [cols.TEMPERATURE, cols.HUMIDITY, cols.PRESSURE_PA]
        columns.append([f"{x:.1f}" for x in 18.0 + rng.normal(0, 0.1, n_samples)])
        columns.append([f"{x:.1f}" for x in 55.0 + rng.normal(0, 0.5, n_samples)])
        columns.append([f"{x:.0f}" for x in 101325.0 + rng.normal(0, 5.0, n_samples)])

    if include_wind_angle:
        header.append(cols.WIND_ANGLE_DEG)
        columns.append([f"{x:.1f}" for x in rng.normal(0, 8.0, n_samples)])

    if include_cda:
        header.append(cols.CDA)
        cda = 0.25 + rng.normal(0, 0.01, n_samples)
        # Sensor only reports CdA once it has settled
        columns.append(["NaN" if i < 5 else f"{x:.4f}" for i, x in enumerate(cda)])

    if lap_length_s:
        header.append(cols.LAP_NUMBER)
        columns.append([f"{int(t // lap_length_s) + 1}" for t in elapsed_s])

    rows = [list(cells) for cells in zip(*columns)]
    if nan_every:
        speed_idx = header.index(cols.SPEED_CM_S)
        power_idx = header.index(cols.POWER_W)
        for i in range(nan_every - 1, n_samples, nan_every):
            rows[i][speed_idx] = ""
            rows[i][power_idx] = "NaN"

    lines = [",".join(header)]
    lines.extend(",".join(row) for row in rows)
    return "\n".join(lines) + "\n"


def write_gibli_csv(output_path: Path, **kwargs) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(generate_gibli_csv(**kwargs))
    return output_path


def generate_test_data_set(output_folder: Path) -> list[Path]:
    """Generate a set of test data files."""
    output_folder.mkdir(parents=True, exist_ok=True)

    files = []

    files.append(write_gibli_csv(
        output_folder / "ride_001_uniform.csv",
        duration_s=300.0,
    ))

    files.append(write_gibli_csv(
        output_folder / "ride_002_jittered.csv",
        duration_s=300.0,
        timer_jitter_ms=400.0,
        seed=1,
    ))

    files.append(write_gibli_csv(
        output_folder / "ride_003_laps_cda.csv",
        duration_s=600.0,
        include_cda=True,
        lap_length_s=120.0,
        seed=2,
    ))

    files.append(write_gibli_csv(
        output_folder / "ride_004_minimal.csv",
        duration_s=120.0,
        include_environment=False,
        include_wind_angle=False,
        nan_every=17,
        seed=3,
    ))

    return files


if __name__ == "__main__":
    # Generate test data when run directly
    output = Path("./data/rides")
    files = generate_test_data_set(output)
    print(f"Generated {len(files)} test files in {output}")
    for f in files:
        print(f"  - {f.name}")
