#!/usr/bin/env python3
"""
Launch script for the Aerosensor CSV Ingest backend.

Usage:
    python run_server.py [--port PORT] [--host HOST] [--coord-scale SCALE]

Examples:
    python run_server.py                    # Serve on 127.0.0.1:8000
    python run_server.py --port 5000        # Run on port 5000
    python run_server.py --coord-scale 1e7  # Fixed-point coordinate divisor
"""

import argparse
import os
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))


def main():
    parser = argparse.ArgumentParser(description="Aerosensor CSV Ingest Backend Server")
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8000,
        help="Port to run server on (default: 8000)"
    )
    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for all interfaces)"
    )
    parser.add_argument(
        "--coord-scale",
        type=float,
        default=None,
        help="Divisor turning fixed-point Latitude/Longitude into degrees (default: 1e7)"
    )
    parser.add_argument(
        "--resample-std",
        type=float,
        default=None,
        help="Timer interval std-dev (s) above which data is resampled to 1 Hz (default: 0.1)"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Run in debug mode"
    )

    args = parser.parse_args()

    # Module-level settings are read from the environment at import time
    if args.coord_scale is not None:
        os.environ["AERO_INGEST_COORD_SCALE"] = repr(args.coord_scale)
    if args.resample_std is not None:
        os.environ["AERO_INGEST_RESAMPLE_STD_S"] = repr(args.resample_std)

    print("Aerosensor CSV Ingest Backend")
    print("=" * 40)
    print(f"Server: http://{args.host}:{args.port}")
    print("=" * 40)

    print("\nAPI Endpoints:")
    print("  GET  /                   - Health check")
    print("  GET  /health             - Detailed health")
    print("  POST /records/parse      - Parse CSV body into a unified record")
    print("  POST /records/intervals  - Timer interval statistics")
    print("\nStarting server...")

    import uvicorn

    uvicorn.run(
        "aero_ingest.main:app",
        host=args.host,
        port=args.port,
        reload=args.debug,
        log_level="info",
    )


if __name__ == "__main__":
    main()
