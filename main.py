"""
Google reverse geocoder - command line tool with TOML configuration.
Resolves LAT,LNG pairs into addresses using signed, rate limited requests.
"""

from __future__ import annotations

import argparse
import asyncio
import copy
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

import lib.utils as utils
from internal.config.manager import ConfigManager
from lib.google_geocoding import GeocoderError, GoogleGeocoderClient, LoggingRequestObserver
from lib.logging_utils import initLogging

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
# set higher logging level for httpx to avoid all GET requests being logged
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


class ReverseGeocoderApp:
    """Wires configuration, logging and the geocoder client together."""

    def __init__(
        self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None, dotEnvFile: str = ".env"
    ):
        """Initialize the app with all components."""
        self.configManager = ConfigManager(configPath, configDirs, dotEnvFile)

        initLogging(self.configManager.getLoggingConfig())

        self.client = GoogleGeocoderClient.fromConfig(
            self.configManager.getGeocoderConfig(),
            observer=LoggingRequestObserver(),
        )

    async def resolve(self, coordinates: List[Tuple[float, float]], timeout: Optional[float]) -> List[Any]:
        """Resolve all coordinates concurrently, keeping per-call failures as results."""
        return await asyncio.gather(
            *(self.client.reverseGeocode(lat, lng, timeout=timeout) for lat, lng in coordinates),
            return_exceptions=True,
        )

    def run(self, coordinates: List[Tuple[float, float]], timeout: Optional[float]) -> int:
        """Resolve coordinates, print JSON results and return process exit code."""
        results = asyncio.run(self.resolve(coordinates, timeout))

        exitCode = 0
        output: List[Dict[str, Any]] = []
        for (lat, lng), result in zip(coordinates, results):
            entry: Dict[str, Any] = {"lat": lat, "lng": lng}
            if isinstance(result, BaseException):
                # Transport failures are not wrapped into GeocoderError
                logger.error(f"Failed to resolve {lat},{lng}: {result}")
                entry["error"] = f"{type(result).__name__}: {result}"
                exitCode = 1
            else:
                entry["response"] = result
            output.append(entry)

        print(utils.jsonDumps(output, indent=2))
        return exitCode


def parseCoordinate(value: str) -> Tuple[float, float]:
    """Parse ``LAT,LNG`` argument into a pair of floats."""
    try:
        latStr, lngStr = value.split(",", 1)
        return float(latStr), float(lngStr)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid coordinate '{value}', expected LAT,LNG")


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Reverse geocode coordinates with the Google Geocoding API, dood!")
    parser.add_argument(
        "-c",
        "--config",
        default="config.toml",
        help="Path to configuration file (default: config.toml)",
    )
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times)",
    )
    parser.add_argument(
        "--dotenv-file",
        default=".env",
        help="Path to dotenv file with secrets (default: .env)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request deadline in seconds, covering rate limiting and the HTTP request",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Pretty-print loaded configuration and exit",
    )
    parser.add_argument(
        "coordinates",
        nargs="*",
        type=parseCoordinate,
        metavar="LAT,LNG",
        help="Coordinates to resolve (put -- before negative latitudes)",
    )
    args = parser.parse_args(argv)
    args.config = os.path.abspath(args.config)
    if args.config_dir:
        args.config_dir = [os.path.abspath(dirPath) for dirPath in args.config_dir]

    if not args.print_config and not args.coordinates:
        parser.error("at least one LAT,LNG pair is required")

    return args


def prettyPrintConfig(configManager: ConfigManager):
    """Pretty-print the loaded configuration with the signing key masked."""
    config = copy.deepcopy(configManager.config)
    credentials = config.get("geocoder", {}).get("credentials")
    if credentials and credentials.get("signing-key"):
        config["geocoder"] = {**config["geocoder"], "credentials": {**credentials, "signing-key": "***"}}

    print("=== Geocoder Configuration ===")
    print()
    print(utils.jsonDumps(config, indent=2))
    print()
    print("=== Configuration loaded successfully, dood! ===")


def main():
    """Main entry point."""
    args = parse_arguments()

    try:
        if args.print_config:
            prettyPrintConfig(ConfigManager(args.config, args.config_dir, args.dotenv_file))
            sys.exit(0)

        app = ReverseGeocoderApp(configPath=args.config, configDirs=args.config_dir, dotEnvFile=args.dotenv_file)
        sys.exit(app.run(args.coordinates, args.timeout))
    except GeocoderError as e:
        logger.error(f"Geocoder setup failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Stopped by user")


if __name__ == "__main__":
    main()
