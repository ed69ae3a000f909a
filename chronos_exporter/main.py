"""Main entry point for the Chronos exporter."""
import argparse
import json
import logging
import sys

from prometheus_client import disable_created_metrics

from chronos_exporter.config import load_config
from chronos_exporter.control_api import ControlAPI
from chronos_exporter.exporter import ChronosExporter
from chronos_exporter.scraper import ChronosScraper

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(log_level: str, log_format: str):
    """Setup logging configuration."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JsonFormatter(datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    logging.basicConfig(level=level, handlers=[handler])

    # Reduce noise from some libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Chronos Exporter - Expose Chronos metrics to Prometheus"
    )
    parser.add_argument(
        "--config",
        "-c",
        help="Path to configuration YAML file"
    )
    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        help="Address to listen on for web interface and telemetry (default :9044)"
    )
    parser.add_argument(
        "--web.telemetry-path",
        dest="telemetry_path",
        help="Path under which to expose metrics (default /metrics)"
    )
    parser.add_argument(
        "--chronos.uri",
        dest="chronos_uri",
        help="URI of Chronos (default http://chronos.mesos:4400)"
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        help="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    return parser


def main(argv=None):
    """Main function."""
    args = build_parser().parse_args(argv)

    # Load configuration
    try:
        config = load_config(args.config, overrides={
            "chronos_uri": args.chronos_uri,
            "listen_address": args.listen_address,
            "telemetry_path": args.telemetry_path,
            "log_level": args.log_level,
        })
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    setup_logging(config.global_.log_level, config.global_.log_format)
    logger = logging.getLogger(__name__)

    logger.info(f"Chronos URI: {config.chronos.uri}")

    # Chronos counts are absolute snapshots; creation timestamps carry no meaning
    disable_created_metrics()

    scraper = ChronosScraper(config.chronos)
    scraper.wait_until_connected()
    logger.info("Connected to Chronos")

    exporter = ChronosExporter(scraper)
    control_api = ControlAPI(exporter, telemetry_path=config.web.telemetry_path)

    logger.info(f"Starting Server: {config.web.listen_address}")
    try:
        control_api.run(host=config.web.host, port=config.web.port)
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
