"""HTTP access to the Chronos metrics and ping endpoints."""
import logging
import time
from typing import Any, Callable, Optional

import requests

from chronos_exporter.config import ChronosConfig
from chronos_exporter.errors import ScrapeError

logger = logging.getLogger(__name__)


class ChronosScraper:
    """Fetches the Codahale metrics document from Chronos."""

    def __init__(self, config: ChronosConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        # Chronos is commonly served with self-signed certificates
        self.session.verify = not config.insecure_skip_verify

    @property
    def metrics_url(self) -> str:
        return f"{self.config.uri}{self.config.metrics_path}"

    @property
    def ping_url(self) -> str:
        return f"{self.config.uri}/ping"

    def scrape(self) -> Any:
        """
        Fetch and decode the metrics snapshot.

        Returns:
            Decoded JSON document

        Raises:
            ScrapeError: on connection failure, non-2xx status or invalid JSON
        """
        try:
            response = self.session.get(self.metrics_url, timeout=self.config.timeout_s)
        except requests.RequestException as e:
            raise ScrapeError(f"Problem scraping metrics endpoint: {e}") from e

        if not response.ok:
            raise ScrapeError(
                f"Problem scraping metrics endpoint: {response.status_code} {response.reason}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise ScrapeError(f"Problem parsing metrics response: {e}") from e

    def ping(self) -> bool:
        """Return True when Chronos answers its ping endpoint with 200."""
        try:
            response = self.session.get(self.ping_url, timeout=self.config.timeout_s)
        except requests.RequestException as e:
            logger.debug(f"Problem connecting to Chronos: {e}")
            return False

        if response.status_code != 200:
            logger.debug(f"Problem reading Chronos ping response: {response.status_code} {response.reason}")
            return False

        logger.debug("Connected to Chronos!")
        return True

    def wait_until_connected(
        self,
        retry_interval_s: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        max_attempts: Optional[int] = None,
    ) -> int:
        """
        Block until Chronos answers a ping.

        Args:
            retry_interval_s: Delay between attempts (defaults to config)
            sleep: Sleep function, replaceable in tests
            max_attempts: Give up after this many failed pings (None = forever)

        Returns:
            Number of attempts made

        Raises:
            ScrapeError: if max_attempts is reached without a successful ping
        """
        interval = retry_interval_s if retry_interval_s is not None else self.config.retry_interval_s
        attempts = 0

        while True:
            attempts += 1
            if self.ping():
                return attempts

            if max_attempts is not None and attempts >= max_attempts:
                raise ScrapeError(f"Couldn't connect to Chronos at {self.config.uri} after {attempts} attempts")

            logger.info(f"Couldn't connect to Chronos! Trying again in {interval}s")
            sleep(interval)
