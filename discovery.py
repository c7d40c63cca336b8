# discovery.py
import logging
import threading
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from capture import CaptureBackend, CaptureServiceControl, NullServiceControl
from errors import CaptureSubsystemUnavailable
from phone import PhoneRecord
from scanner import DEFAULT_IGNORED_DESCRIPTIONS, DEFAULT_TIMEOUT, DeviceScanner, ProbeResult
from webservice import DEFAULT_HTTP_TIMEOUT, PhoneWebService

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryConfig:
    timeout: int = DEFAULT_TIMEOUT
    proxy: Optional[str] = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    ignore_descriptions: Tuple[str, ...] = DEFAULT_IGNORED_DESCRIPTIONS

    def __post_init__(self):
        if self.timeout <= 0:
            raise ValueError(f"Timeout must be a positive number of seconds, got {self.timeout}")
        if self.http_timeout <= 0:
            raise ValueError(f"HTTP timeout must be positive, got {self.http_timeout}")
        self.proxy = self.proxy or None
        self.ignore_descriptions = tuple(self.ignore_descriptions)

    @classmethod
    def from_settings(cls, settings) -> "DiscoveryConfig":
        """Builds the configuration from the [general] table of the settings."""
        general = settings.get("general") or {}
        return cls(
            timeout=int(general.get("timeout", DEFAULT_TIMEOUT)),
            proxy=general.get("proxy") or None,
            http_timeout=float(general.get("http_timeout", DEFAULT_HTTP_TIMEOUT)),
            ignore_descriptions=tuple(general.get("ignore_descriptions", DEFAULT_IGNORED_DESCRIPTIONS)),
        )


class DiscoverySession:
    """Runs one scan of all capture devices for Cisco IP phones.

    The session asks the service control to make capture available before
    the scan and releases it once the scan is over or abandoned. It is not
    meant to be run concurrently with another session.
    """

    def __init__(self, backend: CaptureBackend,
                 service_control: Optional[CaptureServiceControl] = None,
                 config: Optional[DiscoveryConfig] = None):
        self.backend = backend
        self.service_control = service_control or NullServiceControl()
        self.config = config or DiscoveryConfig()

    def discover(self, timeout: Optional[int] = None, proxy: Optional[str] = None,
                 cancel: Optional[threading.Event] = None) -> Iterator[PhoneRecord]:
        """Lazily yields every phone found. Unset arguments fall back to the session config."""
        results = self.probe_devices(timeout, proxy, cancel)
        return (result.phone for result in results if result.phone is not None)

    def probe_devices(self, timeout: Optional[int] = None, proxy: Optional[str] = None,
                      cancel: Optional[threading.Event] = None) -> Iterator[ProbeResult]:
        """Lazily yields the outcome of probing each capture device."""
        timeout = self.config.timeout if timeout is None else timeout
        if timeout <= 0:
            raise ValueError(f"Timeout must be a positive number of seconds, got {timeout}")
        proxy = proxy or self.config.proxy

        scanner = DeviceScanner(
            self.backend,
            PhoneWebService(proxy=proxy, timeout=self.config.http_timeout),
            timeout=timeout,
            ignore_descriptions=self.config.ignore_descriptions,
        )
        return self._run(scanner, cancel)

    def _run(self, scanner: DeviceScanner,
             cancel: Optional[threading.Event]) -> Iterator[ProbeResult]:
        logger.info("Checking if the capture service is running.")
        if not self.service_control.ensure_running():
            logger.critical("Could not start the capture service.")
            raise CaptureSubsystemUnavailable("Capture service is not running")

        try:
            logger.info(f"Starting capture process with a timeout of {scanner.timeout * 1000}ms")
            found = 0
            for result in scanner.probe_all(cancel):
                if result.phone is not None:
                    found += 1
                yield result
            logger.info(f"Scan finished, {found} phone(s) found.")
        finally:
            logger.info("Releasing the capture service.")
            self.service_control.release()
