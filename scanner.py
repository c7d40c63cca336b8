# scanner.py
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional

from capture import CaptureBackend, CaptureDevice, LINKTYPE_ETHERNET
from errors import (DecodeError, DeviceCaptureTimeout, DeviceOpenError, NotAPhone,
                    PhoneDiscoveryError, ServiceQueryError)
from lldp import LLDP_CAPTURE_FILTER, decode_phone_address
from phone import PhoneRecord
from utils import description_matches
from webservice import PhoneWebService

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 33
DEFAULT_IGNORED_DESCRIPTIONS = ("VMware",)

NO_FRAME_HINT = ("Causes: The timeout is too short, there is no Cisco IP Phone connected to the "
                 "ethernet device, a firewall is blocking incoming LLDP packets or the IP Phone "
                 "does not support LLDP protocol.")


class ProbeOutcome(Enum):
    FOUND = "found"
    IGNORED = "ignored"
    OPEN_FAILED = "open_failed"
    CAPTURE_FAILED = "capture_failed"
    TIMEOUT = "timeout"
    DECODE_FAILED = "decode_failed"
    NOT_A_PHONE = "not_a_phone"
    NO_ADDRESS = "no_address"
    QUERY_FAILED = "query_failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ProbeResult:
    """What probing a single capture device came to."""
    device: str
    outcome: ProbeOutcome
    phone: Optional[PhoneRecord] = None
    ip_address: Optional[str] = None
    error: Optional[PhoneDiscoveryError] = None


class DeviceScanner:
    """Probes capture devices one at a time for an LLDP frame from a phone.

    Every device is opened, filtered, read at most once and closed before
    the next one is touched. Failures on one device are logged and turned
    into a ProbeResult; they never stop the scan.
    """

    def __init__(self, backend: CaptureBackend, web_service: PhoneWebService,
                 timeout: int = DEFAULT_TIMEOUT,
                 ignore_descriptions: Iterable[str] = DEFAULT_IGNORED_DESCRIPTIONS):
        self.backend = backend
        self.web_service = web_service
        self.timeout = timeout
        self.ignore_descriptions = tuple(ignore_descriptions)

    def scan(self, cancel: Optional[threading.Event] = None) -> Iterator[PhoneRecord]:
        """Yields each phone as soon as its device has been probed."""
        for result in self.probe_all(cancel):
            if result.phone is not None:
                yield result.phone

    def probe_all(self, cancel: Optional[threading.Event] = None) -> Iterator[ProbeResult]:
        """Yields one ProbeResult per capture device, in enumeration order.

        Raises:
            CaptureSubsystemUnavailable: if the devices cannot be enumerated.
        """
        devices = self.backend.list_devices()
        if not devices:
            logger.warning("No capture devices available.")
        for device in devices:
            if cancel is not None and cancel.is_set():
                logger.info("Scan cancelled, skipping remaining devices.")
                return
            yield self.probe(device, cancel)

    def probe(self, device: CaptureDevice,
              cancel: Optional[threading.Event] = None) -> ProbeResult:
        """Runs open -> filter -> read one frame -> close on a device, then identifies the phone."""
        name = device.description

        if description_matches(name, self.ignore_descriptions):
            logger.info(f"Ignoring device {name} as it is a virtual adapter.")
            return ProbeResult(name, ProbeOutcome.IGNORED)

        with device:
            try:
                logger.info(f"Opening device {name} for capturing in promiscuous mode.")
                device.open(promiscuous=True, timeout_ms=int(self.timeout * 1000))
            except Exception as e:  # pylint: disable=broad-except
                error = e if isinstance(e, DeviceOpenError) else DeviceOpenError(name, str(e))
                logger.error(f"Could not open device {name} for capturing: {e}")
                return ProbeResult(name, ProbeOutcome.OPEN_FAILED, error=error)

            if device.link_type != LINKTYPE_ETHERNET:
                logger.info(f"Ignoring device {name} as it is not an ethernet device.")
                return ProbeResult(name, ProbeOutcome.IGNORED)

            try:
                device.set_filter(LLDP_CAPTURE_FILTER)
                logger.info("Capturing a single packet.")
                frame = device.read_frame(self.timeout, cancel)
            except DeviceOpenError as e:
                logger.error(f"Could not filter device {name}: {e}")
                return ProbeResult(name, ProbeOutcome.OPEN_FAILED, error=e)
            except Exception as e:  # pylint: disable=broad-except
                logger.error(f"Capture failed on device {name}: {e}")
                return ProbeResult(name, ProbeOutcome.CAPTURE_FAILED, error=DeviceOpenError(name, str(e)))

        if frame is None:
            if cancel is not None and cancel.is_set():
                return ProbeResult(name, ProbeOutcome.CANCELLED)
            logger.info(f"Could not capture a single packet on {name} before reaching the "
                        f"specified timeout. {NO_FRAME_HINT}")
            return ProbeResult(name, ProbeOutcome.TIMEOUT,
                               error=DeviceCaptureTimeout(f"No LLDP frame on {name} within {self.timeout}s"))

        logger.info("Received LLDP packet, processing.")
        return self._identify(name, frame)

    def _identify(self, name: str, frame: bytes) -> ProbeResult:
        try:
            ip = decode_phone_address(frame)
        except NotAPhone as e:
            logger.info("Packet was not sent by an IP phone, ignoring.")
            return ProbeResult(name, ProbeOutcome.NOT_A_PHONE, error=e)
        except DecodeError as e:
            logger.warning(f"Could not decode LLDP packet from {name}: {e}")
            return ProbeResult(name, ProbeOutcome.DECODE_FAILED, error=e)

        if ip is None:
            logger.warning(f"Phone on {name} did not announce an IPv4 address, ignoring.")
            return ProbeResult(name, ProbeOutcome.NO_ADDRESS)

        try:
            phone = self.web_service.query(ip)
        except ServiceQueryError as e:
            logger.error(f"Could not query Cisco IP Phone web service: {e}")
            return ProbeResult(name, ProbeOutcome.QUERY_FAILED, ip_address=ip, error=e)
        except Exception as e:  # pylint: disable=broad-except
            error = ServiceQueryError(ip, str(e))
            logger.error(f"Could not query Cisco IP Phone web service: {error}")
            return ProbeResult(name, ProbeOutcome.QUERY_FAILED, ip_address=ip, error=error)

        logger.debug(str(phone))
        return ProbeResult(name, ProbeOutcome.FOUND, phone=phone, ip_address=ip)
