# errors.py
from typing import Optional


class PhoneDiscoveryError(Exception):
    """Base class for all phone discovery errors."""


class DeviceOpenError(PhoneDiscoveryError):
    """A capture device could not be opened. The device is skipped."""

    def __init__(self, device: str, reason: Optional[str] = None):
        self.device = device
        self.reason = reason
        message = f"Could not open device {device} for capturing"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DeviceCaptureTimeout(PhoneDiscoveryError):
    """No LLDP frame arrived on a device before the timeout expired."""


class DecodeError(PhoneDiscoveryError):
    """A captured frame is malformed or does not carry LLDP."""


class NotAPhone(PhoneDiscoveryError):
    """The LLDP frame was not sent by a device with the Telephone capability."""


class ServiceQueryError(PhoneDiscoveryError):
    """The phone web service did not yield a complete phone record."""

    def __init__(self, ip_address: str, reason: Optional[str] = None):
        self.ip_address = ip_address
        self.reason = reason
        message = f"Could not query Cisco IP Phone web service at {ip_address}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CaptureSubsystemUnavailable(PhoneDiscoveryError):
    """Packet capture is not available at all. Fatal to the whole scan."""
