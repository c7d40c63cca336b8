# capture/base.py
import threading
from abc import ABC, abstractmethod
from typing import List, Optional

# DLT_EN10MB
LINKTYPE_ETHERNET = 1


class CaptureDevice(ABC):
    """A network interface that can be opened for promiscuous capture.

    One probe opens the device, installs a filter, reads at most one frame
    and closes it again. Used as a context manager, the device is closed on
    exit whatever happened inside the block.
    """

    def __init__(self, name: str, description: Optional[str] = None):
        self.name = name
        self.description = description or name

    @abstractmethod
    def open(self, promiscuous: bool, timeout_ms: int) -> None:
        """Opens the device.

        Raises:
            DeviceOpenError: if the device cannot be opened.
        """

    @property
    @abstractmethod
    def link_type(self) -> Optional[int]:
        """DLT link-layer type of the open device, None if unknown."""

    @abstractmethod
    def set_filter(self, expression: str) -> None:
        """Installs a BPF capture filter on the open device."""

    @abstractmethod
    def read_frame(self, timeout: float,
                   cancel: Optional[threading.Event] = None) -> Optional[bytes]:
        """Blocks for at most timeout seconds waiting for one frame.

        Returns:
            The raw frame, or None if the timeout expired or cancel was set.
        """

    @abstractmethod
    def close(self) -> None:
        """Closes the device. Safe to call on a device that is not open."""

    def __enter__(self) -> "CaptureDevice":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class CaptureBackend(ABC):
    """Abstract base class for enumerating capture devices."""

    @abstractmethod
    def list_devices(self) -> List[CaptureDevice]:
        """Returns the capture-capable devices in enumeration order.

        Raises:
            CaptureSubsystemUnavailable: if the capture driver is unreachable.
        """
