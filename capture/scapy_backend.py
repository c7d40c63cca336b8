# capture/scapy_backend.py
import logging
import threading
import time
from typing import List, Optional

from scapy.all import conf, sniff
from scapy.error import Scapy_Exception
from scapy.layers.l2 import Ether

from errors import CaptureSubsystemUnavailable, DeviceOpenError
from .base import CaptureBackend, CaptureDevice, LINKTYPE_ETHERNET

logger = logging.getLogger(__name__)

# Longest a single sniff() call blocks, so cancellation is noticed mid-read.
READ_SLICE = 0.5


class ScapyCaptureDevice(CaptureDevice):
    """Capture device backed by a scapy layer 2 listen socket."""

    def __init__(self, name: str, description: Optional[str] = None,
                 network_name: Optional[str] = None):
        super().__init__(name, description)
        self.network_name = network_name or name
        self.promiscuous = True
        self.timeout_ms = 0
        self._socket = None

    def _listen(self, bpf_filter: Optional[str] = None):
        try:
            return conf.L2listen(iface=self.network_name, promisc=self.promiscuous,
                                 filter=bpf_filter)
        except (OSError, Scapy_Exception) as e:
            raise DeviceOpenError(self.description, str(e)) from e

    def open(self, promiscuous: bool, timeout_ms: int) -> None:
        self.promiscuous = promiscuous
        self.timeout_ms = timeout_ms
        self._socket = self._listen()

    @property
    def link_type(self) -> Optional[int]:
        layer = getattr(self._socket, "LL", None)
        if isinstance(layer, type) and issubclass(layer, Ether):
            return LINKTYPE_ETHERNET
        return None

    def set_filter(self, expression: str) -> None:
        # scapy attaches BPF programs when the socket is created
        if self._socket is None:
            raise DeviceOpenError(self.description, "device is not open")
        self._socket.close()
        self._socket = None
        self._socket = self._listen(expression)

    def read_frame(self, timeout: Optional[float] = None,
                   cancel: Optional[threading.Event] = None) -> Optional[bytes]:
        if self._socket is None:
            return None
        if timeout is None:
            timeout = self.timeout_ms / 1000
        deadline = time.monotonic() + timeout
        while True:
            if cancel is not None and cancel.is_set():
                logger.debug(f"Capture on {self.description} cancelled.")
                return None
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            packets = sniff(opened_socket=self._socket, count=1,
                            timeout=min(remaining, READ_SLICE), store=True)
            if packets:
                return bytes(packets[0])

    def close(self) -> None:
        if self._socket is not None:
            try:
                self._socket.close()
            finally:
                self._socket = None


class ScapyCaptureBackend(CaptureBackend):
    """Enumerates the interfaces scapy knows about."""

    def list_devices(self) -> List[CaptureDevice]:
        try:
            interfaces = list(conf.ifaces.values())
        except (OSError, Scapy_Exception) as e:
            raise CaptureSubsystemUnavailable(f"Could not enumerate capture devices: {e}") from e

        devices: List[CaptureDevice] = []
        for iface in interfaces:
            devices.append(ScapyCaptureDevice(
                name=iface.name,
                description=getattr(iface, "description", None),
                network_name=getattr(iface, "network_name", None),
            ))
        logger.debug(f"Found {len(devices)} capture devices")
        return devices
