# capture/service.py
from abc import ABC, abstractmethod


class CaptureServiceControl(ABC):
    """Lets the hosting layer manage the service backing packet capture.

    Some capture drivers run as an OS service that has to be started before
    a scan and may be stopped afterwards, since the driver does not restrict
    which users can sniff while it runs. The discovery session only asks;
    the host decides how.
    """

    @abstractmethod
    def ensure_running(self) -> bool:
        """Makes capture available. Returns False if that is not possible."""

    @abstractmethod
    def release(self) -> None:
        """Signals that the scan is over and capture may be stopped."""


class NullServiceControl(CaptureServiceControl):
    """For capture layers that need no service management."""

    def ensure_running(self) -> bool:
        return True

    def release(self) -> None:
        pass
