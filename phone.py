# phone.py
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class PhoneRecord:
    """A Cisco IP phone identified on the local segment.

    Only built once the LLDP frame confirmed a telephone and the phone's
    web service returned every identity field.
    """
    mac_address: str  # Upper-case, colon delimited
    ip_address: str
    extension: str
    model: str
    serial_number: str

    def as_entity(self) -> Dict[str, str]:
        """Returns the record as a management entity: key first, then probes."""
        return {
            "macAddress": self.mac_address,
            "ipAddress": self.ip_address,
            "extension": self.extension,
            "model": self.model,
            "serialNumber": self.serial_number,
        }

    def __str__(self) -> str:
        return (f"Cisco IP Phone model {self.model}, SN: {self.serial_number}, "
                f"MAC address: {self.mac_address}")
