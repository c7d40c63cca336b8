# webservice.py
import logging
import xml.etree.ElementTree as ET
from typing import Dict, Optional

import requests

from errors import ServiceQueryError
from phone import PhoneRecord
from utils import format_mac, is_valid_ipv4

logger = logging.getLogger(__name__)

SERVICEABILITY_URL = "http://{ip}/CGI/Java/Serviceability?adapterX=device.statistics.device"
DEFAULT_HTTP_TIMEOUT = 10.0

# XML element -> PhoneRecord field
PHONE_FIELDS = {
    "MACAddress": "mac_address",
    "phoneDN": "extension",
    "serialNumber": "serial_number",
    "modelNumber": "model",
}


class PhoneWebService:
    """Queries the device information page of a Cisco IP phone's web service."""

    def __init__(self, proxy: Optional[str] = None, timeout: float = DEFAULT_HTTP_TIMEOUT):
        self.proxy = proxy or None
        self.timeout = timeout
        if self.proxy:
            logger.info(f"Using web proxy: {self.proxy}")

    @property
    def proxies(self) -> Optional[Dict[str, str]]:
        if not self.proxy:
            return None
        return {"http": self.proxy, "https": self.proxy}

    def query(self, ip_address: str) -> PhoneRecord:
        """Fetches the phone's identity and returns a complete PhoneRecord.

        Raises:
            ServiceQueryError: on connection failure, non-success status,
                malformed XML or a missing field.
        """
        if not is_valid_ipv4(ip_address):
            raise ServiceQueryError(ip_address, "not an IPv4 address")
        url = SERVICEABILITY_URL.format(ip=ip_address)
        logger.info(f"Querying Cisco IP Phone web service at {url}")
        try:
            response = requests.get(url, proxies=self.proxies, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ServiceQueryError(ip_address, str(e)) from e

        fields = self._parse_device_information(ip_address, response.content)
        try:
            fields["mac_address"] = format_mac(fields["mac_address"])
        except ValueError as e:
            raise ServiceQueryError(ip_address, str(e)) from e
        return PhoneRecord(ip_address=ip_address, **fields)

    def _parse_device_information(self, ip_address: str, body: bytes) -> Dict[str, str]:
        """Extracts the identity fields from the device information document."""
        try:
            root = ET.fromstring(body)
        except (ET.ParseError, LookupError, ValueError) as e:
            raise ServiceQueryError(ip_address, f"malformed XML: {e}") from e

        fields: Dict[str, str] = {}
        for tag, name in PHONE_FIELDS.items():
            node = root.find(tag)
            if node is None:
                raise ServiceQueryError(ip_address, f"response has no {tag} element")
            fields[name] = (node.text or "").strip()
        return fields
