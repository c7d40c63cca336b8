# utils.py
import re
import ipaddress

_MAC_SEPARATORS = re.compile(r"[:\-\.\s]")
_MAC_PATTERN = re.compile(r"^[0-9A-Fa-f]{12}$")


def format_mac(mac: str) -> str:
    """Formats a MAC address to uppercase with colons.

    Accepts bare (001122AABBCC), colon, hyphen and Cisco dotted
    (0011.22aa.bbcc) forms.

    Raises:
        ValueError: if the value is not a 48-bit hardware address.
    """
    digits = _MAC_SEPARATORS.sub("", mac or "")
    if not _MAC_PATTERN.match(digits):
        raise ValueError(f"Invalid MAC address: {mac!r}")
    digits = digits.upper()
    return ":".join(digits[i:i + 2] for i in range(0, 12, 2))


def is_valid_ipv4(ip: str) -> bool:
    """Checks if a string is a valid IPv4 address."""
    try:
        ipaddress.IPv4Address(ip)
    except (ipaddress.AddressValueError, ValueError):
        return False
    return True


def description_matches(description: str, patterns) -> bool:
    """Returns True if any of the patterns occurs in the device description."""
    if not description:
        return False
    return any(pattern and pattern in description for pattern in patterns)
