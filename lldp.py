# lldp.py
"""IEEE 802.1AB Link Layer Discovery Protocol decoding.

An LLDPDU has no header of its own: it is a run of TLVs following the
Ethernet header, each prefixed by a 16 bit word holding a 7 bit type and
a 9 bit length, and terminated by an End of LLDPDU TLV.
"""
import ipaddress
import logging
import struct
from dataclasses import dataclass
from typing import List, Optional

from scapy.layers.l2 import Dot1Q, Ether

from errors import DecodeError, NotAPhone

logger = logging.getLogger(__name__)

LLDP_ETHERTYPE = 0x88CC
LLDP_CAPTURE_FILTER = "ether proto 0x88cc"
ETHER_HEADER_LEN = 14

# TLV types
TLV_END = 0
TLV_CHASSIS_ID = 1
TLV_PORT_ID = 2
TLV_TTL = 3
TLV_PORT_DESCRIPTION = 4
TLV_SYSTEM_NAME = 5
TLV_SYSTEM_DESCRIPTION = 6
TLV_SYSTEM_CAPABILITIES = 7
TLV_MANAGEMENT_ADDRESS = 8
TLV_ORGANIZATION_SPECIFIC = 127

# Chassis ID subtypes
CHASSIS_SUBTYPE_CHASSIS_COMPONENT = 1
CHASSIS_SUBTYPE_INTERFACE_ALIAS = 2
CHASSIS_SUBTYPE_PORT_COMPONENT = 3
CHASSIS_SUBTYPE_MAC_ADDRESS = 4
CHASSIS_SUBTYPE_NETWORK_ADDRESS = 5
CHASSIS_SUBTYPE_INTERFACE_NAME = 6
CHASSIS_SUBTYPE_LOCAL = 7

# IANA address family numbers
ADDRESS_FAMILY_IPV4 = 1
ADDRESS_FAMILY_IPV6 = 2

# System capabilities bits
CAPABILITY_OTHER = 0x0001
CAPABILITY_REPEATER = 0x0002
CAPABILITY_BRIDGE = 0x0004
CAPABILITY_WLAN_AP = 0x0008
CAPABILITY_ROUTER = 0x0010
CAPABILITY_TELEPHONE = 0x0020
CAPABILITY_DOCSIS = 0x0040
CAPABILITY_STATION = 0x0080


@dataclass(frozen=True)
class TLV:
    type: int
    value: bytes


@dataclass(frozen=True)
class SystemCapabilities:
    supported: int
    enabled: int

    @classmethod
    def from_tlv(cls, tlv: TLV) -> "SystemCapabilities":
        if len(tlv.value) != 4:
            raise DecodeError(f"System Capabilities TLV must be 4 bytes, got {len(tlv.value)}")
        supported, enabled = struct.unpack("!HH", tlv.value)
        return cls(supported, enabled)

    def is_enabled(self, capability: int) -> bool:
        return bool(self.enabled & capability)

    @property
    def telephone(self) -> bool:
        return self.is_enabled(CAPABILITY_TELEPHONE)


@dataclass(frozen=True)
class ChassisId:
    subtype: int
    id: bytes

    @classmethod
    def from_tlv(cls, tlv: TLV) -> "ChassisId":
        if len(tlv.value) < 2:
            raise DecodeError("Chassis ID TLV is too short")
        return cls(tlv.value[0], tlv.value[1:])

    @property
    def address_family(self) -> Optional[int]:
        if self.subtype != CHASSIS_SUBTYPE_NETWORK_ADDRESS or not self.id:
            return None
        return self.id[0]

    @property
    def ipv4_address(self) -> Optional[str]:
        """The chassis IPv4 address, or None for any other subtype or family."""
        if self.address_family != ADDRESS_FAMILY_IPV4:
            return None
        address = self.id[1:]
        if len(address) != 4:
            raise DecodeError(f"IPv4 Chassis ID must carry 4 address bytes, got {len(address)}")
        return str(ipaddress.IPv4Address(address))


def extract_lldp_payload(frame: bytes) -> bytes:
    """Strips the Ethernet envelope (and a single 802.1Q tag) off an LLDP frame."""
    if not frame or len(frame) < ETHER_HEADER_LEN:
        raise DecodeError("Frame is shorter than an Ethernet header")
    packet = Ether(frame)
    layer = packet[Dot1Q] if Dot1Q in packet else packet
    if layer.type != LLDP_ETHERTYPE:
        raise DecodeError(f"Frame does not carry LLDP (ethertype 0x{layer.type:04x})")
    return bytes(layer.payload)


def decode_tlvs(payload: bytes) -> List[TLV]:
    """Decodes an LLDPDU into its ordered TLVs, stopping at End of LLDPDU."""
    tlvs: List[TLV] = []
    offset = 0
    while offset < len(payload):
        if len(payload) - offset < 2:
            raise DecodeError(f"Truncated TLV header at offset {offset}")
        (header,) = struct.unpack_from("!H", payload, offset)
        tlv_type = header >> 9
        length = header & 0x01FF
        offset += 2
        value = payload[offset:offset + length]
        if len(value) != length:
            raise DecodeError(f"TLV type {tlv_type} claims {length} bytes, only {len(value)} left")
        offset += length
        if tlv_type == TLV_END:
            break
        tlvs.append(TLV(tlv_type, value))

    if not tlvs:
        raise DecodeError("LLDPDU carries no TLVs")
    return tlvs


def find_phone_address(tlvs: List[TLV]) -> Optional[str]:
    """Returns the IPv4 chassis address of a telephone.

    The Telephone capability is checked before any Chassis ID is looked at,
    so a non-phone announcing an IPv4 chassis never yields an address.

    Raises:
        NotAPhone: if the frame has no System Capabilities TLV or the
            Telephone capability is not enabled.
        DecodeError: if one of the inspected TLVs is malformed.

    Returns:
        The address, or None if the phone did not announce an IPv4 chassis.
    """
    capabilities = [SystemCapabilities.from_tlv(tlv) for tlv in tlvs
                    if tlv.type == TLV_SYSTEM_CAPABILITIES]
    if not any(cap.telephone for cap in capabilities):
        raise NotAPhone("Packet was not sent by an IP phone")
    logger.debug("Packet has Telephone bit set.")

    for tlv in tlvs:
        if tlv.type != TLV_CHASSIS_ID:
            continue
        chassis = ChassisId.from_tlv(tlv)
        ip = chassis.ipv4_address
        if ip:
            return ip
        logger.warning("ChassisID TLV has no IPv4 network address subtype (subtype %d), ignoring.",
                       chassis.subtype)
    return None


def decode_phone_address(frame: bytes) -> Optional[str]:
    """Decodes a captured Ethernet frame down to the announcing phone's IPv4 address."""
    return find_phone_address(decode_tlvs(extract_lldp_payload(frame)))
