# phone_discovery.py
import argparse
import logging
import sys
from dataclasses import replace
from typing import Dict, List, Optional
from pathlib import Path

from capture import get_capture_backend
from data import save_phone_data
from discovery import DiscoveryConfig, DiscoverySession
from errors import CaptureSubsystemUnavailable
from phone import PhoneRecord
from scanner import ProbeOutcome
from dynaconf import Dynaconf
from mac_vendor_lookup import MacLookup

# Load settings
config = Dynaconf(
    settings_files=['config/settings.toml'],
    envvar_prefix="PHONE_DISCOVERY",
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_CAPTURE_UNAVAILABLE = 2


def phone_entry(phone: PhoneRecord, mac_lookup: Optional[MacLookup] = None) -> Dict:
    """Builds the exported entry for a phone, with the vendor if a lookup is given."""
    entry = phone.as_entity()
    if mac_lookup is not None:
        try:
            entry['vendor'] = mac_lookup.lookup(phone.mac_address)
        except Exception as e:  # pylint: disable=broad-except
            logger.debug(f"Could not determine vendor for MAC {phone.mac_address}: {e}")
            entry['vendor'] = None
    return entry


def resolve_config(args: argparse.Namespace, settings) -> DiscoveryConfig:
    """Settings file values, overridden by whatever was given on the command line."""
    overrides = {}
    if args.timeout is not None:
        overrides['timeout'] = args.timeout
    if args.proxy is not None:
        overrides['proxy'] = args.proxy
    if args.http_timeout is not None:
        overrides['http_timeout'] = args.http_timeout
    return replace(DiscoveryConfig.from_settings(settings), **overrides)


def run_discovery(args: argparse.Namespace, settings=config) -> int:
    """Main function to perform the phone discovery."""
    logger.info("Starting Cisco IP phone discovery")

    try:
        discovery_config = resolve_config(args, settings)
        backend = get_capture_backend(settings.get("general") or {})
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR

    mac_lookup = MacLookup() if args.vendor else None
    session = DiscoverySession(backend, config=discovery_config)

    phones: List[Dict] = []
    try:
        for result in session.probe_devices():
            logger.debug(f"{result.device}: {result.outcome.value}")
            if result.outcome is ProbeOutcome.FOUND:
                entry = phone_entry(result.phone, mac_lookup)
                phones.append(entry)
                print(result.phone)
    except CaptureSubsystemUnavailable as e:
        logger.critical(f"Packet capture is not available: {e}")
        return EXIT_CAPTURE_UNAVAILABLE

    logger.info(f"Discovery finished: {len(phones)} phone(s) found.")

    output_file = args.output or (settings.get("general") or {}).get("output_file")
    if output_file:
        if save_phone_data(phones, Path(output_file)):
            logger.info(f"Phone list saved to {output_file}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Discover Cisco IP phones on the local segment via LLDP")
    parser.add_argument("--timeout", type=int, help="Seconds to wait for an LLDP frame on each device")
    parser.add_argument("--proxy", help="Forward proxy URL for the phone web service query")
    parser.add_argument("--http-timeout", type=float, help="Seconds to wait for the phone web service")
    parser.add_argument("--output", help="Write the phones found to this JSON file")
    parser.add_argument("--vendor", action="store_true", help="Add the MAC vendor to each phone")
    parser.add_argument("--update-mac-db", action="store_true", help="Force update of the MAC vendor database")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    if args.update_mac_db:
        # Update the database if requested.
        MacLookup().update_vendors()

    return run_discovery(args)


if __name__ == "__main__":
    sys.exit(main())
