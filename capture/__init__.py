# capture/__init__.py
from .base import CaptureBackend, CaptureDevice, LINKTYPE_ETHERNET
from .service import CaptureServiceControl, NullServiceControl
from .scapy_backend import ScapyCaptureBackend, ScapyCaptureDevice  # Import all concrete implementations


def get_capture_backend(config) -> CaptureBackend:
    """Capture backend factory: returns an instance of the configured backend."""

    backend_type = config.get("backend", "scapy") if config else "scapy"

    if backend_type == "scapy":
        return ScapyCaptureBackend()
    # Add other capture backends here
    else:
        raise ValueError(f"Unsupported capture backend: {backend_type}")
