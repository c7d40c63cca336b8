# scan.py
from capture import get_capture_backend  # Import the factory
from scanner import DEFAULT_IGNORED_DESCRIPTIONS
from utils import description_matches
from dynaconf import Dynaconf

config = Dynaconf(
    settings_files=['config/settings.toml'],
    envvar_prefix="PHONE_DISCOVERY",
)

def main():
    """Simple script to list the capture devices a discovery would probe."""

    general = config.get("general") or {}
    ignored = general.get("ignore_descriptions", DEFAULT_IGNORED_DESCRIPTIONS)
    backend = get_capture_backend(general)  # Use the factory

    for device in backend.list_devices():
        status = "skip (virtual adapter)" if description_matches(device.description, ignored) else "probe"
        print(f"{device.name:<24} {status:<24} {device.description}")

if __name__ == "__main__":
    main()
