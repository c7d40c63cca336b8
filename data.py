# data.py
import json
import logging
from typing import Dict, List
from pathlib import Path

logger = logging.getLogger(__name__)

def save_phone_data(data: List[Dict], json_file: Path) -> bool:
    """Saves the phones found by one scan to a JSON file.

    Args:
        data (List[Dict]): A list of phone dictionaries to save.
        json_file (Path): Path to the JSON file.

    Returns:
        bool: True if the file was written.
    """
    try:
        json_file.parent.mkdir(parents=True, exist_ok=True)
        with json_file.open("w", encoding="utf-8") as file:
            json.dump(data, file, indent=4)
        return True
    except OSError as err:
        logger.error("File system error while saving JSON data: %s", err)
    except (TypeError, ValueError) as err:
        logger.error("Phone data could not be serialized: %s", err)
    return False
