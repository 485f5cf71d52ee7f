"""
Loading of security alert records.
"""
import json
import os
from typing import List

from gitcontrol.errors import InputError
from gitcontrol.models import Alert


def load_alerts(alerts_file: str) -> List[Alert]:
    """
    Read a JSON array of {rule, file, message} records.

    Order is preserved and duplicates are kept.

    Raises:
        InputError: If the file is missing, unreadable, or not a JSON array
    """
    if not os.path.isfile(alerts_file):
        raise InputError(f"Alerts file not found: {alerts_file}")

    try:
        with open(alerts_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InputError(f"Invalid JSON in alerts file {alerts_file}: {e}")
    except UnicodeDecodeError as e:
        raise InputError(f"Alerts file is not valid UTF-8 {alerts_file}: {e}")
    except OSError as e:
        raise InputError(f"Failed to read alerts file {alerts_file}: {e}")

    if not isinstance(data, list):
        raise InputError(f"Alerts file must contain a JSON array: {alerts_file}")

    return [Alert.from_dict(item) for item in data]
