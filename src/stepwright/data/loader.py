"""
Test data loading.

Named data sets are declared in DATA_PATHS. Each can be overridden by an
``E2E_DATA_<NAME>`` environment variable holding base64-encoded JSON, which
is how CI injects secrets without a checked-in file.
"""
import base64
import binascii
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from ..core.constants import DATA_DIR, DATA_PATHS, DATA_PREFIX
from ..core.exceptions import DataLoadError, TestDataNameUnknownError

logger = logging.getLogger(__name__)

_MISSING = object()


def parse_file_to_json(file_path: Union[str, Path]) -> Any:
    """Read and parse a JSON file"""
    file_path = Path(file_path)
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise DataLoadError(f"Test data file not found: {file_path}") from e
    except json.JSONDecodeError as e:
        raise DataLoadError(f"Test data file is not valid JSON: {file_path} ({e})") from e


def load_data(
        name: str,
        data_dir: Union[str, Path] = DATA_DIR,
        environ: Optional[Mapping[str, str]] = None
) -> Any:
    """
    Load data with specified name.

    If the environment variable corresponding to the data name is set and not
    empty, the data is read from it (JSON, encoded by base64). Otherwise the
    data is read from the file declared in DATA_PATHS.

    Args:
        name: Name of data defined in DATA_PATHS
        data_dir: Directory the DATA_PATHS entries are relative to
        environ: Environment mapping, defaults to os.environ

    Returns:
        Parsed JSON content
    """
    if name not in DATA_PATHS:
        raise TestDataNameUnknownError(name)

    environ = os.environ if environ is None else environ
    data_env_key = DATA_PREFIX + name

    # wrapped base64 (e.g. `base64` output split into 76-column lines) is accepted
    data_content = "".join((environ.get(data_env_key) or "").split())
    if data_content:
        logger.debug(f"Loading test data '{name}' from {data_env_key}")
        try:
            decoded = base64.b64decode(data_content, validate=True).decode('utf-8')
            return json.loads(decoded)
        except (binascii.Error, UnicodeDecodeError) as e:
            raise DataLoadError(f"{data_env_key} is not valid base64: {e}") from e
        except json.JSONDecodeError as e:
            raise DataLoadError(f"{data_env_key} does not contain valid JSON: {e}") from e

    data_full_path = Path(data_dir) / DATA_PATHS[name]
    logger.debug(f"Loading test data '{name}' from {data_full_path}")
    return parse_file_to_json(data_full_path)


def get_nested_value(obj: Any, key: str, default: Any = None) -> Any:
    """
    Retrieve a nested value by dot-separated path.

    List elements can be addressed by position, e.g. ``users.0.email``.
    """
    current = obj
    for part in key.split('.'):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.lstrip('-').isdigit():
            index = int(part)
            if -len(current) <= index < len(current):
                current = current[index]
            else:
                return default
        else:
            return default
    return current


def get_data_by_key(data: Mapping[str, Any], key: str) -> Any:
    """Get test data by dotted key path; None when the path does not exist"""
    return get_nested_value(data, key)


def extract_keys(obj: Any, keys: List[str]) -> Dict[str, Any]:
    """Extract the given dotted keys from obj, omitting those not present"""
    extracted = {}
    for key in keys:
        value = get_nested_value(obj, key, _MISSING)
        if value is not _MISSING:
            extracted[key] = value
    return extracted
