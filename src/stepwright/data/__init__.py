from .loader import (
    load_data,
    parse_file_to_json,
    get_data_by_key,
    get_nested_value,
    extract_keys,
)
from .providers import (
    CommonDataProvider,
    SecretsDataProvider,
    SecretsData,
    LoginInfo,
    UserRole,
)

__all__ = [
    'load_data',
    'parse_file_to_json',
    'get_data_by_key',
    'get_nested_value',
    'extract_keys',
    'CommonDataProvider',
    'SecretsDataProvider',
    'SecretsData',
    'LoginInfo',
    'UserRole',
]
