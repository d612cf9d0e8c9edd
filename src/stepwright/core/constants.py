from enum import Enum, IntEnum


class ENV_KEYS(str, Enum):
    """Environment variable names read by EnvConfig"""
    BASE_URL = "E2E_BASE_URL"
    PORTAL_URL = "E2E_PORTAL_URL"
    SUBDOMAIN = "E2E_SUBDOMAIN"
    HEADLESS_MODE = "HEADLESS_MODE"
    LOCAL = "E2E_LOCAL"
    LOCAL_URL = "E2E_LOCAL_URL"
    API_BASE_URL = "API_BASE_URL"
    DATA_DIR = "E2E_DATA_DIR"


class TIMEOUT(IntEnum):
    """Timeout values in milliseconds"""
    XXXSHORT = 500
    XXSHORT = 1000
    XSHORT = 2000
    SHORT = 5000
    MEDIUM = 10000
    LONG = 30000
    XLONG = 60000


# Test data
DATA_PREFIX = "E2E_DATA_"
DATA_DIR = "./data"

# Data file paths, relative to DATA_DIR
DATA_PATHS = {
    "USER": "auth/user.local.json",
    "SECRETS": "secrets.json",
    "COMMON": "common.json",
}

PAGE_PATH = {
    "TODO": "/todomvc",
    "HOME": "/",
}

API_ENDPOINTS = {
    "USERS": "/users",
    "LOGIN": "/login",
    "REGISTER": "/register",
}

DEFAULT_API_BASE_URL = "https://reqres.in/api"
