"""
REST client, response validation and data builders for API tests.
"""
import logging
import random
import string
from typing import Any, Dict, List, Optional

import requests
from faker import Faker

from ..core.constants import DEFAULT_API_BASE_URL
from ..core.exceptions import RateLimitedError, ValidationError

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = 429


class ApiClient:
    """
    Thin wrapper around a requests Session bound to one base URL.

    Every request and response is logged. Responses are returned as-is;
    callers decide which status codes are errors.
    """

    def __init__(self, base_url: str = DEFAULT_API_BASE_URL, timeout: float = 30,
                 headers: Optional[Dict[str, str]] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if headers:
            self.session.headers.update(headers)

    def _url(self, path: str) -> str:
        if path.startswith(('http://', 'https://')):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = self._url(path)
        kwargs.setdefault('timeout', self.timeout)
        logger.info(f"[API Request] {method.upper()} {url}")
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"[API Request Error] {method.upper()} {url}: {e}")
            raise
        logger.info(f"[API Response] {response.status_code} {url}")
        return response

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> requests.Response:
        return self.request('GET', path, params=params, **kwargs)

    def post(self, path: str, data: Any = None, **kwargs) -> requests.Response:
        return self.request('POST', path, json=data, **kwargs)

    def put(self, path: str, data: Any = None, **kwargs) -> requests.Response:
        return self.request('PUT', path, json=data, **kwargs)

    def patch(self, path: str, data: Any = None, **kwargs) -> requests.Response:
        return self.request('PATCH', path, json=data, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        return self.request('DELETE', path, **kwargs)

    def set_auth_token(self, token: str) -> None:
        """Send a Bearer token with every request"""
        self.session.headers['Authorization'] = f"Bearer {token}"

    def clear_auth_token(self) -> None:
        self.session.headers.pop('Authorization', None)

    def set_header(self, key: str, value: str) -> None:
        self.session.headers[key] = value

    def close(self) -> None:
        self.session.close()

    @staticmethod
    def check_rate_limit(response: requests.Response) -> requests.Response:
        """Raise RateLimitedError when the API answered 429"""
        if response.status_code == TOO_MANY_REQUESTS:
            raise RateLimitedError(f"API rate limit reached: {response.url}")
        return response


# JSON type names accepted by ApiValidator.validate_schema
_SCHEMA_TYPES = {
    'number': (int, float),
    'string': (str,),
    'boolean': (bool,),
    'object': (dict,),
    'array': (list,),
}


class ApiValidator:
    """Response validation utilities. Each check raises ValidationError on mismatch."""

    @staticmethod
    def validate_status(response: requests.Response, expected_status: int) -> None:
        if response.status_code != expected_status:
            raise ValidationError(f"Expected status {expected_status}, but got {response.status_code}")

    @staticmethod
    def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> None:
        missing = [name for name in required_fields if name not in data]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    @staticmethod
    def validate_schema(data: Dict[str, Any], schema: Dict[str, str]) -> None:
        """
        Check that every field of schema is present with the given JSON type.

        Args:
            data: Decoded JSON object
            schema: Field name to type name (number, string, boolean, object, array)
        """
        for key, expected_type in schema.items():
            if key not in data:
                raise ValidationError(f"Missing field: {key}")
            if expected_type not in _SCHEMA_TYPES:
                raise ValueError(f"Unknown schema type: {expected_type}")
            value = data[key]
            python_types = _SCHEMA_TYPES[expected_type]
            # bool is an int subclass but not a JSON number
            matches = isinstance(value, python_types) and not (
                expected_type == 'number' and isinstance(value, bool)
            )
            if not matches:
                raise ValidationError(
                    f"Field {key} has type {type(value).__name__}, expected {expected_type}"
                )

    @staticmethod
    def validate_array_response(data: Any, min_length: int = 0) -> None:
        if not isinstance(data, list):
            raise ValidationError("Response is not an array")
        if len(data) < min_length:
            raise ValidationError(f"Array length {len(data)} is less than minimum {min_length}")


class ApiDataBuilder:
    """Test data for API requests"""

    def __init__(self, seed: Optional[int] = None):
        self.faker = Faker()
        if seed is not None:
            self.faker.seed_instance(seed)

    def build_user(self, **overrides) -> Dict[str, str]:
        user = {
            'name': self.faker.name(),
            'job': self.faker.job(),
            'email': self.faker.email(),
        }
        user.update(overrides)
        return user

    def build_credentials(self, **overrides) -> Dict[str, str]:
        credentials = {
            'email': self.faker.email(),
            'password': self.faker.password(length=12),
        }
        credentials.update(overrides)
        return credentials

    @staticmethod
    def random_string(length: int = 10) -> str:
        return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))

    def random_email(self) -> str:
        return f"test_{self.random_string()}@{self.faker.free_email_domain()}"
