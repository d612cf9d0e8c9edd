import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from ..core.config import EnvConfig
from ..core.exceptions import DataLoadError
from .loader import load_data, get_data_by_key

logger = logging.getLogger(__name__)


class UserRole(Enum):
    """User roles defined in secrets.json"""
    ADMIN = "admin"
    ADMIN_INSTITUTION = "adminInstitution"
    REVIEWER = "reviewer"
    USER = "user"


@dataclass(frozen=True)
class LoginInfo:
    email: str
    password: str

    @classmethod
    def from_dict(cls, role: str, data: Any) -> "LoginInfo":
        if not isinstance(data, Mapping) or 'email' not in data or 'password' not in data:
            raise DataLoadError(f"Secrets entry '{role}' must contain 'email' and 'password'")
        return cls(email=str(data['email']), password=str(data['password']))


@dataclass(frozen=True)
class SecretsData:
    """Credentials for every user role, plus the shared password"""
    admin: LoginInfo
    admin_institution: LoginInfo
    reviewer: LoginInfo
    user: LoginInfo
    common_password: str

    @classmethod
    def from_dict(cls, data: Any) -> "SecretsData":
        if not isinstance(data, Mapping):
            raise DataLoadError("Secrets data must be a JSON object")
        if 'commonPassword' not in data:
            raise DataLoadError("Secrets data is missing 'commonPassword'")
        logins = {
            role: LoginInfo.from_dict(role.value, data.get(role.value))
            for role in UserRole
        }
        return cls(
            admin=logins[UserRole.ADMIN],
            admin_institution=logins[UserRole.ADMIN_INSTITUTION],
            reviewer=logins[UserRole.REVIEWER],
            user=logins[UserRole.USER],
            common_password=str(data['commonPassword']),
        )

    def login_for(self, role: UserRole) -> LoginInfo:
        return {
            UserRole.ADMIN: self.admin,
            UserRole.ADMIN_INSTITUTION: self.admin_institution,
            UserRole.REVIEWER: self.reviewer,
            UserRole.USER: self.user,
        }[role]


class SecretsDataProvider:
    """Secrets data, loaded once from SECRETS (file or E2E_DATA_SECRETS)"""

    def __init__(self, config: Optional[EnvConfig] = None, environ: Optional[Mapping[str, str]] = None):
        config = config or EnvConfig()
        self.raw: Dict[str, Any] = load_data("SECRETS", config.data_dir, environ)
        self.secrets_data = SecretsData.from_dict(self.raw)
        logger.debug("Secrets data loaded")

    def get(self, key: str) -> Any:
        return get_data_by_key(self.raw, key)


class CommonDataProvider:
    """
    Variables shared between steps.

    Loaded from COMMON (file or E2E_DATA_COMMON). The record is open: steps
    address values by dotted key, e.g. ``api.users``.
    """

    def __init__(self, config: Optional[EnvConfig] = None, environ: Optional[Mapping[str, str]] = None):
        config = config or EnvConfig()
        data = load_data("COMMON", config.data_dir, environ)
        if not isinstance(data, dict):
            raise DataLoadError("Common data must be a JSON object")
        self.common_data: Dict[str, Any] = data

    def get(self, key: str) -> Any:
        return get_data_by_key(self.common_data, key)
