import json

import pytest

from stepwright.core.exceptions import DataLoadError
from stepwright.data.providers import CommonDataProvider, SecretsDataProvider, UserRole


class TestSecretsDataProvider:
    """Test secrets loading"""

    def test_loads_every_role(self, env_config):
        provider = SecretsDataProvider(env_config, environ={})
        secrets = provider.secrets_data

        assert secrets.admin.email == "admin@example.com"
        assert secrets.admin_institution.password == "inst-pass"
        assert secrets.common_password == "shared-pass"
        assert secrets.login_for(UserRole.REVIEWER).email == "reviewer@example.com"
        assert provider.get("user.email") == "user@example.com"

    def test_missing_role(self, env_config, data_dir):
        (data_dir / "secrets.json").write_text(json.dumps({"commonPassword": "x"}))

        with pytest.raises(DataLoadError, match="'admin' must contain"):
            SecretsDataProvider(env_config, environ={})

    def test_missing_common_password(self, env_config, data_dir):
        (data_dir / "secrets.json").write_text(json.dumps({"admin": {}}))

        with pytest.raises(DataLoadError, match="commonPassword"):
            SecretsDataProvider(env_config, environ={})


class TestCommonDataProvider:
    """Test common data loading"""

    def test_get_by_dotted_key(self, env_config):
        provider = CommonDataProvider(env_config, environ={})

        assert provider.get("todo.first") == "Buy milk"
        assert provider.get("todo.unknown") is None

    def test_rejects_non_object(self, env_config, data_dir):
        (data_dir / "common.json").write_text("[1, 2, 3]")

        with pytest.raises(DataLoadError, match="JSON object"):
            CommonDataProvider(env_config, environ={})
