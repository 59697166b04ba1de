"""Tests for the credential resolver and key-format checks."""

import logging

import pytest

from app.gateway.credentials import check_key_format, mask_key, resolve_credential
from app.gateway.types import CredentialSource, ProviderCredential


class TestResolveCredential:
    def test_unset_when_nothing_configured(self, make_settings):
        cred = resolve_credential(make_settings())
        assert cred.source == CredentialSource.UNSET
        assert cred.raw_key == ""
        assert not cred.is_set

    @pytest.mark.parametrize("blank", ["", "   ", "\t\n"])
    def test_blank_values_are_absent(self, make_settings, blank):
        cred = resolve_credential(make_settings(moonshot_api_key=blank, openai_api_key=blank))
        assert cred.source == CredentialSource.UNSET
        assert cred.raw_key == ""

    def test_moonshot_variable_wins(self, make_settings):
        cred = resolve_credential(make_settings(moonshot_api_key="ms-key", openai_api_key="sk-openai"))
        assert cred.source == CredentialSource.PRIMARY_ENV_VAR
        assert cred.raw_key == "ms-key"

    def test_falls_back_to_openai_variable(self, make_settings):
        cred = resolve_credential(make_settings(moonshot_api_key="  ", openai_api_key="sk-openai"))
        assert cred.source == CredentialSource.FALLBACK_ENV_VAR
        assert cred.raw_key == "sk-openai"

    def test_key_is_stripped(self, make_settings):
        cred = resolve_credential(make_settings(openai_api_key="  sk-openai\n"))
        assert cred.raw_key == "sk-openai"

    def test_logs_source_not_value(self, make_settings, caplog):
        with caplog.at_level(logging.INFO, logger="app.gateway.credentials"):
            resolve_credential(make_settings(openai_api_key="sk-very-secret-value"))
        assert "OPENAI_API_KEY" in caplog.text
        assert "sk-very-secret-value" not in caplog.text

    def test_credential_is_immutable(self, make_settings):
        cred = resolve_credential(make_settings(openai_api_key="sk-openai"))
        with pytest.raises(AttributeError):
            cred.raw_key = "other"  # type: ignore[misc]


class TestMaskKey:
    def test_long_key_shows_ends(self):
        assert mask_key("sk-abcdefghijklmnop") == "sk-a...mnop"

    def test_short_key_fully_masked(self):
        assert mask_key("sk-short") == "********"


class TestCheckKeyFormat:
    def test_empty_is_invalid(self):
        assert check_key_format("") is False

    def test_long_key_is_valid_regardless_of_prefix(self):
        assert check_key_format("x" * 41) is True

    @pytest.mark.parametrize(
        "key",
        ["sk-org-abc", "sk-proj-abc", "sk-ant-abc", "sk-abc123"],
    )
    def test_sk_family_is_valid(self, key):
        assert check_key_format(key) is True

    def test_unknown_format_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="app.gateway.credentials"):
            assert check_key_format("not-a-key") is False
        assert "format not recognised" in caplog.text

    def test_is_set_requires_key_and_source(self):
        assert not ProviderCredential(raw_key="", source=CredentialSource.FALLBACK_ENV_VAR).is_set
        assert ProviderCredential(raw_key="k", source=CredentialSource.FALLBACK_ENV_VAR).is_set
