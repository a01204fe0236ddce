"""Tests for the Found/Absent lookup outcome and get-or-create."""

from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import ClientAuthenticationError, HttpResponseError, ResourceNotFoundError

from spring_apps_provisioner.provisioning.lookup import Absent, Found, get_or_create, lookup


class TestLookup:
    def test_found(self):
        fetch = MagicMock(return_value="rg")
        outcome = lookup("rg-1", fetch, "rg-1")
        assert outcome == Found("rg")
        fetch.assert_called_once_with("rg-1")

    def test_forwards_kwargs(self):
        fetch = MagicMock(return_value="svc")
        lookup("svc", fetch, "rg-1", service_name="svc")
        fetch.assert_called_once_with("rg-1", service_name="svc")

    def test_not_found_is_absent(self):
        fetch = MagicMock(side_effect=ResourceNotFoundError(message="not found"))
        assert lookup("rg-1", fetch) == Absent("rg-1")

    def test_other_http_error_propagates(self):
        error = HttpResponseError(message="Quota exceeded")
        fetch = MagicMock(side_effect=error)
        with pytest.raises(HttpResponseError) as exc_info:
            lookup("rg-1", fetch)
        assert exc_info.value is error

    def test_auth_error_propagates(self):
        fetch = MagicMock(side_effect=ClientAuthenticationError(message="denied"))
        with pytest.raises(ClientAuthenticationError):
            lookup("rg-1", fetch)


class TestGetOrCreate:
    def test_found_skips_create(self):
        create = MagicMock()
        resource, created = get_or_create(Found("existing"), create)
        assert resource == "existing"
        assert created is False
        create.assert_not_called()

    def test_absent_creates_once(self):
        create = MagicMock(return_value="new")
        resource, created = get_or_create(Absent("x"), create)
        assert resource == "new"
        assert created is True
        create.assert_called_once_with()
