"""Tests for building the Azure client handle."""

from unittest.mock import patch

from spring_apps_provisioner.config import AzureConfig
from spring_apps_provisioner.provisioning.clients import AzureClients, build_clients, build_credential

MODULE = "spring_apps_provisioner.provisioning.clients"


class TestBuildCredential:
    @patch(f"{MODULE}.DefaultAzureCredential")
    def test_default_without_tenant(self, mock_default):
        build_credential(AzureConfig(subscription_id="s"))
        mock_default.assert_called_once_with()

    @patch(f"{MODULE}.DefaultAzureCredential")
    def test_default_with_tenant(self, mock_default):
        build_credential(AzureConfig(subscription_id="s", tenant_id="t1"))
        mock_default.assert_called_once_with(additionally_allowed_tenants=["t1"])

    @patch(f"{MODULE}.AzureCliCredential")
    def test_cli_credential(self, mock_cli):
        build_credential(AzureConfig(subscription_id="s", tenant_id="t1", credential_type="cli"))
        mock_cli.assert_called_once_with(tenant_id="t1")


class TestBuildClients:
    @patch(f"{MODULE}.AppPlatformManagementClient")
    @patch(f"{MODULE}.ResourceManagementClient")
    @patch(f"{MODULE}.DefaultAzureCredential")
    def test_shares_one_credential(self, mock_default, mock_resources, mock_spring):
        clients = build_clients(AzureConfig(subscription_id="sub-123", http_logging=False))

        assert isinstance(clients, AzureClients)
        assert clients.subscription_id == "sub-123"
        credential = mock_default.return_value
        mock_resources.assert_called_once_with(credential, "sub-123", logging_enable=False)
        mock_spring.assert_called_once_with(credential, "sub-123", logging_enable=False)
        assert clients.resources is mock_resources.return_value
        assert clients.spring is mock_spring.return_value

    @patch(f"{MODULE}.AppPlatformManagementClient")
    @patch(f"{MODULE}.ResourceManagementClient")
    @patch(f"{MODULE}.DefaultAzureCredential")
    def test_network_trace_off_by_default(self, mock_default, mock_resources, mock_spring):
        build_clients(AzureConfig(subscription_id="sub-123"))

        assert mock_resources.call_args.kwargs["logging_enable"] is False
        assert mock_spring.call_args.kwargs["logging_enable"] is False
