"""Tests for the up command."""

from unittest.mock import MagicMock, patch

from duct.cli.main import cli
from duct.models import AttachNetwork, CreateNetwork
from duct.services.exceptions import (
    ConfigurationError,
    DockerServiceError,
    LaunchCancelledError,
    PostCommandError,
)


@patch('duct.cli.helpers.DockerService')
@patch('duct.cli.commands.up.Composer')
class TestUpCommand:
    """Test cases for `duct up`."""

    def test_up_launches_and_waits(self, mock_composer_class, mock_service_class, cli_runner, manifest_file):
        composer = mock_composer_class.return_value
        composer.get_network_id.return_value = "0123456789abcdef"

        result = cli_runner.invoke(cli, ['up', str(manifest_file), '--timeout', '30'])

        assert result.exit_code == 0, result.output
        args, kwargs = mock_composer_class.call_args
        assert args[0].names() == ["web", "client"]
        assert args[1].network == CreateNetwork(name="duct-test-network")
        assert kwargs["docker_service"] is mock_service_class.return_value
        composer.handle_signals.assert_called_once_with(forward=False)
        composer.launch.assert_called_once_with(timeout=30.0)
        composer.handle_signals.return_value.join.assert_called_once_with()
        assert "Launched 2 container(s) on network 0123456789ab" in result.output
        assert "Containers torn down." in result.output

    def test_up_existing_network_flag(self, mock_composer_class, mock_service_class, cli_runner, manifest_file):
        mock_composer_class.return_value.get_network_id.return_value = "abc"

        result = cli_runner.invoke(cli, ['up', str(manifest_file), '--existing-network', 'abc'])

        assert result.exit_code == 0, result.output
        assert mock_composer_class.call_args.args[1].network == AttachNetwork(network_id="abc")

    def test_up_conflicting_flags(self, mock_composer_class, mock_service_class, cli_runner, manifest_file):
        result = cli_runner.invoke(
            cli, ['up', str(manifest_file), '--network', 'a', '--existing-network', 'b']
        )

        assert result.exit_code == 2
        assert "mutually exclusive" in result.output
        mock_composer_class.assert_not_called()

    def test_up_subnet_requires_network(self, mock_composer_class, mock_service_class, cli_runner, manifest_file):
        result = cli_runner.invoke(cli, ['up', str(manifest_file), '--subnet', '10.0.0.0/24'])

        assert result.exit_code == 2
        assert "--subnet requires --network" in result.output

    def test_up_without_network(self, mock_composer_class, mock_service_class, cli_runner, tmp_path):
        path = tmp_path / "duct.yaml"
        path.write_text("containers:\n  - {name: a, image: debian}\n")

        result = cli_runner.invoke(cli, ['up', str(path)])

        assert result.exit_code == 2
        assert "No network configured" in result.output

    def test_up_launch_failure(self, mock_composer_class, mock_service_class, cli_runner, manifest_file):
        composer = mock_composer_class.return_value
        composer.launch.side_effect = PostCommandError("client", ["getent", "hosts", "web"], 2)

        result = cli_runner.invoke(cli, ['up', str(manifest_file)])

        assert result.exit_code == 1
        assert "Launch failed: [client] invalid exit code 2" in result.output
        composer.handle_signals.return_value.join.assert_not_called()

    def test_up_interrupted_launch(self, mock_composer_class, mock_service_class, cli_runner, manifest_file):
        mock_composer_class.return_value.launch.side_effect = LaunchCancelledError("launch cancelled")

        result = cli_runner.invoke(cli, ['up', str(manifest_file)])

        assert result.exit_code == 1
        assert "Launch failed: launch cancelled" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_up_invalid_composition(self, mock_composer_class, mock_service_class, cli_runner, manifest_file):
        mock_composer_class.side_effect = ConfigurationError("address is outside subnet")

        result = cli_runner.invoke(cli, ['up', str(manifest_file)])

        assert result.exit_code == 1
        assert "address is outside subnet" in result.output

    def test_up_docker_unavailable(self, mock_composer_class, mock_service_class, cli_runner, manifest_file):
        mock_service_class.side_effect = DockerServiceError("Docker daemon is not running.")

        result = cli_runner.invoke(cli, ['up', str(manifest_file)])

        assert result.exit_code == 1
        assert "Docker daemon is not running" in result.output
        mock_composer_class.assert_not_called()

    @patch('duct.cli.commands.up.Builder')
    def test_up_builds_first(self, mock_builder_class, mock_composer_class, mock_service_class,
                             cli_runner, tmp_path):
        path = tmp_path / "duct.yaml"
        path.write_text(
            "network: {name: n}\n"
            "builds: {nc: {dockerfile: Dockerfile.nc}}\n"
            "containers: [{name: a, image: nc, local_image: true}]\n"
        )
        mock_composer_class.return_value.get_network_id.return_value = "net"

        result = cli_runner.invoke(cli, ['up', str(path)])
        assert result.exit_code == 0, result.output
        mock_builder_class.return_value.run.assert_called_once_with()

        mock_builder_class.reset_mock()
        result = cli_runner.invoke(cli, ['up', str(path), '--skip-build'])
        assert result.exit_code == 0, result.output
        mock_builder_class.assert_not_called()

    @patch('duct.cli.commands.up.Builder')
    def test_up_build_failure(self, mock_builder_class, mock_composer_class, mock_service_class,
                              cli_runner, tmp_path):
        path = tmp_path / "duct.yaml"
        path.write_text(
            "network: {name: n}\n"
            "builds: {nc: {dockerfile: Dockerfile.nc}}\n"
            "containers: [{name: a, image: nc, local_image: true}]\n"
        )
        mock_builder_class.return_value.run.side_effect = DockerServiceError("Failed to build image 'nc'")

        result = cli_runner.invoke(cli, ['up', str(path)])

        assert result.exit_code == 1
        assert "Build failed" in result.output
        mock_composer_class.assert_not_called()
