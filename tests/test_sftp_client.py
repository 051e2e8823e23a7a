"""Tests for the paramiko based SFTP client (SSHClient is mocked)."""

import io
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import paramiko
import pytest

from ftptail.clients import SftpClient
from ftptail.config import TransportConfig
from ftptail.errors import RemoteConnectionError, RemoteNotFoundError, TransferError


def _config(**overrides):
    values = dict(protocol="sftp", host="logs.example.com", user="tail", password="secret")
    values.update(overrides)
    return TransportConfig(**values)


@pytest.fixture
def fake_ssh():
    ssh = MagicMock(name="SSHClient")
    ssh.transport = ssh.get_transport.return_value
    ssh.transport.is_active.return_value = True
    ssh.sftp = ssh.open_sftp.return_value
    with patch("ftptail.clients.sftp.paramiko.SSHClient", return_value=ssh):
        yield ssh


@pytest.fixture
def connected(fake_ssh):
    client = SftpClient()
    client.connect(_config())
    return client


class TestConnect:
    def test_password_login(self, fake_ssh):
        client = SftpClient()
        client.connect(_config(timeout=5.0))

        kwargs = fake_ssh.connect.call_args.kwargs
        assert kwargs["hostname"] == "logs.example.com"
        assert kwargs["port"] == 22
        assert kwargs["username"] == "tail"
        assert kwargs["password"] == "secret"
        assert kwargs["timeout"] == 5.0
        assert kwargs["look_for_keys"] is False
        assert kwargs["allow_agent"] is False
        fake_ssh.sftp.get_channel.return_value.settimeout.assert_called_once_with(5.0)
        assert not client.is_closed()

    def test_agent_and_default_keys_without_credentials(self, fake_ssh):
        SftpClient().connect(_config(password=None))
        kwargs = fake_ssh.connect.call_args.kwargs
        assert kwargs["look_for_keys"] is True
        assert kwargs["allow_agent"] is True

    def test_private_key(self, fake_ssh):
        SftpClient().connect(_config(password=None, private_key_path="/home/tail/.ssh/id_ed25519"))
        kwargs = fake_ssh.connect.call_args.kwargs
        assert kwargs["key_filename"] == "/home/tail/.ssh/id_ed25519"
        assert kwargs["look_for_keys"] is False

    def test_host_key_policy(self, fake_ssh):
        SftpClient().connect(_config())
        policy = fake_ssh.set_missing_host_key_policy.call_args[0][0]
        assert isinstance(policy, paramiko.AutoAddPolicy)

        SftpClient().connect(_config(strict_host_keys=True))
        policy = fake_ssh.set_missing_host_key_policy.call_args[0][0]
        assert isinstance(policy, paramiko.RejectPolicy)

    def test_authentication_failure(self, fake_ssh):
        fake_ssh.connect.side_effect = paramiko.AuthenticationException("Authentication failed.")
        client = SftpClient()
        with pytest.raises(RemoteConnectionError, match="authentication"):
            client.connect(_config())
        fake_ssh.close.assert_called_once()
        assert client.is_closed()

    def test_network_failure(self, fake_ssh):
        fake_ssh.connect.side_effect = OSError("No route to host")
        with pytest.raises(RemoteConnectionError):
            SftpClient().connect(_config())


class TestSize:
    def test_size(self, connected, fake_ssh):
        fake_ssh.sftp.stat.return_value = SimpleNamespace(st_size=50_000)
        assert connected.size("/var/log/app.log") == 50_000
        fake_ssh.sftp.stat.assert_called_once_with("/var/log/app.log")

    def test_missing_file(self, connected, fake_ssh):
        fake_ssh.sftp.stat.side_effect = FileNotFoundError(2, "No such file")
        with pytest.raises(RemoteNotFoundError):
            connected.size("/var/log/app.log")
        assert not connected.is_closed()

    def test_error_on_live_session(self, connected, fake_ssh):
        fake_ssh.sftp.stat.side_effect = PermissionError(13, "Permission denied")
        with pytest.raises(TransferError):
            connected.size("/var/log/app.log")

    def test_error_after_transport_died(self, connected, fake_ssh):
        fake_ssh.transport.is_active.return_value = False
        fake_ssh.sftp.stat.side_effect = EOFError()
        # is_closed() is already true, so the call is refused up front.
        with pytest.raises(RemoteConnectionError):
            connected.size("/var/log/app.log")

    def test_transport_dies_during_stat(self, connected, fake_ssh):
        def die(path):
            fake_ssh.transport.is_active.return_value = False
            raise paramiko.SSHException("Server connection dropped")

        fake_ssh.sftp.stat.side_effect = die
        with pytest.raises(RemoteConnectionError):
            connected.size("/var/log/app.log")
        assert connected.is_closed()

    def test_not_connected(self):
        with pytest.raises(RemoteConnectionError):
            SftpClient().size("/var/log/app.log")


class TestDownload:
    def _remote(self, fake_ssh, content):
        remote = io.BytesIO(content)
        fake_ssh.sftp.open.return_value.__enter__.return_value = remote
        return remote

    def test_download_from_offset(self, connected, fake_ssh):
        self._remote(fake_ssh, b"old line\r\nnew line\r\n")
        sink = io.BytesIO()
        connected.download_range(sink, "/var/log/app.log", 10)

        fake_ssh.sftp.open.assert_called_once_with("/var/log/app.log", "rb")
        assert sink.getvalue() == b"new line\r\n"

    def test_download_larger_than_one_chunk(self, connected, fake_ssh):
        content = b"x" * (3 * 32 * 1024 + 17)
        self._remote(fake_ssh, content)
        sink = io.BytesIO()
        connected.download_range(sink, "/var/log/app.log", 0)
        assert sink.getvalue() == content

    def test_missing_file(self, connected, fake_ssh):
        fake_ssh.sftp.open.side_effect = FileNotFoundError(2, "No such file")
        with pytest.raises(RemoteNotFoundError):
            connected.download_range(io.BytesIO(), "/var/log/app.log", 0)

    def test_interrupted(self, connected, fake_ssh):
        fake_ssh.sftp.open.side_effect = paramiko.SSHException("Channel closed")
        with pytest.raises(TransferError):
            connected.download_range(io.BytesIO(), "/var/log/app.log", 0)


class TestClose:
    def test_close(self, connected, fake_ssh):
        connected.close()
        fake_ssh.sftp.close.assert_called_once()
        fake_ssh.close.assert_called_once()
        assert connected.is_closed()

    def test_inactive_transport_reports_closed(self, connected, fake_ssh):
        fake_ssh.transport.is_active.return_value = False
        assert connected.is_closed()

    def test_missing_transport_reports_closed(self, connected, fake_ssh):
        fake_ssh.get_transport.return_value = None
        assert connected.is_closed()
