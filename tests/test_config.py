"""Tests for watch configuration."""

import pytest

from ftptail.config import TransportConfig, WatchConfig, config_from_dict, load_config


class TestTransportConfig:
    def test_default_ports(self):
        assert TransportConfig(protocol="ftp").port == 21
        assert TransportConfig(protocol="sftp").port == 22

    def test_explicit_port_kept(self):
        assert TransportConfig(protocol="sftp", port=2222).address == "localhost:2222"

    def test_protocol_case_insensitive(self):
        assert TransportConfig(protocol="SFTP").protocol == "sftp"

    def test_unknown_protocol(self):
        with pytest.raises(ValueError):
            TransportConfig(protocol="scp")


class TestWatchConfig:
    def test_defaults(self):
        config = WatchConfig(remote_path="/a.log")
        assert config.poll_interval_ms == 0
        assert config.tail_window_bytes == 10_000
        assert config.text_encoding == "utf-8"
        assert config.transport.protocol == "ftp"

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            WatchConfig(remote_path="/a.log", poll_interval_ms=-1)

    def test_negative_window_rejected(self):
        with pytest.raises(ValueError):
            WatchConfig(remote_path="/a.log", tail_window_bytes=-5)

    def test_interval_seconds(self):
        assert WatchConfig(poll_interval_ms=1500).poll_interval_s == 1.5


class TestLoadConfig:
    def test_load_yaml(self, tmp_path):
        path = tmp_path / "watch.yaml"
        path.write_text(
            "remote_path: /var/log/app.log\n"
            "poll_interval_ms: 1000\n"
            "tail_window_bytes: 2048\n"
            "transport:\n"
            "  protocol: sftp\n"
            "  host: logs.example.com\n"
            "  user: tail\n"
            "  timeout: 10\n"
        )
        config = load_config(path)
        assert config.remote_path == "/var/log/app.log"
        assert config.poll_interval_ms == 1000
        assert config.tail_window_bytes == 2048
        assert config.transport.protocol == "sftp"
        assert config.transport.port == 22
        assert config.transport.timeout == 10

    def test_password_from_environment(self, monkeypatch):
        monkeypatch.setenv("FTPTAIL_PASSWORD", "from-env")
        config = config_from_dict({"remote_path": "/a.log", "transport": {"host": "h"}})
        assert config.transport.password == "from-env"

    def test_file_password_wins_over_environment(self, monkeypatch):
        monkeypatch.setenv("FTPTAIL_PASSWORD", "from-env")
        config = config_from_dict({"transport": {"password": "from-file"}})
        assert config.transport.password == "from-file"

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValueError, match="fetch_interval"):
            config_from_dict({"fetch_interval": 5})
        with pytest.raises(ValueError, match="hostname"):
            config_from_dict({"transport": {"hostname": "h"}})

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("remote_path: [unclosed\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path).remote_path is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")
