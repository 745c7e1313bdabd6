"""
Unit tests for the command-line interface.
"""

import pytest

from shipnet import config
from shipnet import __main__ as cli
from shipnet.__main__ import main


class TestFamilyCommand:
    @pytest.mark.parametrize("address,expected", [
        ("127.0.0.1", "V4"),
        ("::1", "V6"),
        ("example.com", "UNSPEC"),
    ])
    def test_family(self, capsys, address, expected):
        assert main(["family", address]) == 0
        assert capsys.readouterr().out.strip() == expected


class TestResolveCommand:
    def test_numeric(self, capsys):
        assert main(["resolve", "127.0.0.1"]) == 0
        assert capsys.readouterr().out.strip() == "127.0.0.1"

    def test_unknown_host(self, capsys):
        assert main(["resolve", "no-such-host.invalid"]) == 1
        assert "could not resolve" in capsys.readouterr().err


class TestSendCommand:
    def test_send(self, listener):
        assert main(["send", "127.0.0.1", str(listener.port), "hello"]) == 0
        assert listener.wait() == b"hello"

    def test_send_with_resolve(self, make_listener):
        from shipnet import resolve_first

        srv = make_listener(resolve_first("localhost"))
        assert main(["send", "--resolve", "localhost", str(srv.port), "hi"]) == 0
        assert srv.wait() == b"hi"

    def test_send_strips_brackets(self, listener6):
        assert main(["send", "[::1]", str(listener6.port), "v6"]) == 0
        assert listener6.wait() == b"v6"

    @pytest.mark.parametrize("address", ["[::1", "::1]"])
    def test_unbalanced_brackets_are_kept(self, monkeypatch, address):
        seen = []
        monkeypatch.setattr(
            cli, "one_shot_send", lambda addr, port, payload: seen.append(addr) or -1
        )

        assert main(["send", address, "80", "x"]) == 1
        assert seen == [address]

    def test_matching_brackets_are_stripped(self, monkeypatch):
        seen = []
        monkeypatch.setattr(
            cli, "one_shot_send", lambda addr, port, payload: seen.append(addr) or 0
        )

        assert main(["send", "[2001:db8::1]", "80", "x"]) == 0
        assert seen == ["2001:db8::1"]

    def test_send_refused(self, capsys, free_port):
        assert main(["--connect-timeout", "500", "send", "127.0.0.1", str(free_port), "x"]) == 1
        assert "failed" in capsys.readouterr().err

    def test_hostname_without_resolve(self):
        assert main(["send", "localhost", "80", "x"]) == 1


class TestGlobalOptions:
    def test_connect_timeout_is_applied(self):
        main(["--connect-timeout", "750", "family", "::1"])
        assert config.settings.connect_timeout == 750

    def test_environment_defaults(self, monkeypatch):
        monkeypatch.setenv("SHIPNET_IO_TIMEOUT", "1200")
        main(["family", "::1"])
        assert config.settings.io_timeout == 1200

    def test_invalid_timeout(self, capsys):
        assert main(["--connect-timeout", "-1", "family", "::1"]) == 2
        assert "connect_timeout" in capsys.readouterr().err

    def test_invalid_environment(self, monkeypatch):
        monkeypatch.setenv("SHIPNET_CONNECT_TIMEOUT", "soon")
        assert main(["family", "::1"]) == 2

    def test_missing_command(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "shipnet" in capsys.readouterr().out
