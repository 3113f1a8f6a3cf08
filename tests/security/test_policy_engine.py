"""Tests for PolicyEngine decisions."""

from __future__ import annotations

from pathlib import Path

import pytest

from shellpilot.ai.intent import Command
from shellpilot.config.models import CommandLevel, SecurityPolicy
from shellpilot.security.engine import (
    ALWAYS_CONFIRM_REASON,
    SHELL_DISABLED_REASON,
    PolicyEngine,
)


@pytest.fixture
def secret_dir(tmp_path: Path) -> Path:
    """Provide a restricted directory with one file in it."""
    secret = tmp_path / "secret"
    secret.mkdir()
    (secret / "key").write_text("hunter2")
    return secret


class TestDefaultPolicy:
    """Test decisions under the default policy (command_level=dangerous)."""

    def test_plain_command_runs_without_authorization(self) -> None:
        """Test a harmless command is allowed and needs no authorization."""
        result = PolicyEngine().check_command(Command(cmd="ls", args=["-la"]))

        assert result.allowed is True
        assert result.requires_auth is False
        assert result.warning == ""

    def test_dangerous_command_requires_authorization(self) -> None:
        """Test a command on the dangerous list asks for authorization."""
        result = PolicyEngine().check_command(Command(cmd="rm", args=["-rf", "/tmp/x"]))

        assert result.allowed is True
        assert result.requires_auth is True
        assert result.warning == "Dangerous command: rm -rf /tmp/x"

    def test_dangerous_command_matched_by_basename(self) -> None:
        """Test /bin/rm and ./rm are treated like rm but rmfoo is not."""
        engine = PolicyEngine()

        assert engine.check_command(Command(cmd="/bin/rm", args=["x"])).requires_auth
        assert engine.check_command(Command(cmd="./rm", args=["x"])).requires_auth
        assert not engine.check_command(Command(cmd="rmfoo", args=["x"])).requires_auth

    def test_redirect_to_tmp_needs_no_authorization(self) -> None:
        """Test writing into /tmp through a redirect is not flagged."""
        result = PolicyEngine().check_command(
            Command(cmd="echo", args=["hello", ">/tmp/file"])
        )

        assert result.allowed is True
        assert result.requires_auth is False

    @pytest.mark.parametrize("target", [">/etc/passwd", "2>/etc/error", ">>/usr/lib/x"])
    def test_redirect_to_system_path_requires_authorization(self, target: str) -> None:
        """Test redirects into protected system locations are flagged."""
        result = PolicyEngine().check_command(Command(cmd="cat", args=["file", target]))

        assert result.allowed is True
        assert result.requires_auth is True
        assert result.warning == "Dangerous shell operation detected"

    def test_redirect_into_root_requires_authorization(self) -> None:
        """Test a redirect onto the filesystem root itself is flagged."""
        result = PolicyEngine().check_command(Command(cmd="echo", args=["x", ">", "/"]))

        assert result.requires_auth is True
        assert "filesystem root" in result.reason

    def test_findings_are_joined(self) -> None:
        """Test every finding contributes to warning and reason."""
        result = PolicyEngine().check_command(Command(cmd="rm", args=["../x"]))

        assert result.requires_auth is True
        assert result.warning == "Dangerous command: rm ../x; Dangerous shell operation detected"
        assert result.reason == "Command is in the dangerous list; Path traversal detected"


class TestRestrictedPaths:
    """Test restricted paths deny commands outright."""

    @pytest.mark.parametrize("level", list(CommandLevel))
    def test_restricted_path_denied_at_every_level(
        self, secret_dir: Path, level: CommandLevel
    ) -> None:
        """Test command_level never lets a restricted path through."""
        engine = PolicyEngine(
            SecurityPolicy(command_level=level, restricted_paths=[str(secret_dir)])
        )
        path = str(secret_dir / "key")

        result = engine.check_command(Command(cmd="cat", args=[path]))

        assert result.allowed is False
        assert result.requires_auth is False
        assert result.reason == f"Access denied: {path} is restricted"

    def test_restricted_directory_itself_denied(self, secret_dir: Path) -> None:
        """Test the restricted prefix itself matches."""
        engine = PolicyEngine(SecurityPolicy(restricted_paths=[str(secret_dir)]))

        result = engine.check_command(Command(cmd="ls", args=[str(secret_dir)]))

        assert result.allowed is False

    def test_sibling_with_common_prefix_allowed(self, tmp_path: Path) -> None:
        """Test /etc protects /etc/x but not /etcetera."""
        engine = PolicyEngine(SecurityPolicy(restricted_paths=[str(tmp_path / "etc")]))

        result = engine.check_command(Command(cmd="ls", args=[str(tmp_path / "etcetera")]))

        assert result.allowed is True

    def test_symlink_into_restricted_path_denied(self, tmp_path: Path, secret_dir: Path) -> None:
        """Test paths are compared after resolving symlinks."""
        link = tmp_path / "innocent"
        link.symlink_to(secret_dir)
        engine = PolicyEngine(SecurityPolicy(restricted_paths=[str(secret_dir)]))

        result = engine.check_command(Command(cmd="cat", args=[str(link / "key")]))

        assert result.allowed is False

    def test_home_relative_restricted_path(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test ~ is expanded on both the policy and the command side."""
        monkeypatch.setenv("HOME", str(tmp_path))
        engine = PolicyEngine(SecurityPolicy(restricted_paths=["~/.ssh"]))

        result = engine.check_command(Command(cmd="cat", args=["~/.ssh/id_rsa"]))

        assert result.allowed is False
        assert "~/.ssh/id_rsa" in result.reason

    def test_restricted_path_in_option_value_denied(self, secret_dir: Path) -> None:
        """Test --option=/path values are checked."""
        engine = PolicyEngine(SecurityPolicy(restricted_paths=[str(secret_dir)]))

        result = engine.check_command(
            Command(cmd="tar", args=["-c", f"--file={secret_dir}/out.tar", "."])
        )

        assert result.allowed is False

    def test_restricted_path_inside_shell_snippet_denied(self, secret_dir: Path) -> None:
        """Test paths inside an sh -c argument are checked."""
        engine = PolicyEngine(SecurityPolicy(restricted_paths=[str(secret_dir)]))

        result = engine.check_command(
            Command(cmd="sh", args=["-c", f"cat {secret_dir}/key | wc -c"])
        )

        assert result.allowed is False


class TestReadOnlyPaths:
    """Test read-only paths ask for authorization on writes only."""

    def test_write_to_read_only_path_requires_authorization(self, tmp_path: Path) -> None:
        """Test a write command inside a read-only prefix is flagged."""
        shared = tmp_path / "shared"
        engine = PolicyEngine(SecurityPolicy(readonly_paths=[str(shared)]))

        result = engine.check_command(Command(cmd="touch", args=[str(shared / "new")]))

        assert result.allowed is True
        assert result.requires_auth is True
        assert result.warning == f"Write to read-only path: {shared / 'new'}"

    def test_read_from_read_only_path_allowed(self, tmp_path: Path) -> None:
        """Test reading a read-only path needs no authorization."""
        shared = tmp_path / "shared"
        engine = PolicyEngine(SecurityPolicy(readonly_paths=[str(shared)]))

        result = engine.check_command(Command(cmd="cat", args=[str(shared / "notes")]))

        assert result.requires_auth is False


class TestCommandLevels:
    """Test the always and never command levels."""

    def test_always_requires_authorization_for_harmless_command(self) -> None:
        """Test command_level=always flags every command."""
        engine = PolicyEngine(SecurityPolicy(command_level=CommandLevel.ALWAYS))

        result = engine.check_command(Command(cmd="ls"))

        assert result.allowed is True
        assert result.requires_auth is True
        assert result.reason == ALWAYS_CONFIRM_REASON

    def test_never_runs_dangerous_command_without_authorization(self) -> None:
        """Test command_level=never keeps the warning but skips authorization."""
        engine = PolicyEngine(SecurityPolicy(command_level=CommandLevel.NEVER))

        result = engine.check_command(Command(cmd="rm", args=["x"]))

        assert result.allowed is True
        assert result.requires_auth is False
        assert result.warning == "Dangerous command: rm x"


class TestShellDisabled:
    """Test allow_shell=false."""

    def test_every_command_denied(self) -> None:
        """Test no command may run when shell use is disabled."""
        engine = PolicyEngine(SecurityPolicy(allow_shell=False))

        result = engine.check_command(Command(cmd="ls"))

        assert result.allowed is False
        assert result.reason == SHELL_DISABLED_REASON

    def test_restricted_reason_takes_precedence(self, secret_dir: Path) -> None:
        """Test a restricted path is reported before the shell denial."""
        engine = PolicyEngine(
            SecurityPolicy(allow_shell=False, restricted_paths=[str(secret_dir)])
        )

        result = engine.check_command(Command(cmd="cat", args=[str(secret_dir / "key")]))

        assert result.allowed is False
        assert "is restricted" in result.reason

    def test_analyze_shell_command_denied(self) -> None:
        """Test raw text analysis is denied too."""
        engine = PolicyEngine(SecurityPolicy(allow_shell=False))

        assert engine.analyze_shell_command("echo hi").allowed is False


class TestSingleChecks:
    """Test check_path_access and analyze_shell_command."""

    def test_check_path_access(self, tmp_path: Path, secret_dir: Path) -> None:
        """Test restricted, read-only and unrelated paths."""
        shared = tmp_path / "shared"
        engine = PolicyEngine(
            SecurityPolicy(restricted_paths=[str(secret_dir)], readonly_paths=[str(shared)])
        )

        assert engine.check_path_access(str(secret_dir / "key")).allowed is False
        assert engine.check_path_access(str(shared / "a"), write=True).requires_auth is True
        assert engine.check_path_access(str(shared / "a")).requires_auth is False
        assert engine.check_path_access(str(tmp_path / "other")) == engine.check_path_access(
            str(tmp_path / "other"), write=True
        )

    def test_analyze_shell_command(self) -> None:
        """Test raw text with a protected redirect is flagged."""
        engine = PolicyEngine()

        assert engine.analyze_shell_command("cat x > /etc/hosts").requires_auth is True
        assert engine.analyze_shell_command("cat x > out.txt").requires_auth is False
