"""
Rsync Command Tests

RsyncCommand / SshCommandの機能テスト。
以下の項目をテスト：
- オプション定義
- 実行ファイルのデフォルト値
- リモートシェルの設定
- 同期処理とエラーハンドリング
"""

import os
import shlex

import pytest

from rsync_command.executors.errors import (
    CommandError,
    InvalidExecutableError,
    NotRepeatableError,
    UnsupportedOptionError,
)
from rsync_command.executors.rsync import (
    RSYNC_EXIT_CODES,
    RSYNC_OPTIONS,
    RsyncCommand,
    describe_exit_code,
)
from rsync_command.executors.ssh import SSH_OPTIONS, SshCommand

pytestmark = pytest.mark.skipif(os.name != 'posix', reason="requires a POSIX shell")


@pytest.mark.parametrize("schema", [RSYNC_OPTIONS, SSH_OPTIONS], ids=["rsync", "ssh"])
def test_flags_are_unique(schema):
    flags = [spec.flag for spec in schema.values()]
    assert len(flags) == len(set(flags))


@pytest.mark.parametrize("schema", [RSYNC_OPTIONS, SSH_OPTIONS], ids=["rsync", "ssh"])
def test_repeatable_options_take_arguments(schema):
    for name, spec in schema.items():
        if spec.repeatable:
            assert spec.has_argument, name


class TestRsyncCommand:
    """RsyncCommandのテスト"""

    @pytest.fixture
    def rsync(self, fake_executable: str) -> RsyncCommand:
        """テスト用のRsyncCommandを提供"""
        return RsyncCommand(executable=fake_executable)

    def test_executable_from_environment(self, monkeypatch: pytest.MonkeyPatch, fake_executable: str):
        monkeypatch.setenv("RSYNC_PATH", fake_executable)
        assert RsyncCommand().executable == fake_executable

    def test_missing_rsync(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("RSYNC_PATH", "/definitely/not/rsync")

        with pytest.raises(InvalidExecutableError):
            RsyncCommand()

    def test_command_structure(self, rsync: RsyncCommand, fake_executable: str):
        rsync.set_options({
            'archive': True,
            'compress': True,
            'delete': True,
            'exclude': ["*.tmp", ".git"],
            'bwlimit': 500,
        })
        rsync.set_parameters(["src/", "dest/"])

        assert rsync.render() == (
            f"{fake_executable} -az --delete --exclude '*.tmp' --exclude .git --bwlimit 500 src/ dest/"
        )

    def test_unsupported_option(self, rsync: RsyncCommand):
        with pytest.raises(UnsupportedOptionError):
            rsync.set_option('port_knock')

    def test_not_repeatable(self, rsync: RsyncCommand):
        with pytest.raises(NotRepeatableError):
            rsync.set_option('rsh', ["ssh", "rsh"])

    def test_set_ssh(self, rsync: RsyncCommand, fake_executable: str):
        ssh = SshCommand(executable=fake_executable).set_option('port', 2222)

        assert rsync.set_ssh(ssh) is rsync
        assert rsync.get_options_string() == f" -e {shlex.quote(f'{fake_executable} -p 2222')}"

    def test_unset_ssh(self, rsync: RsyncCommand, fake_executable: str):
        rsync.set_ssh(SshCommand(executable=fake_executable))
        rsync.set_ssh(None)

        assert 'rsh' not in rsync.get_options()

    def test_sync(self, rsync: RsyncCommand):
        rsync.set_option('archive')

        result = rsync.sync("src/", "dest/")

        assert result.success
        assert result.stdout == "-a src/ dest/"
        assert rsync.get_parameters() == ["src/", "dest/"]

    def test_sync_multiple_sources(self, rsync: RsyncCommand):
        result = rsync.sync(["a/", "b/"], "dest/")
        assert result.stdout == "a/ b/ dest/"

    def test_sync_failure(self, failing_executable: str):
        rsync = RsyncCommand(executable=failing_executable)

        with pytest.raises(CommandError) as exc_info:
            rsync.sync("src/", "dest/")

        assert "Partial transfer due to error" in str(exc_info.value)
        assert "some files could not be transferred" in str(exc_info.value)
        assert exc_info.value.result.return_code == 23
        assert rsync.exit_code == 23

    def test_execute_failure_is_not_error(self, failing_executable: str):
        rsync = RsyncCommand(executable=failing_executable)

        rsync.execute()

        assert rsync.exit_code == 23

    def test_describe_exit_code(self):
        assert describe_exit_code(0) == RSYNC_EXIT_CODES[0]
        assert describe_exit_code(24) == "Partial transfer due to vanished source files"
        assert describe_exit_code(99) == "Unknown exit code 99"


class TestSshCommand:
    """SshCommandのテスト"""

    def test_executable_from_environment(self, monkeypatch: pytest.MonkeyPatch, fake_executable: str):
        monkeypatch.setenv("SSH_PATH", fake_executable)
        assert SshCommand().executable == fake_executable

    def test_command_structure(self, fake_executable: str):
        ssh = SshCommand(executable=fake_executable)
        ssh.set_options({
            'compression': True,
            'quiet': True,
            'port': 2222,
            'identity_file': ["~/.ssh/id_ed25519"],
            'option': ["StrictHostKeyChecking=no", "BatchMode=yes"],
        })

        assert ssh.render() == (
            f"{fake_executable} -Cq -p 2222 -i '~/.ssh/id_ed25519'"
            " -o StrictHostKeyChecking=no -o BatchMode=yes"
        )

    def test_execute(self, fake_executable: str):
        ssh = SshCommand(executable=fake_executable).set_option('port', 22).add_parameter("host")

        ssh.execute()

        assert ssh.stdout == "-p 22 host"
