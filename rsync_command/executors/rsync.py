"""
Rsync Command

rsyncコマンドの実行を管理するモジュール。
以下の機能を実装：
- rsyncのオプション定義
- リモートシェル（ssh）の設定
- 同期処理と終了コードに応じたエラー報告
"""

import os
from typing import Any, Optional, Sequence, Union

from .base import Command, ExecutionResult
from .errors import CommandError
from .options import OptionSpec

RSYNC_OPTIONS = {
    # 出力
    'verbose': OptionSpec('v'),
    'quiet': OptionSpec('q'),
    'progress': OptionSpec('progress'),
    'stats': OptionSpec('stats'),
    'human_readable': OptionSpec('h'),
    'itemize_changes': OptionSpec('i'),
    'info': OptionSpec('info', has_argument=True),
    'debug': OptionSpec('debug', has_argument=True),
    'log_file': OptionSpec('log-file', has_argument=True),
    'out_format': OptionSpec('out-format', has_argument=True),

    # 転送方式
    'archive': OptionSpec('a'),
    'recursive': OptionSpec('r'),
    'relative': OptionSpec('R'),
    'dirs': OptionSpec('d'),
    'links': OptionSpec('l'),
    'copy_links': OptionSpec('L'),
    'hard_links': OptionSpec('H'),
    'perms': OptionSpec('p'),
    'executability': OptionSpec('E'),
    'acls': OptionSpec('A'),
    'xattrs': OptionSpec('X'),
    'owner': OptionSpec('o'),
    'group': OptionSpec('g'),
    'devices': OptionSpec('devices'),
    'specials': OptionSpec('specials'),
    'times': OptionSpec('t'),
    'omit_dir_times': OptionSpec('O'),
    'sparse': OptionSpec('S'),
    'whole_file': OptionSpec('W'),
    'one_file_system': OptionSpec('x'),
    'checksum': OptionSpec('c'),
    'update': OptionSpec('u'),
    'inplace': OptionSpec('inplace'),
    'append': OptionSpec('append'),
    'existing': OptionSpec('existing'),
    'ignore_existing': OptionSpec('ignore-existing'),
    'size_only': OptionSpec('size-only'),
    'dry_run': OptionSpec('n'),
    'partial': OptionSpec('partial'),
    'partial_dir': OptionSpec('partial-dir', has_argument=True),
    'mkpath': OptionSpec('mkpath'),
    'chmod': OptionSpec('chmod', has_argument=True, repeatable=True),
    'chown': OptionSpec('chown', has_argument=True),
    'temp_dir': OptionSpec('T', has_argument=True),
    'compare_dest': OptionSpec('compare-dest', has_argument=True, repeatable=True),
    'copy_dest': OptionSpec('copy-dest', has_argument=True, repeatable=True),
    'link_dest': OptionSpec('link-dest', has_argument=True, repeatable=True),
    'backup': OptionSpec('b'),
    'backup_dir': OptionSpec('backup-dir', has_argument=True),
    'suffix': OptionSpec('suffix', has_argument=True),
    'max_size': OptionSpec('max-size', has_argument=True),
    'min_size': OptionSpec('min-size', has_argument=True),
    'modify_window': OptionSpec('modify-window', has_argument=True),

    # 圧縮
    'compress': OptionSpec('z'),
    'compress_level': OptionSpec('compress-level', has_argument=True),
    'skip_compress': OptionSpec('skip-compress', has_argument=True),

    # 削除
    'delete': OptionSpec('delete'),
    'delete_before': OptionSpec('delete-before'),
    'delete_during': OptionSpec('delete-during'),
    'delete_delay': OptionSpec('delete-delay'),
    'delete_after': OptionSpec('delete-after'),
    'delete_excluded': OptionSpec('delete-excluded'),
    'remove_source_files': OptionSpec('remove-source-files'),
    'force': OptionSpec('force'),
    'max_delete': OptionSpec('max-delete', has_argument=True),

    # フィルタ
    'cvs_exclude': OptionSpec('C'),
    'prune_empty_dirs': OptionSpec('m'),
    'filter': OptionSpec('filter', has_argument=True, repeatable=True),
    'exclude': OptionSpec('exclude', has_argument=True, repeatable=True),
    'exclude_from': OptionSpec('exclude-from', has_argument=True, repeatable=True),
    'include': OptionSpec('include', has_argument=True, repeatable=True),
    'include_from': OptionSpec('include-from', has_argument=True, repeatable=True),
    'files_from': OptionSpec('files-from', has_argument=True),
    'from0': OptionSpec('0'),

    # 接続
    'rsh': OptionSpec('e', has_argument=True),
    'rsync_path': OptionSpec('rsync-path', has_argument=True),
    'port': OptionSpec('port', has_argument=True),
    'password_file': OptionSpec('password-file', has_argument=True),
    'bwlimit': OptionSpec('bwlimit', has_argument=True),
    'timeout': OptionSpec('timeout', has_argument=True),
    'contimeout': OptionSpec('contimeout', has_argument=True),
    'blocking_io': OptionSpec('blocking-io'),
    'ipv4': OptionSpec('4'),
    'ipv6': OptionSpec('6'),
}

# rsyncの終了コードとその意味
RSYNC_EXIT_CODES = {
    0: "Success",
    1: "Syntax or usage error",
    2: "Protocol incompatibility",
    3: "Errors selecting input/output files, dirs",
    4: "Requested action not supported",
    5: "Error starting client-server protocol",
    6: "Daemon unable to append to log-file",
    10: "Error in socket I/O",
    11: "Error in file I/O",
    12: "Error in rsync protocol data stream",
    13: "Errors with program diagnostics",
    14: "Error in IPC code",
    20: "Received SIGUSR1 or SIGINT",
    21: "Some error returned by waitpid()",
    22: "Error allocating core memory buffers",
    23: "Partial transfer due to error",
    24: "Partial transfer due to vanished source files",
    25: "The --max-delete limit stopped deletions",
    30: "Timeout in data send/receive",
    35: "Timeout waiting for daemon connection",
}


def describe_exit_code(code: Optional[int]) -> str:
    """終了コードの説明を取得"""
    return RSYNC_EXIT_CODES.get(code, f"Unknown exit code {code}")


class RsyncCommand(Command):
    """
    rsyncコマンドの実行を管理するクラス

    使用例:
    ```python
    rsync = RsyncCommand()
    rsync.set_options({"archive": True, "compress": True, "exclude": ["*.tmp"]})
    rsync.set_ssh(SshCommand().set_option("port", 2222))

    result = rsync.sync("src/", "backup@host:/srv/backup/")
    ```
    """

    options_schema = RSYNC_OPTIONS

    def __init__(self, executable: Optional[str] = None, cwd: Optional[str] = None, **kwargs):
        """
        Args:
            executable: rsyncコマンドのパス（省略時は環境変数RSYNC_PATH、なければ"rsync"）
            cwd: 作業ディレクトリ
            **kwargs: Commandに渡すその他の引数
        """
        super().__init__(executable or os.environ.get('RSYNC_PATH', 'rsync'), cwd, **kwargs)

    def set_ssh(self, ssh: Optional[Command]) -> 'RsyncCommand':
        """
        リモートシェルを設定

        Args:
            ssh: リモートシェルとして使うコマンド（Noneで解除）
        """
        self.set_option('rsh', ssh.render() if ssh is not None else False)
        return self

    def sync(
        self,
        source: Union[Any, Sequence[Any]],
        destination: Any,
        timeout: Optional[float] = None
    ) -> ExecutionResult:
        """
        ファイルを同期

        Args:
            source: 同期元（複数の場合はリスト）
            destination: 同期先
            timeout: タイムアウト（秒）

        Returns:
            ExecutionResult: 実行結果

        Raises:
            CommandError: rsyncが0以外で終了した場合
        """
        sources = list(source) if isinstance(source, (list, tuple)) else [source]
        self.set_parameters([*sources, destination])
        self.execute(timeout=timeout)

        result = self.result
        if not result.success:
            details = result.stderr or "No error details available"
            raise CommandError(
                f"Sync failed ({describe_exit_code(result.return_code)}): {details}",
                result=result
            )

        return result
