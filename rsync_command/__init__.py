"""
Rsync Command

外部コマンド（rsync, ssh）の呼び出しを型付きオプションで構築し、
子プロセスとして実行して標準出力/エラー出力/終了コードを取得するライブラリ。
"""

__version__ = '1.0.0'
__license__ = 'Apache License 2.0'

from . import executors
from . import utils
from .executors import (
    Command,
    CommandError,
    ExecutionResult,
    OptionSpec,
    RsyncCommand,
    SshCommand
)

__all__ = [
    'executors',
    'utils',
    'Command',
    'CommandError',
    'ExecutionResult',
    'OptionSpec',
    'RsyncCommand',
    'SshCommand'
]
