"""
Executors Package

コマンドの構築と実行を管理するモジュール群。
"""

from .errors import (
    CommandError,
    CommandTimeoutError,
    InvalidExecutableError,
    InvalidOptionArgumentError,
    NonStringableValueError,
    NotRepeatableError,
    OptionError,
    SpawnError,
    UnsupportedOptionError
)
from .options import OptionSpec, OptionStore, is_stringable, quote_argument
from .base import Command, ExecutionResult, execute_concurrently, is_executable
from .rsync import RsyncCommand, RSYNC_OPTIONS, RSYNC_EXIT_CODES
from .ssh import SshCommand, SSH_OPTIONS

__all__ = [
    'CommandError',
    'CommandTimeoutError',
    'InvalidExecutableError',
    'InvalidOptionArgumentError',
    'NonStringableValueError',
    'NotRepeatableError',
    'OptionError',
    'SpawnError',
    'UnsupportedOptionError',
    'OptionSpec',
    'OptionStore',
    'is_stringable',
    'quote_argument',
    'Command',
    'ExecutionResult',
    'execute_concurrently',
    'is_executable',
    'RsyncCommand',
    'RSYNC_OPTIONS',
    'RSYNC_EXIT_CODES',
    'SshCommand',
    'SSH_OPTIONS'
]
