"""
Command Errors

コマンドの構築・実行に関連する例外を定義するモジュール。
全ての例外はCommandErrorを基底とし、呼び出し元に同期的に送出される。
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import ExecutionResult


class CommandError(Exception):
    """コマンド実行に関連するエラー"""
    def __init__(self, message: str, result: Optional['ExecutionResult'] = None):
        super().__init__(message)
        self.result = result


class InvalidExecutableError(CommandError):
    """実行ファイルのパスが空、または実行可能でない"""


class OptionError(CommandError):
    """オプション設定に関するエラーの基底クラス"""
    def __init__(self, message: str, option: str):
        super().__init__(message)
        self.option = option


class UnsupportedOptionError(OptionError):
    """スキーマに存在しないオプション"""


class InvalidOptionArgumentError(OptionError):
    """引数を取らないオプションにbool以外の値が渡された"""


class NotRepeatableError(OptionError):
    """繰り返し不可のオプションに配列が渡された"""


class NonStringableValueError(CommandError):
    """文字列に変換できない値"""


class SpawnError(CommandError):
    """子プロセスを生成できなかった"""


class CommandTimeoutError(CommandError):
    """タイムアウトによりプロセスを停止した"""
