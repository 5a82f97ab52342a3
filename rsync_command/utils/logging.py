"""
Logging Utilities

パッケージのロガーを管理するモジュール。

ライブラリ自身はハンドラを設定しない。実行されたコマンドラインや終了コード、
子プロセスの出力を確認したい場合はアプリケーション側でsetup_logging()を呼ぶ。
ログレベルは引数、なければ環境変数RSYNC_COMMAND_LOG_LEVELで指定する。
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, TextIO, Union

LOGGER_NAME = 'rsync_command'
LOG_LEVEL_ENV = 'RSYNC_COMMAND_LOG_LEVEL'

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# レベルごとのANSIカラーコード（DEBUGは子プロセスの出力が多いため暗めに表示）
LEVEL_COLORS = {
    logging.DEBUG: '\033[2m',
    logging.INFO: '\033[32m',
    logging.WARNING: '\033[33m',
    logging.ERROR: '\033[31m',
    logging.CRITICAL: '\033[1;31m',
}
RESET = '\033[0m'


class ColorFormatter(logging.Formatter):
    """レベルに応じて行全体を色付けするフォーマッター"""

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None, use_color: bool = False):
        super().__init__(fmt, datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        if not self.use_color:
            return formatted

        color = LEVEL_COLORS.get(record.levelno)
        return f"{color}{formatted}{RESET}" if color else formatted


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    パッケージ配下のロガーを取得

    Args:
        name: モジュール名（__name__）または子ロガー名。省略時はパッケージのロガー
    """
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if name.startswith(f'{LOGGER_NAME}.'):
        return logging.getLogger(name)
    return logging.getLogger(f'{LOGGER_NAME}.{name}')


def _is_terminal(stream: TextIO) -> bool:
    isatty = getattr(stream, 'isatty', None)
    return bool(isatty and isatty())


def setup_logging(
    log_level: Optional[Union[int, str]] = None,
    stream: Optional[TextIO] = None,
    log_file: Optional[Union[str, Path]] = None
) -> logging.Logger:
    """
    パッケージのロガーにハンドラを設定

    既存のハンドラは置き換えられるため、複数回呼んでも出力は重複しない。

    Args:
        log_level: ログレベル（省略時は環境変数、それもなければINFO）
        stream: コンソール出力先（省略時は標準エラー出力）
        log_file: ログファイルのパス（色付けなし）

    Returns:
        設定されたロガー
    """
    if log_level is None:
        log_level = os.environ.get(LOG_LEVEL_ENV, 'INFO').upper()

    logger = get_logger()
    logger.setLevel(log_level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream = stream or sys.stderr
    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(
        ColorFormatter(LOG_FORMAT, DATE_FORMAT, use_color=_is_terminal(stream))
    )
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(file_handler)

    return logger
