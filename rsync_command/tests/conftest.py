"""
Pytest Configuration

テストの共通設定とフィクスチャを提供。
"""

import logging
import stat
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from rsync_command.utils.logging import LOGGER_NAME


def _write_script(path: Path, body: str) -> Path:
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


# テスト用の一時ディレクトリ
@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """一時ディレクトリを提供"""
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp)


@pytest.fixture
def fake_executable(temp_dir: Path) -> str:
    """受け取った引数をそのまま出力する実行ファイルを提供"""
    return str(_write_script(temp_dir / "fake-tool", 'printf "%s\\n" "$*"'))


@pytest.fixture
def failing_executable(temp_dir: Path) -> str:
    """rsyncの部分転送エラー（23）を模した実行ファイルを提供"""
    return str(_write_script(
        temp_dir / "failing-tool",
        'echo "rsync error: some files could not be transferred" >&2\nexit 23'
    ))


@pytest.fixture
def plain_file(temp_dir: Path) -> str:
    """実行権限のないファイルを提供"""
    path = temp_dir / "not-executable"
    path.write_text("#!/bin/sh\necho hi\n")
    path.chmod(stat.S_IRUSR | stat.S_IWUSR)
    return str(path)


# テスト用の環境変数
@pytest.fixture(autouse=True)
def env_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    """実行ファイルの環境変数を外部の設定から切り離す"""
    monkeypatch.delenv("RSYNC_PATH", raising=False)
    monkeypatch.delenv("SSH_PATH", raising=False)


# ロガーの状態を元に戻す
@pytest.fixture(autouse=True)
def reset_logger() -> Generator[None, None, None]:
    """setup_logging()で追加されたハンドラを取り除く"""
    logger = logging.getLogger(LOGGER_NAME)
    level = logger.level
    handlers = list(logger.handlers)

    yield

    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
