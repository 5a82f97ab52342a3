"""
Base Command

外部コマンド1回分の呼び出しを構築・実行するモジュール。
以下の機能を実装：
- 実行ファイルの検証
- コマンドラインの組み立て
- 同期/非同期でのプロセス実行と標準出力/エラー出力の取得
- タイムアウト時のプロセス停止
"""

import asyncio
import functools
import os
import shutil
import signal
import subprocess
import time
from dataclasses import dataclass
from typing import Any, Callable, Coroutine, Iterable, List, Mapping, Optional, Union

from ..utils.async_helpers import gather_with_concurrency
from ..utils.logging import get_logger
from .errors import CommandTimeoutError, InvalidExecutableError, SpawnError
from .options import OptionSpec, OptionStore

logger = get_logger(__name__)

# 実行前・生成失敗時の終了コード
NOT_OK_EXIT_CODE = 1

# ストリームから一度に読み込むサイズ
READ_CHUNK_SIZE = 64 * 1024

OutputHandler = Callable[[str, str], Coroutine[Any, Any, None]]


@dataclass
class ExecutionResult:
    """コマンド実行結果を格納するデータクラス"""
    return_code: int
    stdout: str
    stderr: str
    duration: float  # 実行時間（秒）
    command: str    # 実行されたコマンド

    @property
    def success(self) -> bool:
        """コマンドが成功したかどうか"""
        return self.return_code == 0


def is_executable(path: str) -> bool:
    """
    実行可能なファイルかどうかを判定

    パス区切りを含む場合はそのファイルを、含まない場合はPATHを検索する。
    WindowsではPATHEXTも考慮される。
    """
    return shutil.which(path) is not None


def _session_kwargs() -> dict:
    # プロセスグループごと停止できるように新しいセッションで起動する
    if os.name == 'posix':
        return {'start_new_session': True}
    return {}


def _signal_process(process: Union[subprocess.Popen, asyncio.subprocess.Process], force: bool) -> None:
    if os.name != 'posix':
        if force:
            process.kill()
        else:
            process.terminate()
        return

    try:
        os.killpg(process.pid, signal.SIGKILL if force else signal.SIGTERM)
    except ProcessLookupError:
        pass


def _decode(data: Optional[bytes]) -> str:
    return (data or b'').decode('utf-8', errors='replace').strip()


class Command(OptionStore):
    """
    外部コマンドの呼び出しを表すクラス

    サブクラスはoptions_schemaに対象ツールのオプション定義を持つ。
    execute()は子プロセスの終了まで待ち、結果をインスタンスに記録する。
    終了コードが0以外でも例外にはならない。

    使用例:
    ```python
    command = Command("ls", schema={"all": OptionSpec("a")})
    command.set_option("all").add_parameter("/tmp").execute()

    if command.exit_code == 0:
        print(command.stdout)
    ```
    """

    options_schema: Mapping[str, OptionSpec] = {}

    def __init__(
        self,
        executable: str,
        cwd: Optional[Union[str, os.PathLike]] = None,
        *,
        schema: Optional[Mapping[str, OptionSpec]] = None,
        escape_parameters: bool = False,
        timeout: Optional[float] = None
    ):
        """
        Args:
            executable: 実行ファイルのパスまたはコマンド名
            cwd: 実行時の作業ディレクトリ（省略時はカレントディレクトリ）
            schema: オプション定義（省略時はoptions_schema）
            escape_parameters: 位置パラメータもシェルエスケープするかどうか
            timeout: execute()のデフォルトのタイムアウト（秒）

        Raises:
            InvalidExecutableError: 実行ファイルが不正な場合
        """
        super().__init__(
            schema if schema is not None else self.options_schema,
            escape_parameters=escape_parameters
        )
        self.executable = executable
        self.cwd = cwd if cwd is not None else os.getcwd()
        self.timeout = timeout

        self.process: Optional[asyncio.subprocess.Process] = None
        self._result: Optional[ExecutionResult] = None
        self._output_handlers: List[OutputHandler] = []

    @property
    def executable(self) -> str:
        return self._executable

    @executable.setter
    def executable(self, executable: str) -> None:
        executable = (executable or '').strip()
        if not executable:
            raise InvalidExecutableError("Executable path must be a non-empty string")

        if not is_executable(executable):
            raise InvalidExecutableError(f"{executable} is not executable")

        self._executable = executable

    @property
    def result(self) -> Optional[ExecutionResult]:
        """直近の実行結果（未実行ならNone）"""
        return self._result

    @property
    def exit_code(self) -> Optional[int]:
        return self._result.return_code if self._result else None

    @property
    def stdout(self) -> Optional[str]:
        return self._result.stdout if self._result else None

    @property
    def stderr(self) -> Optional[str]:
        return self._result.stderr if self._result else None

    def render(self) -> str:
        """
        コマンドラインを構築

        Returns:
            実行ファイル + オプション文字列 + パラメータ文字列
        """
        return self.executable + self.get_options_string() + self.get_parameters_string()

    def __str__(self) -> str:
        return self.render()

    def _reset_result(self, command: str) -> None:
        self._result = ExecutionResult(
            return_code=NOT_OK_EXIT_CODE,
            stdout='',
            stderr='',
            duration=0.0,
            command=command
        )

    def execute(self, timeout: Optional[float] = None) -> 'Command':
        """
        コマンドを実行し、終了まで待つ

        Args:
            timeout: タイムアウト（秒）。省略時はインスタンスのデフォルト、
                それもNoneなら終了まで待ち続ける

        Returns:
            self: 結果取得のメソッドチェーン用

        Raises:
            SpawnError: プロセスを生成できなかった場合
            CommandTimeoutError: タイムアウトした場合（結果は記録済み）
        """
        if timeout is None:
            timeout = self.timeout

        command = self.render()
        self._reset_result(command)
        logger.info(f"Executing command: {command}")

        start_time = time.time()
        try:
            process = subprocess.Popen(
                command,
                shell=True,
                cwd=self.cwd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                **_session_kwargs()
            )
        except OSError as e:
            raise SpawnError(f"Unable to execute command '{command}': {e}", result=self._result) from e

        timed_out = False
        with process:
            # 入力がないためcommunicate()が標準入力を直ちに閉じる
            try:
                stdout, stderr = process.communicate(timeout=timeout)
            except subprocess.TimeoutExpired:
                timed_out = True
                _signal_process(process, force=True)
                stdout, stderr = process.communicate()

        self._record(process.returncode, stdout, stderr, start_time, command)

        if timed_out:
            raise CommandTimeoutError(
                f"Command timed out after {timeout} seconds: {command}",
                result=self._result
            )

        return self

    def _record(self, return_code: int, stdout: bytes, stderr: bytes, start_time: float, command: str) -> None:
        self._result = ExecutionResult(
            return_code=return_code,
            stdout=_decode(stdout),
            stderr=_decode(stderr),
            duration=time.time() - start_time,
            command=command
        )
        logger.debug(
            f"Command exited with code {return_code} in {self._result.duration:.2f}s: {command}"
        )

    def add_output_handler(self, handler: OutputHandler) -> 'Command':
        """
        出力ハンドラを追加（execute_async()でのみ使用）

        Args:
            handler: 非同期コールバック関数。引数は(出力テキスト, ストリーム種別["stdout"/"stderr"])
        """
        self._output_handlers.append(handler)
        return self

    async def _handle_output(self, text: str, stream: str) -> None:
        for handler in self._output_handlers:
            try:
                await handler(text, stream)
            except Exception as e:
                logger.error(f"Error in output handler: {str(e)}")

    async def _stream_output(self, pipe: asyncio.StreamReader, stream_type: str) -> bytes:
        """
        ストリームを最後まで読み、行ごとにハンドラへ送信

        行の長さに上限はない。readline()の制限を避けるため固定サイズで読み込み、
        改行での分割はここで行う。

        Returns:
            読み込んだ全データ
        """
        chunks = []
        pending = b''
        while True:
            chunk = await pipe.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)

            *lines, pending = (pending + chunk).split(b'\n')
            for line in lines:
                await self._emit_line(line, stream_type)

        # 改行で終わらない最後の行
        if pending:
            await self._emit_line(pending, stream_type)

        return b''.join(chunks)

    async def _emit_line(self, line: bytes, stream_type: str) -> None:
        text = line.decode('utf-8', errors='replace').rstrip('\r')
        logger.debug(f"[{stream_type}] {text}")
        await self._handle_output(text, stream_type)

    async def execute_async(self, timeout: Optional[float] = None) -> 'Command':
        """
        コマンドを非同期に実行

        execute()と同じ契約で動作し、出力は登録されたハンドラへ行単位で送られる。
        待機中のタスクがキャンセルされた場合はプロセスを停止して再送出する。

        Raises:
            SpawnError: プロセスを生成できなかった場合
            CommandTimeoutError: タイムアウトした場合（結果は記録済み）
        """
        if timeout is None:
            timeout = self.timeout

        command = self.render()
        self._reset_result(command)
        logger.info(f"Executing command: {command}")

        start_time = time.time()
        try:
            self.process = await asyncio.create_subprocess_shell(
                command,
                cwd=self.cwd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                **_session_kwargs()
            )
        except OSError as e:
            raise SpawnError(f"Unable to execute command '{command}': {e}", result=self._result) from e

        timed_out = False
        stream_tasks: List[asyncio.Task] = []
        try:
            self.process.stdin.close()

            stdout_task = asyncio.create_task(
                self._stream_output(self.process.stdout, "stdout")
            )
            stderr_task = asyncio.create_task(
                self._stream_output(self.process.stderr, "stderr")
            )
            stream_tasks = [stdout_task, stderr_task]

            try:
                return_code = await asyncio.wait_for(self.process.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                timed_out = True
                await self.stop()
                return_code = self.process.returncode

            stdout, stderr = await asyncio.gather(stdout_task, stderr_task)
            self._record(return_code, stdout, stderr, start_time, command)

        except BaseException:
            await self.stop()
            for task in stream_tasks:
                task.cancel()
            await asyncio.gather(*stream_tasks, return_exceptions=True)
            raise

        finally:
            self.process = None

        if timed_out:
            raise CommandTimeoutError(
                f"Command timed out after {timeout} seconds: {command}",
                result=self._result
            )

        return self

    async def stop(self) -> None:
        """実行中のプロセスを停止"""
        process = self.process
        if process is None or process.returncode is not None:
            return

        _signal_process(process, force=False)
        try:
            await asyncio.wait_for(process.wait(), timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Process did not terminate, killing...")
            _signal_process(process, force=True)
            await process.wait()

    async def __aenter__(self) -> 'Command':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.process:
            await self.stop()


async def execute_concurrently(
    commands: Iterable[Command],
    max_concurrent: int = 4,
    timeout: Optional[float] = None
) -> List[Command]:
    """
    複数のコマンドを同時実行数を制限して実行

    同じインスタンスを複数回含めてはならない。

    Args:
        commands: 実行するコマンド
        max_concurrent: 最大同時実行数
        timeout: 各コマンドのタイムアウト（秒）

    Returns:
        実行済みのコマンドのリスト（入力順）
    """
    return await gather_with_concurrency(
        max_concurrent,
        *(functools.partial(command.execute_async, timeout=timeout) for command in commands)
    )
