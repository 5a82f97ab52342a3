"""
Option Store

コマンドのオプションと位置パラメータを管理するモジュール。
以下の機能を実装：
- スキーマに基づくオプション値の検証
- 繰り返し可能オプションの管理
- オプション/パラメータのコマンドライン文字列への変換（シェルエスケープ付き）
"""

import os
import shlex
import subprocess
import sys
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import (
    InvalidOptionArgumentError,
    NonStringableValueError,
    NotRepeatableError,
    UnsupportedOptionError,
)


@dataclass(frozen=True)
class OptionSpec:
    """オプション1件分の定義"""

    # 出力されるフラグ（"v" -> -v, "delete" -> --delete）
    flag: str
    has_argument: bool = False
    # has_argument=Trueの場合のみ有効
    repeatable: bool = False

    @property
    def is_long(self) -> bool:
        """ロングオプション（--name形式）かどうか"""
        return len(self.flag) > 1

    @property
    def token(self) -> str:
        """コマンドラインに出力されるトークン"""
        return f"--{self.flag}" if self.is_long else f"-{self.flag}"


def is_stringable(value: Any) -> bool:
    """
    値を曖昧さなく文字列に変換できるか判定

    str・bytes・数値・PathLike、および__str__を独自に定義したオブジェクトを許可する。
    boolとNoneは許可しない。bytesはファイルシステムのエンコーディングで復号される。

    Args:
        value: 判定対象の値

    Returns:
        変換可能ならTrue
    """
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, (str, bytes, bytearray, int, float, os.PathLike)):
        return True
    return type(value).__str__ is not object.__str__


def to_text(value: Any) -> str:
    """値をコマンドラインに埋め込む文字列に変換"""
    if isinstance(value, (bytes, bytearray)):
        return os.fsdecode(bytes(value))
    if isinstance(value, os.PathLike):
        return os.fsdecode(value)
    return str(value)


def quote_argument(value: Any) -> str:
    """ホストのシェル向けに値をエスケープ"""
    text = to_text(value)
    if sys.platform == "win32":
        return subprocess.list2cmdline([text])
    return shlex.quote(text)


class OptionStore:
    """
    オプションと位置パラメータを保持するクラス

    スキーマは読み取り専用で共有され、値の変更は必ずset_option経由で検証される。
    変更系メソッドはselfを返すため、メソッドチェーンで記述できる。

    使用例:
    ```python
    store = OptionStore({"verbose": OptionSpec("v")})
    store.set_option("verbose").add_parameter("src/")
    store.get_options_string()  # " -v"
    ```
    """

    def __init__(
        self,
        schema: Optional[Mapping[str, OptionSpec]] = None,
        escape_parameters: bool = False
    ):
        """
        Args:
            schema: オプション名からOptionSpecへの対応表
            escape_parameters: 位置パラメータもシェルエスケープするかどうか
        """
        self._schema: Mapping[str, OptionSpec] = MappingProxyType(dict(schema or {}))
        self._options: Dict[str, Any] = {}
        self._parameters: List[Any] = []
        self.escape_parameters = escape_parameters

    @property
    def schema(self) -> Mapping[str, OptionSpec]:
        return self._schema

    def set_option(self, name: str, value: Any = True) -> 'OptionStore':
        """
        オプションを設定

        Args:
            name: オプション名
            value: Trueでフラグを設定、Falseで削除。引数付きオプションの場合は
                文字列化可能な値、繰り返し可能オプションの場合はそのリスト

        Returns:
            self: メソッドチェーン用

        Raises:
            UnsupportedOptionError: スキーマに存在しない場合
            InvalidOptionArgumentError: 引数なしオプションにbool以外を渡した場合
            NotRepeatableError: 繰り返し不可のオプションにリストを渡した場合
            NonStringableValueError: 文字列化できない値を渡した場合
        """
        spec = self._schema.get(name)
        if spec is None:
            raise UnsupportedOptionError(f"Option {name} is not supported", option=name)

        if value is False:
            self._options.pop(name, None)
            return self

        if not spec.has_argument:
            if value is not True:
                raise InvalidOptionArgumentError(
                    f"Option {name} can not have any argument", option=name
                )
            self._options[name] = True
            return self

        if isinstance(value, (list, tuple)):
            if not spec.repeatable:
                raise NotRepeatableError(
                    f"Option {name} is not repeatable (its value can't be a list)",
                    option=name
                )
            for item in value:
                if not is_stringable(item):
                    raise NonStringableValueError(
                        f"Option {name} has non-stringable element: {item!r}"
                    )
            if not value:
                self._options.pop(name, None)
            else:
                self._options[name] = list(value)
            return self

        if not is_stringable(value):
            raise NonStringableValueError(f"Option {name} got non-stringable value: {value!r}")

        self._options[name] = value
        return self

    def set_options(self, options: Mapping[str, Any]) -> 'OptionStore':
        """
        複数のオプションをまとめて設定

        最初に失敗した時点で例外を送出する。それ以前の設定は残る。
        """
        for name, value in options.items():
            self.set_option(name, value)
        return self

    def get_options(self) -> Dict[str, Any]:
        return {
            name: list(value) if isinstance(value, list) else value
            for name, value in self._options.items()
        }

    def clear_options(self) -> 'OptionStore':
        self._options.clear()
        return self

    def get_options_string(self) -> str:
        """
        オプション文字列を構築

        引数なしの短いフラグは "-vz" のようにまとめ、続いて引数なしの長いフラグ、
        最後に引数付きオプションを設定順に出力する。

        Returns:
            先頭に空白を含むオプション文字列。未設定の場合は空文字列
        """
        if not self._options:
            return ''

        short_flags = ''
        long_flags = ''
        with_arguments = ''

        for name, value in self._options.items():
            spec = self._schema[name]

            if not spec.has_argument:
                if spec.is_long:
                    long_flags += f" {spec.token}"
                else:
                    short_flags += spec.flag
                continue

            values = value if isinstance(value, list) else [value]
            for item in values:
                with_arguments += f" {spec.token} {quote_argument(item)}"

        return (f" -{short_flags}" if short_flags else '') + long_flags + with_arguments

    def add_parameter(self, parameter: Any) -> 'OptionStore':
        """パラメータを末尾に追加"""
        if not is_stringable(parameter):
            raise NonStringableValueError(f"Got non-stringable parameter: {parameter!r}")

        self._parameters.append(parameter)
        return self

    def set_parameters(self, parameters: Sequence[Any]) -> 'OptionStore':
        """
        パラメータを置き換え

        全要素を検証してから置き換えるため、失敗時は元のパラメータが残る。
        """
        for parameter in parameters:
            if not is_stringable(parameter):
                raise NonStringableValueError(f"Got non-stringable parameter: {parameter!r}")

        self._parameters = list(parameters)
        return self

    def clear_parameters(self) -> 'OptionStore':
        self._parameters = []
        return self

    def get_parameters(self) -> List[Any]:
        return list(self._parameters)

    def get_parameters_string(self) -> str:
        """
        パラメータ文字列を構築

        escape_parameters=Falseの場合、値はそのまま連結される。
        """
        if self.escape_parameters:
            return ''.join(f" {quote_argument(p)}" for p in self._parameters)
        return ''.join(f" {to_text(p)}" for p in self._parameters)
