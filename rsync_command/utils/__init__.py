"""
Utils Package

ユーティリティ機能を提供するモジュール群。
"""

from .logging import (
    setup_logging,
    get_logger,
    ColorFormatter
)

from .async_helpers import (
    Limiter,
    gather_with_concurrency
)

__all__ = [
    # ロギング関連
    'setup_logging',
    'get_logger',
    'ColorFormatter',

    # 非同期処理関連
    'Limiter',
    'gather_with_concurrency'
]
