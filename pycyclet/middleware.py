"""
基於 PyCyclet 的中介軟體定義模組。

此模組提供包裹 ActionDispatcher.exec 的中介軟體，用於在 action 扇出前後
插入自定義邏輯，實現日誌記錄、錯誤上報、性能監控等功能。
中介軟體不會吞掉異常：on_error 執行完之後異常照常拋出。
"""

import contextlib
import datetime
import time
from typing import Any, Generator, Optional

from .actions import Action
from .errors import MiddlewareError, global_error_handler
from .types import ActionContext, Middleware as MiddlewareProtocol


# ———— Base Middleware ————
class BaseMiddleware:
    """
    基礎中介類，定義所有中介可能實現的鉤子。
    """

    def on_next(self, action: Action) -> None:
        """
        在 action 扇出給 handler 之前調用。

        Args:
            action: 正在 exec 的 Action
        """
        pass

    def on_complete(self, action: Action) -> None:
        """
        在所有 handler 執行完畢之後調用。

        Args:
            action: 剛剛 exec 的 Action
        """
        pass

    def on_error(self, error: Exception, action: Action) -> None:
        """
        如果扇出過程中拋出異常，則調用此鉤子。

        Args:
            error: 拋出的異常
            action: 導致異常的 Action
        """
        pass

    @contextlib.contextmanager
    def action_context(self, action: Action) -> Generator[ActionContext, None, None]:
        """
        以上下文管理器的形式包住一次 exec 的生命週期。

        Yields:
            在上下文內外之間傳遞資料的字典
        """
        context: ActionContext = {
            'action': action,
            'error': None,
            'started_at': time.perf_counter(),
        }
        self.on_next(action)
        try:
            yield context
        except Exception as err:
            context['error'] = err
            self.on_error(err, action)
            raise
        self.on_complete(action)


# ———— LoggerMiddleware ————
class LoggerMiddleware(BaseMiddleware, MiddlewareProtocol):
    """
    日誌中介，打印每個 action 扇出前後的訊息。

    使用場景:
    - 偵錯時需要觀察 action 的執行順序。
    - 確認巢狀 exec 的展開情況。
    """

    def __init__(self, show_args: bool = True):
        self.show_args = show_args
        self._depth = 0

    def _prefix(self) -> str:
        return f"[{datetime.datetime.now():%H:%M:%S.%f}] " + "  " * self._depth

    def on_next(self, action: Action) -> None:
        if self.show_args:
            print(f"{self._prefix()}▶️ exec {action.type} {action.args!r}")
        else:
            print(f"{self._prefix()}▶️ exec {action.type}")
        self._depth += 1

    def on_complete(self, action: Action) -> None:
        self._depth -= 1
        print(f"{self._prefix()}✅ done {action.type}")

    def on_error(self, error: Exception, action: Action) -> None:
        self._depth -= 1
        print(f"{self._prefix()}❌ error in {action.type}: {error}")


# ———— ErrorMiddleware ————
class ErrorMiddleware(BaseMiddleware, MiddlewareProtocol):
    """
    捕獲扇出過程中的異常，交給全域錯誤處理器記錄後重新拋出。

    使用場景:
    - 需要統一記錄所有 handler / 監聽器拋出的異常時。
    """

    def __init__(self, error_handler=None):
        self.error_handler = error_handler or global_error_handler

    def on_error(self, error: Exception, action: Action) -> None:
        self.error_handler.handle(
            MiddlewareError(
                str(error),
                middleware_name=type(self).__name__,
                action_type=action.type,
                error_type=type(error).__name__,
                original=error,
            )
        )


# ———— PerformanceMonitorMiddleware ————
class PerformanceMonitorMiddleware(BaseMiddleware):
    """
    監控每次 exec 的扇出耗時，超過閾值時打印警告。
    """

    def __init__(self, threshold_ms: float = 100.0, log_all: bool = False):
        self.threshold_ms = threshold_ms
        self.log_all = log_all
        self.last_elapsed_ms: Optional[float] = None

    @contextlib.contextmanager
    def action_context(self, action: Action) -> Generator[ActionContext, None, None]:
        start = time.perf_counter()
        context: ActionContext = {'action': action, 'error': None, 'started_at': start}
        try:
            yield context
        except Exception as err:
            elapsed_ms = (time.perf_counter() - start) * 1000
            context['error'] = err
            print(f"❌ Action {action.type} failed after {elapsed_ms:.2f}ms: {err}")
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000
        context['elapsed_ms'] = elapsed_ms
        self.last_elapsed_ms = elapsed_ms
        if self.log_all:
            print(f"⏱️ Performance: Action {action.type} took {elapsed_ms:.2f}ms")
        if elapsed_ms > self.threshold_ms:
            print(f"⚠️ Warning: Action {action.type} exceeded threshold ({self.threshold_ms}ms)")


def wrap_middleware(mw: Any, next_exec):
    """
    將物件型中介軟體包裹在 next_exec 外層。

    Args:
        mw: 提供 action_context 或 on_next/on_complete/on_error 的中介軟體
        next_exec: 下一層的 exec 函數（接收 Action）

    Returns:
        包裹後的 exec 函數
    """
    if hasattr(mw, "action_context"):
        def exec_with_context(action: Action) -> None:
            with mw.action_context(action):
                next_exec(action)
        return exec_with_context

    def exec_with_hooks(action: Action) -> None:
        mw.on_next(action)
        try:
            next_exec(action)
        except Exception as err:
            mw.on_error(err, action)
            raise
        mw.on_complete(action)
    return exec_with_hooks
