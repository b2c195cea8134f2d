"""
PyCyclet 錯誤處理模組。

定義庫內拋出的所有異常類別，以及集中式的錯誤處理器。
庫本身不會吞掉任何異常：處理器只負責記錄與轉發，之後異常照常向上拋出。
"""
import functools
import logging
import os
import traceback as tb
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar, Union

T = TypeVar("T")

logger = logging.getLogger("pycyclet")


class CycletError(Exception):
    """所有 PyCyclet 異常的基礎類。"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.traceback = tb.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """
        將異常轉換為結構化字典，便於記錄或上報。

        Returns:
            包含錯誤類型、訊息與細節的字典
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": dict(self.details),
        }

    def __str__(self) -> str:
        if not self.details:
            return self.message
        details = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        return f"{self.message} ({details})"


class ActionError(CycletError):
    """與 Action 相關的錯誤，例如無效的 action 名稱。"""

    def __init__(self, message: str, action_type: Any, payload: Any = None, **kwargs: Any):
        details = {"action_type": action_type, **kwargs}
        if payload is not None:
            details["payload"] = payload
        super().__init__(message, details)


class StoreError(CycletError):
    """與 Store 相關的錯誤。"""

    def __init__(self, message: str, operation: str, **kwargs: Any):
        super().__init__(message, {"operation": operation, **kwargs})


class MiddlewareError(CycletError):
    """與 Middleware 相關的錯誤。"""

    def __init__(self, message: str, middleware_name: str, action_type: Optional[str] = None, **kwargs: Any):
        details = {"middleware_name": middleware_name, **kwargs}
        if action_type is not None:
            details["action_type"] = action_type
        super().__init__(message, details)


class ConfigurationError(CycletError):
    """Store 定義或其他配置相關的錯誤。"""

    def __init__(self, message: str, component: str, config_key: Optional[str] = None, **kwargs: Any):
        details = {"component": component, **kwargs}
        if config_key is not None:
            details["config_key"] = config_key
        super().__init__(message, details)


# 目的地 -> [handler, 使用中的 ErrorHandler 數量]
_shared_handlers: Dict[Tuple[str, ...], List[Any]] = {}


def _acquire_handler(key: Tuple[str, ...], factory: Callable[[], logging.Handler]) -> Tuple[str, ...]:
    entry = _shared_handlers.get(key)
    if entry is None:
        handler = factory()
        handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
        logger.addHandler(handler)
        entry = _shared_handlers[key] = [handler, 0]
    entry[1] += 1
    return key


def _release_handler(key: Tuple[str, ...]) -> None:
    entry = _shared_handlers.get(key)
    if entry is None:
        return
    entry[1] -= 1
    if entry[1] <= 0:
        handler = entry[0]
        logger.removeHandler(handler)
        handler.close()
        del _shared_handlers[key]


class ErrorHandler:
    """
    集中式錯誤處理器，用於捕獲、日誌記錄和錯誤報告。

    Attributes:
        log_to_console: 是否輸出到終端
        log_to_file: 是否寫入日誌檔案
        log_file: 日誌檔案路徑
        handlers: 額外註冊的錯誤回調
    """

    def __init__(self, log_to_console: bool = True, log_to_file: bool = False, log_file: Optional[str] = None):
        self.log_to_console = log_to_console
        self.log_to_file = log_to_file
        self.log_file = log_file or "pycyclet_errors.log"
        self.handlers: List[Callable[[CycletError], None]] = []
        self._logger = logger
        self._acquired: List[Tuple[str, ...]] = []

    def _ensure_handlers(self) -> None:
        # 延遲建立 handler，避免只 import 模組就建立日誌檔案
        if self.log_to_console and ("console",) not in self._acquired:
            self._acquired.append(_acquire_handler(("console",), logging.StreamHandler))
        if self.log_to_file:
            key = ("file", os.path.abspath(self.log_file))
            if key not in self._acquired:
                self._acquired.append(
                    _acquire_handler(key, lambda: logging.FileHandler(key[1], encoding="utf-8"))
                )

    def close(self) -> None:
        """
        釋放這個處理器使用的日誌 handler。

        同一目的地（終端或同一個檔案）的 handler 在所有 ErrorHandler 之間共用，
        最後一個使用者釋放時才會從 logger 移除並關閉。
        """
        for key in self._acquired:
            _release_handler(key)
        self._acquired.clear()

    def register_handler(self, handler: Callable[[CycletError], None]) -> None:
        """
        註冊一個錯誤回調，每次處理錯誤時都會被調用。

        Args:
            handler: 接收 CycletError 的函數
        """
        self.handlers.append(handler)

    def handle(self, error: Union[CycletError, Exception]) -> None:
        """
        記錄錯誤並通知所有已註冊的回調。

        非 CycletError 的異常會被包裝成 CycletError 後再轉發，
        原始異常保留在 details["original"] 中。

        Args:
            error: 要處理的異常
        """
        if not isinstance(error, CycletError):
            error = CycletError(str(error), {"original": error, "error_type": type(error).__name__})

        self._ensure_handlers()
        self._logger.error("%s", error)

        for handler in list(self.handlers):
            handler(error)


# 單例錯誤處理器
global_error_handler = ErrorHandler()


def handle_error(func: Callable[..., T]) -> Callable[..., T]:
    """
    裝飾器：將被裝飾函數拋出的 CycletError 交給全域錯誤處理器，然後重新拋出。

    Args:
        func: 要包裝的函數

    Returns:
        包裝後的函數
    """
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return func(*args, **kwargs)
        except CycletError as err:
            global_error_handler.handle(err)
            raise
    return wrapper
