"""
PyCyclet 共用類型定義。
"""
from typing import Any, Callable, Mapping, TypeVar, Union

from typing_extensions import Protocol, TypedDict, runtime_checkable

T = TypeVar("T")

# 監聽器：Store 變更通知不帶任何參數；EventChannel 則會原樣轉發 emit 的參數
Listener = Callable[..., Any]
ActionHandler = Callable[..., Any]
DeriveState = Callable[[Mapping[str, Any]], Mapping[str, Any]]
StateSelector = Callable[[Any], T]
Diff = Union[Mapping[str, Any], Any]


class ActionContext(TypedDict, total=False):
    """中介軟體在一次 exec 生命週期內共享的上下文。"""
    action: Any
    error: Any
    started_at: float
    elapsed_ms: float


@runtime_checkable
class View(Protocol):
    """綁定介面所需的最小視圖協議。"""

    def force_update(self) -> None: ...


@runtime_checkable
class Middleware(Protocol):
    """物件型中介軟體協議。"""

    def on_next(self, action: Any) -> None: ...

    def on_complete(self, action: Any) -> None: ...

    def on_error(self, error: Exception, action: Any) -> None: ...


