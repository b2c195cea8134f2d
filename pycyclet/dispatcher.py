"""
Action 分派器。

ActionDispatcher 是一個專門用於 action 名稱的 EventChannel：
Store 在建構時登記 handler，呼叫者透過 exec 同步地把 action 廣播給所有 handler。
"""
import inspect
from typing import Any, Callable, List

from .actions import Action, validate_action_name
from .channel import EventChannel, Subscription
from .middleware import wrap_middleware
from .types import ActionHandler


class ActionDispatcher:
    """
    同步扇出的 action 廣播通道。

    handler 之間跨 Store 的執行順序等於登記順序，但呼叫者不應依賴它；
    唯一的保證是 exec 返回之前所有已登記的 handler 都已執行（或有一個拋出了異常）。
    handler 內再次呼叫 exec 會立即巢狀執行，不會延後。
    """

    def __init__(self):
        self._channel = EventChannel()
        self._middleware: List[Any] = []
        # 設定原始的 exec 核心，並構建中介軟體鏈
        self._raw_exec: Callable[[Action], None] = self._exec_core
        self._exec = self._apply_middleware_chain()

    def register(self, action_name: str, handler: ActionHandler) -> Subscription:
        """
        為 action 登記一個 handler。

        Args:
            action_name: action 名稱
            handler: 接收 exec 位置參數的函數

        Returns:
            Subscription；呼叫 remove() 即可取消登記
        """
        validate_action_name(action_name)
        return self._channel.add_listener(action_name, handler)

    def exec(self, action_name: str, *args: Any) -> None:
        """
        把 action 廣播給所有登記了該名稱的 handler。

        沒有任何 handler 的 action 會被靜默忽略。handler 拋出的異常直接傳回呼叫者。

        Args:
            action_name: action 名稱
            *args: 傳給 handler 的位置參數
        """
        validate_action_name(action_name)
        self._exec(Action(action_name, args))

    def _exec_core(self, action: Action) -> None:
        self._channel.emit(action.type, *action.args)

    def _apply_middleware_chain(self) -> Callable[[Action], None]:
        """
        構建中介軟體鏈，將中介軟體按順序包裹在 exec 核心外層。

        Returns:
            包裹後的 exec 函數（接收 Action）
        """
        exec_fn = self._raw_exec
        for mw in reversed(self._middleware):
            # 物件型中介軟體用鉤子包裹，函數型則當作工廠呼叫
            if hasattr(mw, "on_next") or hasattr(mw, "action_context"):
                exec_fn = wrap_middleware(mw, exec_fn)
            else:
                exec_fn = mw(self)(exec_fn)
        return exec_fn

    def apply_middleware(self, *middlewares: Any) -> None:
        """
        一次註冊多個中介軟體，並重建 exec 鏈。

        Args:
            *middlewares: 要註冊的中介軟體，可以是類或實例，或 mw(dispatcher)(next_exec) 形式的工廠函數
        """
        for m in middlewares:
            inst = m() if inspect.isclass(m) else m
            self._middleware.append(inst)
        self._exec = self._apply_middleware_chain()

    def has_handlers(self, action_name: str) -> bool:
        return self._channel.listener_count(action_name) > 0

    def handler_count(self, action_name: str) -> int:
        return self._channel.listener_count(action_name)

    def reset(self) -> None:
        """移除所有已登記的 handler，中介軟體保持不變。"""
        self._channel.remove_all_listeners()


# 行程內預設的分派器；create_store 未指定分派器時使用
default_dispatcher = ActionDispatcher()


def exec_action(action_name: str, *args: Any) -> None:
    """
    透過預設分派器廣播 action。

    Args:
        action_name: action 名稱
        *args: 傳給 handler 的位置參數
    """
    default_dispatcher.exec(action_name, *args)
