"""
具名事件的發佈/訂閱通道。

每個事件名稱可以有多個監聽器，每筆註冊都會得到一個可獨立取消的 Subscription。
emit 會同步地、依註冊順序呼叫當下已註冊的所有監聽器。
"""
from typing import Any, Dict, Hashable, List, Optional

from reactivex.abc import DisposableBase
from reactivex.disposable import Disposable

from .types import Listener


class Subscription(DisposableBase):
    """
    一個監聽器在一個通道上、針對一個事件名稱的註冊。

    remove() 是冪等的：重複移除不會報錯，也沒有額外效果。
    同時實作 reactivex 的 DisposableBase，可以用 dispose() 或 with 語句取消。
    """

    def __init__(self, channel: "EventChannel", event_name: Hashable, listener: Listener):
        self.channel = channel
        self.event_name = event_name
        self.listener = listener
        self._disposable = Disposable(lambda: channel._detach(self))

    @property
    def is_removed(self) -> bool:
        return self._disposable.is_disposed

    def remove(self) -> None:
        """從所屬通道移除這筆註冊。"""
        self._disposable.dispose()

    def dispose(self) -> None:
        self.remove()

    def __repr__(self) -> str:
        state = "removed" if self.is_removed else "active"
        return f"Subscription(event={self.event_name!r}, listener={self.listener!r}, {state})"


class EventChannel:
    """
    具名事件通道。

    監聽器拋出的異常不會被通道捕獲，會直接傳回 emit 的呼叫者，
    同一次 emit 中排在後面的監聽器因此不會被呼叫。
    """

    def __init__(self):
        self._subscriptions: Dict[Hashable, List[Subscription]] = {}

    def add_listener(self, event_name: Hashable, listener: Listener) -> Subscription:
        """
        註冊監聽器。

        同一個監聽器重複註冊會得到彼此獨立的 Subscription。

        Args:
            event_name: 事件名稱
            listener: 事件觸發時要呼叫的函數

        Returns:
            可用來取消這筆註冊的 Subscription
        """
        subscription = Subscription(self, event_name, listener)
        self._subscriptions.setdefault(event_name, []).append(subscription)
        return subscription

    def emit(self, event_name: Hashable, *args: Any) -> None:
        """
        依註冊順序同步呼叫 event_name 的所有監聽器。

        呼叫前先取快照：emit 過程中新增或移除的監聽器不影響這一次 emit。

        Args:
            event_name: 事件名稱
            *args: 傳給每個監聽器的參數
        """
        for subscription in list(self._subscriptions.get(event_name, ())):
            subscription.listener(*args)

    def listener_count(self, event_name: Hashable) -> int:
        return len(self._subscriptions.get(event_name, ()))

    def remove_all_listeners(self, event_name: Optional[Hashable] = None) -> None:
        """
        移除指定事件（或全部事件）的所有監聽器。

        Args:
            event_name: 要清空的事件名稱，None 表示全部
        """
        if event_name is None:
            names = list(self._subscriptions)
        else:
            names = [event_name]
        for name in names:
            for subscription in list(self._subscriptions.get(name, ())):
                subscription.remove()

    def _detach(self, subscription: Subscription) -> None:
        # 只由 Subscription 的 Disposable 呼叫，保證每筆註冊最多執行一次
        subscriptions = self._subscriptions.get(subscription.event_name)
        if not subscriptions:
            return
        # 以身分比對，避免同一監聽器的其他註冊被誤刪
        for index, existing in enumerate(subscriptions):
            if existing is subscription:
                del subscriptions[index]
                break
        if not subscriptions:
            del self._subscriptions[subscription.event_name]
