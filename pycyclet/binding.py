"""
Store 與視圖層之間的綁定介面。

視圖的掛載/卸載生命週期與實際渲染都在核心之外，
這裡只提供視圖層在 attach / detach 時呼叫的兩種綁定形式。
"""
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from .channel import Subscription
from .store import Store
from .types import DeriveState, View


def shallow_equal(a: Any, b: Any) -> bool:
    """
    淺比較兩個映射：鍵集合相同，且每個鍵的值相同（先比身分，再比 ==）。

    非映射的值直接以身分或 == 比較。
    """
    if a is b:
        return True
    if not isinstance(a, Mapping) or not isinstance(b, Mapping):
        return a == b
    if len(a) != len(b):
        return False
    for key, value in a.items():
        if key not in b:
            return False
        other = b[key]
        if value is not other and value != other:
            return False
    return True


class StoreBinding:
    """
    單一 Store、單一方法的綁定。

    on_attach 時把視圖的刷新回調訂閱到 Store，on_detach 時移除那一筆訂閱。
    訂閱按視圖分開記錄，同一個綁定可以同時服務多個視圖。
    """

    def __init__(self, store: Store, method_name: Optional[str] = None):
        self.store = store
        self.method_name = method_name
        self._subscriptions: Dict[int, Subscription] = {}

    def _listener_for(self, view: View) -> Callable[[], Any]:
        if self.method_name:
            return getattr(view, self.method_name)
        return view.force_update

    def on_attach(self, view: View) -> Subscription:
        """
        視圖掛載時呼叫。

        Args:
            view: 要刷新的視圖；預設呼叫其 force_update()

        Returns:
            這個視圖的 Subscription
        """
        self.on_detach(view)
        subscription = self.store.add_listener(self._listener_for(view))
        self._subscriptions[id(view)] = subscription
        return subscription

    def on_detach(self, view: View) -> None:
        """視圖卸載時呼叫；重複呼叫不做任何事。"""
        subscription = self._subscriptions.pop(id(view), None)
        if subscription is not None:
            self.store.remove_listener(subscription.listener)

    def __iter__(self):
        # 讓 on_attach, on_detach = bind_single(...) 這種寫法可用
        return iter((self.on_attach, self.on_detach))


def bind_single(store: Store, method_name: Optional[str] = None) -> StoreBinding:
    """
    建立單一 Store 的綁定。

    Args:
        store: 要訂閱的 Store
        method_name: 視圖上用作監聽器的方法名稱；省略時使用 force_update

    Returns:
        提供 on_attach / on_detach 的 StoreBinding
    """
    return StoreBinding(store, method_name)


class StoreConnection:
    """
    多 Store 衍生綁定的基底類別。

    子類別由 bind_many 產生，類別屬性 component / stores / derive_state 描述綁定內容。
    """

    component: Callable[..., Any]
    stores: Tuple[Store, ...] = ()
    derive_state: DeriveState

    def __init__(self, props: Optional[Mapping[str, Any]] = None):
        self.derive_count = 0
        self.props: Dict[str, Any] = dict(props or {})
        self.state: Dict[str, Any] = dict(self._derive(self.props))
        self.rendered: Any = None
        self.attached = False

    def _derive(self, props: Mapping[str, Any]) -> Mapping[str, Any]:
        self.derive_count += 1
        return self.derive_state(props)

    def attach(self) -> None:
        """掛載：把同一個重算回調訂閱到每一個 Store。"""
        for store in self.stores:
            store.add_listener(self._handle_state_change)
        self.attached = True

    def detach(self) -> None:
        """卸載：從每一個 Store 移除重算回調。"""
        for store in self.stores:
            store.remove_listener(self._handle_state_change)
        self.attached = False

    def receive_props(self, next_props: Mapping[str, Any]) -> None:
        """
        接收新的外部 props；只有與前一次 props 不淺相等時才重算狀態。
        """
        next_props = dict(next_props)
        changed = not shallow_equal(next_props, self.props)
        self.props = next_props
        if changed:
            self.set_state(self._derive(next_props))

    def set_state(self, new_state: Mapping[str, Any]) -> None:
        self.state = {**self.state, **new_state}
        self.force_update()

    def force_update(self) -> None:
        self.rendered = self.render()

    def render(self) -> Any:
        props = dict(self.props)
        props.update(self.state)
        return self.component(**props)

    def _handle_state_change(self) -> None:
        self.set_state(self._derive(self.props))


def bind_many(component: Callable[..., Any], stores: Iterable[Store], derive_state: DeriveState) -> type:
    """
    建立多 Store 衍生綁定的包裝類別。

    Args:
        component: 以關鍵字參數接收合併後 props 的視圖工廠
        stores: 要訂閱的 Store
        derive_state: 由目前 props 計算衍生狀態的純函數

    Returns:
        StoreConnection 的子類別；以外部 props 建構實例
    """
    name = getattr(component, "__name__", "Component")
    return type(
        f"{name}StoreConnection",
        (StoreConnection,),
        {
            "component": staticmethod(component),
            "stores": tuple(stores),
            "derive_state": staticmethod(derive_state),
        },
    )
