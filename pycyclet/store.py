import types
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import reactivex
from immutables import Map
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from reactivex import Observable, operators as ops
from reactivex.disposable import Disposable

from .actions import is_action_key, strip_action_marker
from .channel import EventChannel, Subscription
from .dispatcher import ActionDispatcher, default_dispatcher
from .errors import ConfigurationError, StoreError, handle_error
from .state import ImmutableState
from .types import Diff, Listener, StateSelector

# Store 私有通道上唯一的事件名稱
UPDATE_EVENT = "update"

INIT_KEY = "init"


class StoreDefinition(BaseModel):
    """
    Store 的宣告式定義。

    Attributes:
        actions: action 名稱到 handler 的映射，handler 會綁定到 Store
        methods: 方法名稱到函數的映射，安裝為 Store 的實例方法
        init: 可選的初始化鉤子，在 handler 與方法安裝完成後執行一次
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    actions: Dict[str, Callable[..., Any]] = Field(default_factory=dict)
    methods: Dict[str, Callable[..., Any]] = Field(default_factory=dict)
    init: Optional[Callable[..., Any]] = None

    @field_validator("actions")
    @classmethod
    def check_action_names(cls, actions: Dict[str, Callable[..., Any]]) -> Dict[str, Callable[..., Any]]:
        for name in actions:
            if not name:
                raise ValueError("action name must not be empty")
        return actions

    @field_validator("methods")
    @classmethod
    def check_method_names(cls, methods: Dict[str, Callable[..., Any]]) -> Dict[str, Callable[..., Any]]:
        for name in methods:
            if not name.isidentifier():
                raise ValueError(f"method name {name!r} is not a valid identifier")
            if name.startswith("_") or name in STORE_API:
                raise ValueError(f"method name {name!r} shadows the Store API or its internals")
        return methods

    @classmethod
    def from_mapping(cls, definition: Mapping[str, Callable[..., Any]]) -> "StoreDefinition":
        """
        由扁平映射建立定義。

        以 "$" 開頭的鍵是 action handler（去掉前綴即 action 名稱），
        "init" 是初始化鉤子，其餘的鍵都是一般方法。

        Args:
            definition: 名稱到函數的映射

        Returns:
            StoreDefinition 實例
        """
        actions = {}
        methods = {}
        init = None
        for key, fn in definition.items():
            if is_action_key(key):
                actions[strip_action_marker(key)] = fn
            elif key == INIT_KEY:
                init = fn
            else:
                methods[key] = fn
        return cls(actions=actions, methods=methods, init=init)


def _coerce_definition(definition: Union[StoreDefinition, Mapping[str, Any]]) -> StoreDefinition:
    if isinstance(definition, StoreDefinition):
        return definition
    if not isinstance(definition, Mapping):
        raise ConfigurationError(
            "Store definition must be a StoreDefinition or a mapping",
            component="Store",
            received=type(definition).__name__,
        )
    try:
        return StoreDefinition.from_mapping(definition)
    except ValidationError as err:
        raise ConfigurationError(
            "Invalid store definition",
            component="Store",
            errors=[
                {"loc": ".".join(str(part) for part in e["loc"]), "msg": e["msg"]}
                for e in err.errors()
            ],
        ) from err


class Store:
    """
    狀態容器，持有一份不可變狀態，並在每次變更後通知訂閱者。

    狀態只能透過 set()/clear() 改變，兩者都會同步通知所有監聽器。
    action handler 與一般方法都綁定到 Store 實例，其中的 self 永遠是所屬的 Store。
    """

    def __init__(
        self,
        definition: Union[StoreDefinition, Mapping[str, Any]],
        dispatcher: Optional[ActionDispatcher] = None,
    ):
        definition = _coerce_definition(definition)

        self._dispatcher = dispatcher if dispatcher is not None else default_dispatcher
        self._state = ImmutableState.empty()
        self._update_channel = EventChannel()
        # 監聽器 -> Subscription，用於依監聽器身分移除
        self._subscriptions_by_listener: Map = Map()
        self._action_subscriptions: List[Subscription] = []
        self._disposed = False

        for action_name, handler in definition.actions.items():
            self._action_subscriptions.append(
                self._dispatcher.register(action_name, types.MethodType(handler, self))
            )

        for name, method in definition.methods.items():
            setattr(self, name, types.MethodType(method, self))

        # init 在綁定完成之後執行，因此可以呼叫自身方法，也已經能收到 action
        if definition.init is not None:
            try:
                types.MethodType(definition.init, self)()
            except BaseException:
                # 呼叫者拿不到這個 Store，已登記的 handler 必須在這裡取消
                self.dispose()
                raise

    @property
    def dispatcher(self) -> ActionDispatcher:
        return self._dispatcher

    @property
    def state(self) -> ImmutableState:
        """
        獲取當前狀態的快照。

        Returns:
            當前的 ImmutableState
        """
        return self._state

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def get(self, key: str, default: Any = None) -> Any:
        """
        讀取狀態中的一個鍵，缺少時回傳 default。
        """
        return self._state.get(key, default)

    def set(self, diff: Diff, callback: Optional[Callable[[], Any]] = None) -> None:
        """
        將 diff 淺合併進狀態，同步通知所有監聽器，最後呼叫 callback。

        Args:
            diff: 要合併的映射（或 Pydantic 模型、鍵值對序列）
            callback: 通知完成後呼叫的無參數函數

        Raises:
            TypeError: diff 無法合併時由底層容器拋出，狀態保持不變
        """
        self._state = self._state.merge(diff)
        self.notify_listeners()
        if callback is not None:
            callback()

    def clear(self) -> None:
        """將狀態重設為空並通知監聽器。"""
        self._state = ImmutableState.empty()
        self.notify_listeners()

    def add_listener(self, listener: Listener) -> Subscription:
        """
        訂閱狀態變更通知。

        以監聽器身分為鍵：同一個監聽器再次訂閱時，先移除舊的訂閱再建立新的，
        因此每次變更最多只會被通知一次。

        Args:
            listener: 無參數的回調函數

        Returns:
            這筆訂閱的 Subscription

        Raises:
            StoreError: Store 已經 dispose
        """
        if self._disposed:
            raise StoreError("Cannot add a listener to a disposed store", operation="add_listener")

        self.remove_listener(listener)
        subscription = self._update_channel.add_listener(UPDATE_EVENT, listener)
        self._subscriptions_by_listener = self._subscriptions_by_listener.set(listener, subscription)
        return subscription

    def remove_listener(self, listener: Listener) -> None:
        """
        移除該監聽器的訂閱；沒有訂閱時不做任何事。
        """
        subscription = self._subscriptions_by_listener.get(listener)
        if subscription is not None:
            subscription.remove()
            self._subscriptions_by_listener = self._subscriptions_by_listener.delete(listener)

    def notify_listeners(self) -> None:
        """
        不改變狀態，直接通知所有監聽器。

        監聽器拋出的異常會傳回呼叫者，後面的監聽器不會被呼叫。
        """
        self._update_channel.emit(UPDATE_EVENT)

    def listener_count(self) -> int:
        return self._update_channel.listener_count(UPDATE_EVENT)

    def select(self, selector: Optional[StateSelector[Any]] = None) -> Observable:
        """
        選擇狀態的一部分進行觀察。

        Args:
            selector: 接收 ImmutableState 並返回希望觀察的部分；省略時觀察整個狀態

        Returns:
            一個可觀察對象，發送 (舊選擇值, 新選擇值) 元組，只有選擇值改變時才發出

        Raises:
            StoreError: Store 已經 dispose
        """
        if self._disposed:
            raise StoreError("Cannot select from a disposed store", operation="select")

        select_fn = selector if selector is not None else (lambda state: state)

        def subscribe(observer, scheduler=None):
            last = [select_fn(self._state)]

            def on_update():
                previous, last[0] = last[0], select_fn(self._state)
                observer.on_next((previous, last[0]))

            subscription = self._update_channel.add_listener(UPDATE_EVENT, on_update)
            return Disposable(subscription.remove)

        return reactivex.create(subscribe).pipe(
            ops.filter(lambda pair: pair[0] != pair[1]),
        )

    def dispose(self) -> None:
        """
        取消所有 action handler 的登記並移除所有監聽器。

        之後 Store 仍可讀寫狀態，但不會再收到 action，也不能再新增監聽器。
        """
        for subscription in self._action_subscriptions:
            subscription.remove()
        self._action_subscriptions.clear()
        self._update_channel.remove_all_listeners()
        self._subscriptions_by_listener = Map()
        self._disposed = True

    def __repr__(self) -> str:
        return f"Store(state={self._state!r}, listeners={self.listener_count()})"


# Store 自身的公開介面，一般方法不得覆蓋
STORE_API = frozenset(name for name in dir(Store) if not name.startswith("_"))


@handle_error
def create_store(
    definition: Union[StoreDefinition, Mapping[str, Any]],
    dispatcher: Optional[ActionDispatcher] = None,
) -> Store:
    """
    創建一個新的 Store 實例。

    Args:
        definition: StoreDefinition，或以 "$" 前綴標記 action handler 的扁平映射
        dispatcher: 要登記 handler 的分派器；省略時使用行程內預設分派器

    Returns:
        Store: 新創建的 Store 實例
    """
    return Store(definition, dispatcher)
