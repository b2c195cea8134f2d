"""
PyCyclet：單向資料流的狀態容器。

Store 持有不可變狀態，只在收到分派器廣播的具名 action 時變更，並在每次變更後通知訂閱者。
"""
from .errors import (
    CycletError, ActionError, StoreError, MiddlewareError, ConfigurationError,
    ErrorHandler, global_error_handler, handle_error
)
from .actions import Action, ACTION_MARKER
from .state import ImmutableState
from .channel import EventChannel, Subscription
from .dispatcher import ActionDispatcher, default_dispatcher, exec_action
from .middleware import (
    BaseMiddleware, LoggerMiddleware, ErrorMiddleware, PerformanceMonitorMiddleware
)
from .store import Store, StoreDefinition, create_store
from .binding import StoreBinding, StoreConnection, bind_single, bind_many, shallow_equal
from .immutable_utils import to_immutable, to_dict, to_pydantic

__version__ = "0.1.0"

__all__ = [
    # Errors
    "CycletError", "ActionError", "StoreError", "MiddlewareError", "ConfigurationError",
    "ErrorHandler", "global_error_handler", "handle_error",

    # Actions
    "Action", "ACTION_MARKER",

    # State
    "ImmutableState",

    # Channel
    "EventChannel", "Subscription",

    # Dispatcher
    "ActionDispatcher", "default_dispatcher", "exec_action",

    # Middleware
    "BaseMiddleware", "LoggerMiddleware", "ErrorMiddleware", "PerformanceMonitorMiddleware",

    # Store
    "Store", "StoreDefinition", "create_store",

    # Binding
    "StoreBinding", "StoreConnection", "bind_single", "bind_many", "shallow_equal",

    # Immutable Utils
    "to_immutable", "to_dict", "to_pydantic",
]
