"""
基於 PyCyclet 的 Action 定義模組。

Action 是一個短暫存在的 (名稱, 位置參數) 值，只在 exec 的扇出過程中流動，
不會被保存或排隊。
"""
from typing import Any, Tuple

from .errors import ActionError

# Store 定義中標記 action handler 的前綴
ACTION_MARKER = "$"


class Action:
    """
    表示一次 exec 所廣播的動作。

    屬性:
        type: 動作名稱
        args: 傳給 handler 的位置參數
    """
    __slots__ = ('type', 'args')

    def __init__(self, type: str, args: Tuple[Any, ...] = ()):
        super().__setattr__('type', type)
        super().__setattr__('args', tuple(args))

    def __setattr__(self, name, value):
        if name not in self.__slots__:
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")
        if hasattr(self, name):
            raise AttributeError(f"Cannot modify immutable instance attribute '{name}'")
        super().__setattr__(name, value)

    def __eq__(self, other):
        if not isinstance(other, Action):
            return False
        return self.type == other.type and self.args == other.args

    def __hash__(self):
        return hash((self.type, self.args))

    def __repr__(self):
        return f"Action(type='{self.type}', args={self.args!r})"


def validate_action_name(action_name: Any) -> str:
    """
    檢查 action 名稱是否為非空字串。

    Args:
        action_name: 要檢查的名稱

    Returns:
        原樣回傳的名稱

    Raises:
        ActionError: 名稱不是字串或為空字串
    """
    if not isinstance(action_name, str) or not action_name:
        raise ActionError("Action name must be a non-empty string", action_type=action_name)
    return action_name


def is_action_key(key: str) -> bool:
    """判斷定義中的鍵是否帶有 action 前綴。"""
    return key.startswith(ACTION_MARKER)


def strip_action_marker(key: str) -> str:
    """去掉 action 前綴，得到 action 名稱。"""
    return key[len(ACTION_MARKER):]
