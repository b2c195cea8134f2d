"""
不可變狀態容器。

以 immutables.Map 作為底層結構，版本之間共享結構；
merge 永遠回傳新的容器，舊版本不會被修改。
"""
from typing import Any, Iterator, Optional, Tuple, Type, TypeVar

from immutables import Map
from pydantic import BaseModel

from .immutable_utils import freeze_diff, to_dict, to_immutable, to_pydantic

M = TypeVar("M", bound=BaseModel)


class ImmutableState:
    """
    包裝 immutables.Map 的唯讀狀態容器。

    merge 採用淺合併語義：diff 中的鍵覆蓋原有的值，巢狀結構整個替換，不做深度合併。
    寫入的值會先轉為不可變形式（dict -> Map、list -> tuple、set -> frozenset），
    因此讀出的巢狀值無法被就地修改。
    """

    __slots__ = ("_map",)

    def __init__(self, data: Optional[Map] = None):
        object.__setattr__(self, "_map", data if data is not None else Map())

    def __setattr__(self, name, value):
        raise AttributeError(f"'{type(self).__name__}' object is immutable")

    @classmethod
    def empty(cls) -> "ImmutableState":
        """
        建立一個沒有任何鍵的新容器。

        Returns:
            空的 ImmutableState
        """
        return cls()

    @classmethod
    def from_model(cls, model: BaseModel) -> "ImmutableState":
        """
        由 Pydantic 模型建立容器，巢狀結構一併轉為不可變形式。

        Args:
            model: 來源模型

        Returns:
            新的 ImmutableState
        """
        return cls(to_immutable(model))

    def to_model(self, model_class: Type[M]) -> M:
        """
        以目前狀態建立 Pydantic 模型。

        Args:
            model_class: 目標模型類別

        Returns:
            由狀態內容驗證而成的模型實例
        """
        return to_pydantic(self._map, model_class)

    def get(self, key: str, default: Any = None) -> Any:
        """
        依鍵取值，缺少的鍵回傳 default（預設為 None）。
        """
        return self._map.get(key, default)

    def merge(self, diff: Any) -> "ImmutableState":
        """
        將 diff 淺合併到目前狀態，回傳新的容器。

        Args:
            diff: 映射、immutables.Map、ImmutableState、Pydantic 模型或鍵值對序列

        Returns:
            新的 ImmutableState；self 不會被修改

        Raises:
            TypeError: diff 無法作為映射合併時，由底層 Map 直接拋出
        """
        if isinstance(diff, ImmutableState):
            diff = diff._map
        return ImmutableState(self._map.update(freeze_diff(diff)))

    def to_dict(self) -> dict:
        """將狀態轉換為普通字典（遞迴轉換巢狀 Map）。"""
        return to_dict(self._map)

    def keys(self):
        return self._map.keys()

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(self._map.items())

    def __contains__(self, key: object) -> bool:
        return key in self._map

    def __iter__(self) -> Iterator[str]:
        return iter(self._map)

    def __len__(self) -> int:
        return len(self._map)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImmutableState):
            return NotImplemented
        return self._map == other._map

    def __hash__(self) -> int:
        return hash(self._map)

    def __repr__(self) -> str:
        return f"ImmutableState({dict(self._map.items())!r})"
