"""
不可變結構轉換工具。

Store 狀態中的值一律以不可變形式保存：dict 轉為 Map、list 轉為 tuple、set 轉為 frozenset，
Pydantic 模型先取出欄位再轉換。讀出時可用 to_dict / to_pydantic 轉回可變形式。
"""
from typing import Any, Mapping, Type, TypeVar

from immutables import Map
from pydantic import BaseModel

M = TypeVar('M', bound=BaseModel)


def to_immutable(obj: Any) -> Any:
    """遞迴地將值轉換為不可變形式；純量原樣返回。"""
    if isinstance(obj, BaseModel):
        return Map({name: to_immutable(value) for name, value in model_fields(obj).items()})
    if isinstance(obj, (dict, Map)):
        return Map({k: to_immutable(v) for k, v in obj.items()})
    if isinstance(obj, (list, tuple)):
        return tuple(to_immutable(i) for i in obj)
    if isinstance(obj, (set, frozenset)):
        return frozenset(to_immutable(i) for i in obj)
    return obj


def freeze_diff(diff: Any) -> Any:
    """
    凍結 diff 的每一個頂層值，供淺合併使用。

    鍵的集合與頂層結構不變，只把值換成不可變形式，因此合併仍是逐鍵整個替換。
    無法辨識為映射的 diff 原樣返回，交給 Map.update 決定是否拋出 TypeError。

    Args:
        diff: 映射、Pydantic 模型或鍵值對序列

    Returns:
        可直接傳給 Map.update 的結構
    """
    if isinstance(diff, BaseModel):
        diff = model_fields(diff)
    if isinstance(diff, (Mapping, Map)):
        return {k: to_immutable(v) for k, v in diff.items()}
    if isinstance(diff, (list, tuple)):
        return [(k, to_immutable(v)) for k, v in diff]
    return diff


def to_dict(obj: Any) -> Any:
    """將 Map 及其巢狀結構轉換為普通字典與列表"""
    if isinstance(obj, Map):
        return {k: to_dict(v) for k, v in obj.items()}
    if isinstance(obj, tuple):
        return [to_dict(i) for i in obj]
    if isinstance(obj, frozenset):
        return {to_dict(i) for i in obj}
    return obj


def to_pydantic(map_obj: Map, model_class: Type[M]) -> M:
    """以 Map 的內容建立 Pydantic 模型"""
    return model_class.model_validate(to_dict(map_obj))


def model_fields(model: BaseModel) -> dict:
    """取出 Pydantic 模型的頂層欄位，巢狀模型保持原樣"""
    return {name: getattr(model, name) for name in type(model).model_fields}
