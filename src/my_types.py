from dataclasses import dataclass


@dataclass(frozen=True)
class TypeDesc:
    """
    类型标签（coarse type tag）：
    - kind: 'number', 'string', 'boolean', 'array', 'object', 'void', 'nil', 'unknown'
    'unknown' 表示尚未确定，类型规则对它一律放行
    """
    kind: str

    def __repr__(self):
        return self.kind

    def __str__(self):
        return self.kind

    def is_concrete(self) -> bool:
        return self.kind != 'unknown'

    def one_of(self, *types: 'TypeDesc') -> bool:
        return any(self.kind == t.kind for t in types)

    def conflicts_with(self, other: 'TypeDesc') -> bool:
        """两边都已确定且不同才算冲突"""
        if other is None:
            return False
        return self.is_concrete() and other.is_concrete() and self.kind != other.kind


# 基础类型常量
NUMBER = TypeDesc('number')
STRING = TypeDesc('string')
BOOLEAN = TypeDesc('boolean')
ARRAY = TypeDesc('array')
OBJECT = TypeDesc('object')
VOID = TypeDesc('void')
NIL = TypeDesc('nil')
UNKNOWN = TypeDesc('unknown')
