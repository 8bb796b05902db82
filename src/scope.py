import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from my_types import *

logger = logging.getLogger(__name__)


# 内置函数签名表: name -> (参数类型, 返回类型)
BUILTIN_FUNCTIONS: Dict[str, Tuple[Tuple[TypeDesc, ...], TypeDesc]] = {
    'dekh': ((UNKNOWN,), VOID),     # 实际接受任意个参数
    'lou': ((STRING,), NUMBER),
    'nikal': ((UNKNOWN,), NUMBER),
    'band': ((), VOID),
    'abs': ((NUMBER,), NUMBER),
    'sqrt': ((NUMBER,), NUMBER),
    'pow': ((NUMBER, NUMBER), NUMBER),
    'max': ((NUMBER, NUMBER), NUMBER),
    'min': ((NUMBER, NUMBER), NUMBER),
    'round': ((NUMBER,), NUMBER),
    'random': ((), NUMBER),
}


@dataclass
class Symbol:
    """符号表条目"""
    name: str
    type: TypeDesc
    is_function: bool = False
    is_initialized: bool = True
    param_types: List[TypeDesc] = field(default_factory=list)
    return_type: TypeDesc = VOID
    is_builtin: bool = False


class ScopeManager:
    """
    作用域栈。scopes[0] 是全局作用域，永远不会被弹出，初始化时装入内置函数。
    查找从最内层向外；同一层内不允许重复声明，但允许遮蔽外层的同名符号。
    """

    def __init__(self):
        self.scopes: List[Dict[str, Symbol]] = [{}]
        self._init_builtins()

    def _init_builtins(self):
        for name, (params, ret) in BUILTIN_FUNCTIONS.items():
            self.scopes[0][name] = Symbol(
                name, VOID, is_function=True,
                param_types=list(params), return_type=ret, is_builtin=True,
            )

    def enter_scope(self):
        """进入新作用域"""
        self.scopes.append({})

    def exit_scope(self):
        """退出作用域；只剩全局作用域时什么也不做"""
        if len(self.scopes) > 1:
            self.scopes.pop()

    def define(self, name: str, t: TypeDesc, is_function: bool = False, is_initialized: bool = True) -> bool:
        """在最内层声明符号；同层已存在则返回 False 且不做任何修改"""
        scope = self.scopes[-1]
        if name in scope:
            return False
        scope[name] = Symbol(name, t, is_function=is_function, is_initialized=is_initialized)
        return True

    def lookup(self, name: str) -> Optional[Symbol]:
        """查找符号"""
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        return None

    def update(self, name: str) -> bool:
        """把最近的同名符号标记为已初始化"""
        sym = self.lookup(name)
        if sym is None:
            return False
        sym.is_initialized = True
        return True

    def add_function_signature(self, name: str, param_types: Sequence[TypeDesc], return_type: TypeDesc):
        """
        函数签名总是写入全局作用域，直接覆盖已有条目（后声明者为准），
        包括同名的内置函数。
        """
        existing = self.scopes[0].get(name)
        if existing is not None and existing.is_builtin:
            logger.warning("Function '%s' overrides the built-in of the same name", name)
        self.scopes[0][name] = Symbol(
            name, VOID, is_function=True,
            param_types=list(param_types), return_type=return_type,
        )

    @property
    def depth(self) -> int:
        return len(self.scopes)

    def is_global(self) -> bool:
        """检查当前是否在全局作用域"""
        return len(self.scopes) <= 1
