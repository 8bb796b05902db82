from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from my_types import TypeDesc, UNKNOWN


# Expressions
# 每个表达式节点都带一个 type_tag 槽位，初始为 unknown，在语义分析时写入一次

@dataclass
class NumberLiteral:
    value: float
    line: int = 0
    type_tag: TypeDesc = field(default=UNKNOWN, compare=False)
    def __repr__(self): return f"Number({self.value})"

@dataclass
class StringLiteral:
    value: str
    line: int = 0
    type_tag: TypeDesc = field(default=UNKNOWN, compare=False)
    def __repr__(self): return f"Str({self.value!r})"

@dataclass
class BoolLiteral:
    value: bool
    line: int = 0
    type_tag: TypeDesc = field(default=UNKNOWN, compare=False)
    def __repr__(self): return f"Bool({self.value})"

@dataclass
class Ident:
    name: str
    line: int = 0
    type_tag: TypeDesc = field(default=UNKNOWN, compare=False)
    def __repr__(self): return f"Ident({self.name})"

@dataclass
class BinOp:
    op: str
    left: 'Expr'
    right: 'Expr'
    line: int = 0
    type_tag: TypeDesc = field(default=UNKNOWN, compare=False)
    def __repr__(self): return f"BinOp({self.left} {self.op} {self.right})"

@dataclass
class UnaryOp:
    op: str           # '-' 或 '!'
    operand: 'Expr'
    line: int = 0
    type_tag: TypeDesc = field(default=UNKNOWN, compare=False)
    def __repr__(self): return f"UnaryOp({self.op}{self.operand})"

@dataclass
class Assign:
    """赋值只能以裸标识符为目标；复合赋值在解析时已展开为 name = name OP value"""
    name: str
    value: 'Expr'
    line: int = 0
    type_tag: TypeDesc = field(default=UNKNOWN, compare=False)
    def __repr__(self): return f"Assign({self.name} = {self.value})"

@dataclass
class CallExpr:
    callee: str
    args: List['Expr']
    line: int = 0
    type_tag: TypeDesc = field(default=UNKNOWN, compare=False)
    def __repr__(self): return f"Call({self.callee}({', '.join(map(str, self.args))}))"

@dataclass
class ArrayLiteral:
    items: List['Expr']
    line: int = 0
    type_tag: TypeDesc = field(default=UNKNOWN, compare=False)
    def __repr__(self): return f"Array({self.items})"

@dataclass
class ObjectLiteral:
    fields: List[Tuple[str, 'Expr']]  # [(field_name, value_expr), ...]
    line: int = 0
    type_tag: TypeDesc = field(default=UNKNOWN, compare=False)
    def __repr__(self): return f"ObjectLiteral({self.fields})"

@dataclass
class IndexExpr:
    base: str         # 只允许标识符作为被索引对象
    index: 'Expr'
    line: int = 0
    type_tag: TypeDesc = field(default=UNKNOWN, compare=False)
    def __repr__(self): return f"Index({self.base}[{self.index}])"


Expr = Union[
    NumberLiteral, StringLiteral, BoolLiteral, Ident, BinOp, UnaryOp,
    Assign, CallExpr, ArrayLiteral, ObjectLiteral, IndexExpr,
]


# Statements

@dataclass
class VarDecl:
    name: str
    init: Optional[Expr]
    line: int = 0
    def __repr__(self): return f"VarDecl({self.name}, init={self.init})"

@dataclass
class FuncDecl:
    name: str
    params: List[str]
    body: List['Stmt']
    line: int = 0
    def __repr__(self): return f"Func({self.name}, params={self.params}, body={self.body})"

@dataclass
class IfStmt:
    cond: Expr
    then_block: List['Stmt']
    else_block: List['Stmt']
    line: int = 0
    def __repr__(self): return f"If({self.cond}, then={self.then_block}, else={self.else_block})"

@dataclass
class LoopStmt:
    cond: Expr
    block: List['Stmt']
    line: int = 0
    def __repr__(self): return f"Loop({self.cond}, {self.block})"

@dataclass
class ReturnStmt:
    expr: Optional[Expr]
    line: int = 0
    def __repr__(self): return f"Return({self.expr})"

@dataclass
class ExprStmt:
    expr: Expr
    line: int = 0
    def __repr__(self): return f"ExprStmt({self.expr})"


Stmt = Union[VarDecl, FuncDecl, IfStmt, LoopStmt, ReturnStmt, ExprStmt]


@dataclass
class Program:
    stmts: List[Stmt]
    def __repr__(self): return f"Program({self.stmts})"
