import logging
from typing import List, Optional

from ast_nodes import *
from errors import Diagnostic, DiagnosticKind, SemanticError
from my_types import *
from scope import ScopeManager, Symbol

logger = logging.getLogger(__name__)

ARITHMETIC_OPS = ('+', '-', '*', '/', '%')
COMPARISON_OPS = ('<', '<=', '>', '>=')
EQUALITY_OPS = ('==', '!=')
LOGICAL_OPS = ('&&', '||')


class DiagnosticSink:
    """按顺序收集诊断，不中断遍历"""

    def __init__(self):
        self.diagnostics: List[Diagnostic] = []

    def report(self, kind: DiagnosticKind, message: str, line: Optional[int] = None):
        diag = Diagnostic(kind, message, line or None)
        logger.debug("%s", diag)
        self.diagnostics.append(diag)


class ExpressionAnalyzer:
    """表达式分析 - 被 SemanticAnalyzer 组合使用"""

    def __init__(self, scope: ScopeManager, sink: DiagnosticSink):
        self.scope = scope
        self.sink = sink

    def analyze(self, expr: Optional[Expr]) -> TypeDesc:
        """表达式分析主入口，结果写回节点的 type_tag"""
        if expr is None:
            return UNKNOWN
        method_name = f'_analyze_{expr.__class__.__name__}'
        method = getattr(self, method_name, self._analyze_generic)
        result = method(expr)
        expr.type_tag = result
        return result

    def _analyze_generic(self, expr) -> TypeDesc:
        raise SemanticError(f"Unknown expression node: {type(expr).__name__}", getattr(expr, 'line', None))

    def _report(self, kind: DiagnosticKind, message: str, node):
        self.sink.report(kind, message, getattr(node, 'line', None))

    # ==================== 字面量 ====================

    def _analyze_NumberLiteral(self, expr: NumberLiteral) -> TypeDesc:
        return NUMBER

    def _analyze_StringLiteral(self, expr: StringLiteral) -> TypeDesc:
        return STRING

    def _analyze_BoolLiteral(self, expr: BoolLiteral) -> TypeDesc:
        return BOOLEAN

    def _analyze_ArrayLiteral(self, expr: ArrayLiteral) -> TypeDesc:
        # 不追踪元素类型，但元素里的问题照样报告
        for item in expr.items:
            self.analyze(item)
        return ARRAY

    def _analyze_ObjectLiteral(self, expr: ObjectLiteral) -> TypeDesc:
        for _, fval in expr.fields:
            self.analyze(fval)
        return OBJECT

    # ==================== 标识符与运算 ====================

    def _analyze_Ident(self, expr: Ident) -> TypeDesc:
        sym = self.scope.lookup(expr.name)
        if sym is None:
            self._report(DiagnosticKind.UNDEFINED_SYMBOL, f"Undefined variable '{expr.name}'", expr)
            return UNKNOWN
        return sym.type

    def _analyze_BinOp(self, expr: BinOp) -> TypeDesc:
        # 左结合链沿左侧逐层迭代，长链不会加深调用栈
        chain = []
        node = expr
        while isinstance(node, BinOp):
            chain.append(node)
            node = node.left

        left_type = self.analyze(node)
        for binop in reversed(chain):
            right_type = self.analyze(binop.right)
            left_type = self._binop_type(binop, left_type, right_type)
            binop.type_tag = left_type
        return left_type

    def _binop_type(self, expr: BinOp, left_type: TypeDesc, right_type: TypeDesc) -> TypeDesc:
        if expr.op in ARITHMETIC_OPS:
            # void 也放行，避免递归调用的返回值误报
            self._check_operands(expr, left_type, right_type, (NUMBER, UNKNOWN, VOID), 'number')
            return NUMBER

        if expr.op in COMPARISON_OPS:
            self._check_operands(expr, left_type, right_type, (NUMBER, UNKNOWN), 'number')
            return BOOLEAN

        if expr.op in EQUALITY_OPS:
            return BOOLEAN

        if expr.op in LOGICAL_OPS:
            self._check_operands(expr, left_type, right_type, (BOOLEAN, UNKNOWN), 'boolean')
            return BOOLEAN

        raise SemanticError(f"Unknown binary operator: {expr.op}", expr.line)

    def _check_operands(self, expr: BinOp, left: TypeDesc, right: TypeDesc, allowed, expected: str):
        """每一侧单独检查，各自报告一次"""
        for side, t in (('Left', left), ('Right', right)):
            if not t.one_of(*allowed):
                self._report(
                    DiagnosticKind.INVALID_OPERAND_TYPE,
                    f"{side} operand of '{expr.op}' must be {expected}, got {t}",
                    expr,
                )

    def _analyze_UnaryOp(self, expr: UnaryOp) -> TypeDesc:
        operand_type = self.analyze(expr.operand)

        if expr.op == '-':
            if not operand_type.one_of(NUMBER, UNKNOWN):
                self._report(DiagnosticKind.INVALID_OPERAND_TYPE,
                             f"Operand of '-' must be number, got {operand_type}", expr)
            return NUMBER
        if expr.op == '!':
            if not operand_type.one_of(BOOLEAN, UNKNOWN):
                self._report(DiagnosticKind.INVALID_OPERAND_TYPE,
                             f"Operand of '!' must be boolean, got {operand_type}", expr)
            return BOOLEAN
        raise SemanticError(f"Unknown unary operator: {expr.op}", expr.line)

    def _analyze_Assign(self, expr: Assign) -> TypeDesc:
        sym = self.scope.lookup(expr.name)
        if sym is None:
            self._report(DiagnosticKind.UNDEFINED_SYMBOL, f"Undefined variable '{expr.name}'", expr)
            return UNKNOWN

        value_type = self.analyze(expr.value)
        if sym.type.conflicts_with(value_type):
            self._report(
                DiagnosticKind.TYPE_MISMATCH,
                f"Type mismatch in assignment to '{expr.name}': expected {sym.type}, got {value_type}",
                expr,
            )

        self.scope.update(expr.name)
        return value_type

    def _analyze_IndexExpr(self, expr: IndexExpr) -> TypeDesc:
        sym = self.scope.lookup(expr.base)
        if sym is None:
            self._report(DiagnosticKind.UNDEFINED_SYMBOL, f"Undefined array '{expr.base}'", expr)
            return UNKNOWN

        if not sym.type.one_of(ARRAY, UNKNOWN):
            self._report(DiagnosticKind.ARRAY_NOT_INDEXABLE,
                         f"Cannot index non-array type '{expr.base}'", expr)

        index_type = self.analyze(expr.index)
        if not index_type.one_of(NUMBER, UNKNOWN):
            self._report(DiagnosticKind.INVALID_OPERAND_TYPE,
                         f"Array index must be number, got {index_type}", expr)

        # 不追踪元素类型
        return UNKNOWN

    # ==================== 函数调用 ====================

    def _analyze_CallExpr(self, expr: CallExpr) -> TypeDesc:
        sym = self.scope.lookup(expr.callee)
        if sym is None:
            self._report(DiagnosticKind.UNDEFINED_SYMBOL, f"Undefined function '{expr.callee}'", expr)
            return UNKNOWN

        if not sym.is_function:
            self._report(DiagnosticKind.NOT_A_FUNCTION, f"'{expr.callee}' is not a function", expr)
            return UNKNOWN

        # 内置函数各有固定的检查规则；被用户函数覆盖后按普通函数处理
        if sym.is_builtin:
            check = getattr(self, f'_call_{expr.callee}', None)
            if check is not None:
                return check(expr, sym)

        return self._call_user_function(expr, sym)

    def _call_user_function(self, expr: CallExpr, sym: Symbol) -> TypeDesc:
        expected = len(sym.param_types)
        if len(expr.args) != expected:
            self._report(
                DiagnosticKind.ARITY_MISMATCH,
                f"Function '{expr.callee}' expects {expected} arguments, got {len(expr.args)}",
                expr,
            )
        # 参数类型全是 unknown，只检查数量
        for arg in expr.args:
            self.analyze(arg)
        return sym.return_type

    def _expect_arity(self, expr: CallExpr, count: int) -> bool:
        if len(expr.args) == count:
            return True
        noun = 'argument' if count == 1 else 'arguments'
        self._report(
            DiagnosticKind.ARITY_MISMATCH,
            f"{expr.callee}() expects {count} {noun}, got {len(expr.args)}",
            expr,
        )
        return False

    def _expect_numeric_args(self, expr: CallExpr):
        for arg in expr.args:
            arg_type = self.analyze(arg)
            if not arg_type.one_of(NUMBER, UNKNOWN):
                self._report(
                    DiagnosticKind.INVALID_OPERAND_TYPE,
                    f"{expr.callee}() expects number argument, got {arg_type}",
                    expr,
                )

    def _call_dekh(self, expr: CallExpr, sym: Symbol) -> TypeDesc:
        # 任意个、任意类型的参数
        for arg in expr.args:
            self.analyze(arg)
        return VOID

    def _call_lou(self, expr: CallExpr, sym: Symbol) -> TypeDesc:
        if expr.args:
            self.analyze(expr.args[0])
        return NUMBER

    def _call_nikal(self, expr: CallExpr, sym: Symbol) -> TypeDesc:
        if self._expect_arity(expr, 1):
            self.analyze(expr.args[0])
        return NUMBER

    def _call_band(self, expr: CallExpr, sym: Symbol) -> TypeDesc:
        return VOID

    def _call_random(self, expr: CallExpr, sym: Symbol) -> TypeDesc:
        return NUMBER

    def _call_unary_math(self, expr: CallExpr, sym: Symbol) -> TypeDesc:
        if self._expect_arity(expr, 1):
            self._expect_numeric_args(expr)
        return NUMBER

    def _call_binary_math(self, expr: CallExpr, sym: Symbol) -> TypeDesc:
        if self._expect_arity(expr, 2):
            self._expect_numeric_args(expr)
        return NUMBER

    _call_abs = _call_sqrt = _call_round = _call_unary_math
    _call_pow = _call_max = _call_min = _call_binary_math


class SemanticAnalyzer:
    """
    语义分析器主类：自顶向下遍历一次，维护作用域栈，收集诊断。
    普通语义问题只记录不中断；SemanticError 表示无法继续的致命条件，交给调用方处理。
    """

    def __init__(self, entry_point: str = 'main', require_entry_point: bool = True):
        self.scope = ScopeManager()
        self.sink = DiagnosticSink()
        self.entry_point = entry_point
        self.require_entry_point = require_entry_point

        self.in_function = False
        self.current_return_type: TypeDesc = VOID

        self.expr_analyzer = ExpressionAnalyzer(self.scope, self.sink)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return self.sink.diagnostics

    @property
    def errors(self) -> List[str]:
        return [str(d) for d in self.sink.diagnostics]

    def analyze(self, program: Program) -> bool:
        """
        主分析入口
        返回 True 表示没有任何诊断
        """
        for stmt in program.stmts:
            self._analyze_stmt(stmt)

        if self.require_entry_point and self.scope.lookup(self.entry_point) is None:
            self.sink.report(
                DiagnosticKind.MISSING_MAIN,
                f"Main function 'kaam {self.entry_point}()' not found",
            )

        return not self.sink.diagnostics

    def _analyze_stmt(self, stmt: Stmt):
        """语句分析分发"""
        method_name = f'_analyze_{stmt.__class__.__name__}'
        method = getattr(self, method_name, self._analyze_generic)
        method(stmt)

    def _analyze_generic(self, stmt):
        raise SemanticError(f"Unknown statement node: {type(stmt).__name__}", getattr(stmt, 'line', None))

    def _analyze_block(self, stmts: List[Stmt]):
        """在新作用域中分析语句块"""
        self.scope.enter_scope()
        for s in stmts:
            self._analyze_stmt(s)
        self.scope.exit_scope()

    def _analyze_VarDecl(self, node: VarDecl):
        """变量声明分析"""
        var_type = UNKNOWN
        if node.init is not None:
            var_type = self.expr_analyzer.analyze(node.init)

        if not self.scope.define(node.name, var_type, is_initialized=node.init is not None):
            self.sink.report(
                DiagnosticKind.REDEFINITION,
                f"Variable '{node.name}' already defined in current scope",
                node.line,
            )

    def _analyze_FuncDecl(self, node: FuncDecl):
        """函数定义分析"""
        # 参数类型一律记为 unknown，返回类型记为 void
        self.scope.add_function_signature(node.name, [UNKNOWN] * len(node.params), VOID)

        self.scope.enter_scope()
        prev_in_function = self.in_function
        prev_return_type = self.current_return_type
        self.in_function = True
        self.current_return_type = UNKNOWN

        for pname in node.params:
            if not self.scope.define(pname, UNKNOWN):
                self.sink.report(
                    DiagnosticKind.REDEFINITION,
                    f"Parameter '{pname}' already defined in function '{node.name}'",
                    node.line,
                )

        for s in node.body:
            self._analyze_stmt(s)

        self.in_function = prev_in_function
        self.current_return_type = prev_return_type
        self.scope.exit_scope()

    def _check_condition(self, cond: Expr, what: str, line: int):
        cond_type = self.expr_analyzer.analyze(cond)
        if not cond_type.one_of(BOOLEAN, UNKNOWN, VOID):
            self.sink.report(
                DiagnosticKind.INVALID_CONDITION_TYPE,
                f"{what} condition must be boolean, got {cond_type}",
                line,
            )

    def _analyze_IfStmt(self, node: IfStmt):
        """If 语句分析"""
        self._check_condition(node.cond, 'If', node.line)
        self._analyze_block(node.then_block)
        if node.else_block:
            self._analyze_block(node.else_block)

    def _analyze_LoopStmt(self, node: LoopStmt):
        """daura 循环分析"""
        self._check_condition(node.cond, 'Loop', node.line)
        self._analyze_block(node.block)

    def _analyze_ReturnStmt(self, node: ReturnStmt):
        """Return 语句分析"""
        if not self.in_function:
            self.sink.report(DiagnosticKind.RETURN_OUTSIDE_FUNCTION, "Return statement outside function", node.line)
            return
        # 只为副作用分析返回值，不与函数返回类型统一
        if node.expr is not None:
            self.expr_analyzer.analyze(node.expr)

    def _analyze_ExprStmt(self, node: ExprStmt):
        """表达式语句分析"""
        self.expr_analyzer.analyze(node.expr)
