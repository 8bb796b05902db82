from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DiagnosticKind(Enum):
    """诊断类别"""
    REDEFINITION = 'Redefinition'
    UNDEFINED_SYMBOL = 'UndefinedSymbol'
    TYPE_MISMATCH = 'TypeMismatch'
    ARITY_MISMATCH = 'ArityMismatch'
    INVALID_OPERAND_TYPE = 'InvalidOperandType'
    INVALID_CONDITION_TYPE = 'InvalidConditionType'
    RETURN_OUTSIDE_FUNCTION = 'ReturnOutsideFunction'
    NOT_A_FUNCTION = 'NotAFunction'
    ARRAY_NOT_INDEXABLE = 'ArrayNotIndexable'
    MISSING_MAIN = 'MissingMain'
    # 终止性条目：整个分析被中断时只产生这一条
    SYNTAX_ERROR = 'SyntaxError'
    INTERNAL_ERROR = 'InternalError'

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    line: Optional[int] = None

    @property
    def is_fatal(self) -> bool:
        return self.kind in (DiagnosticKind.SYNTAX_ERROR, DiagnosticKind.INTERNAL_ERROR)

    def __str__(self):
        if self.line:
            return f"{self.kind}: {self.message} (line {self.line})"
        return f"{self.kind}: {self.message}"


class ParseError(Exception):
    """语法错误，遇到第一个即终止解析"""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(str(self))

    def __str__(self):
        if self.line:
            return f"{self.message} at line {self.line}"
        return self.message

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(DiagnosticKind.SYNTAX_ERROR, str(self))


class SemanticError(Exception):
    """分析过程中无法继续的致命条件（普通语义问题走诊断列表，不抛异常）"""

    def __init__(self, message: str, line: Optional[int] = None):
        self.message = message
        self.line = line
        super().__init__(message)

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(DiagnosticKind.INTERNAL_ERROR, self.message, self.line)
