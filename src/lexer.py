import logging
from dataclasses import dataclass
from typing import Iterator, List

from ply import lex

logger = logging.getLogger(__name__)

reserved = {
    'banao': 'BANAO',     # 声明变量
    'kaam': 'KAAM',       # 函数
    'agar': 'AGAR',       # if
    'warnah': 'WARNAH',   # else
    'daura': 'DAURA',     # while
    'wapas': 'WAPAS',     # return
    'dekh': 'DEKH',       # 打印
    'lou': 'LOU',         # 输入
    'haan': 'HAAN',       # true
    'na': 'NA',           # false
    'band': 'BAND',       # 退出
}

operators = [
    'PLUS', 'MINUS', 'STAR', 'SLASH', 'PERCENT',
    'ASSIGN', 'PLUS_ASSIGN', 'MINUS_ASSIGN', 'STAR_ASSIGN', 'SLASH_ASSIGN',
    'EQ', 'NE', 'LT', 'GT', 'LE', 'GE',
    'AND', 'OR', 'NOT',
    'LPAREN', 'RPAREN', 'LBRACE', 'RBRACE', 'LBRACKET', 'RBRACKET',
    'SEMICOLON', 'COMMA', 'COLON', 'DOT',
]

tokens = [
    'NUMBER', 'STRING', 'IDENTIFIER',
    'UNKNOWN',
] + operators + list(reserved.values())

# 双字符运算符的正则更长，PLY 会优先尝试
t_PLUS_ASSIGN = r'\+='
t_MINUS_ASSIGN = r'-='
t_STAR_ASSIGN = r'\*='
t_SLASH_ASSIGN = r'/='
t_EQ = r'=='
t_NE = r'!='
t_LE = r'<='
t_GE = r'>='
t_AND = r'&&'
t_OR = r'\|\|'

t_PLUS = r'\+'
t_MINUS = r'-'
t_STAR = r'\*'
t_SLASH = r'/'
t_PERCENT = r'%'
t_ASSIGN = r'='
t_LT = r'<'
t_GT = r'>'
t_NOT = r'!'

t_LPAREN = r'\('
t_RPAREN = r'\)'
t_LBRACE = r'\{'
t_RBRACE = r'\}'
t_LBRACKET = r'\['
t_RBRACKET = r'\]'
t_SEMICOLON = r';'
t_COMMA = r','
t_COLON = r':'
t_DOT = r'\.'

t_ignore = ' \t\r\f\v'


def t_newline(t):
    r'\n+'
    t.lexer.lineno += len(t.value)
    t.lexer.line_start = t.lexpos + len(t.value)


def t_comment(t):
    r'//[^\n]*'
    pass


def t_STRING(t):
    r'"[^"]*"?|\'[^\']*\'?'
    raw = t.value
    # 跨行字符串：先按起始行算好列号，再移动行首位置
    t.column = t.lexpos - t.lexer.line_start + 1
    if '\n' in raw:
        t.lexer.lineno += raw.count('\n')
        t.lexer.line_start = t.lexpos + raw.rfind('\n') + 1
    if len(raw) >= 2 and raw[-1] == raw[0]:
        t.value = raw[1:-1]
    else:
        # 未闭合的字符串：保留已读取的内容，不报错
        logger.debug("Unterminated string literal starting at line %d", t.lineno)
        t.value = raw[1:]
    return t


def t_NUMBER(t):
    r'\d[\d.]*'
    return t


def t_IDENTIFIER(t):
    r'[A-Za-z_][A-Za-z0-9_]*'
    t.type = reserved.get(t.value, 'IDENTIFIER')
    return t


def t_error(t):
    # 无法识别的单个字符（包括落单的 & 和 |）作为 UNKNOWN 记号返回
    logger.debug("Unrecognized character %r at line %d", t.value[0], t.lineno)
    t.type = 'UNKNOWN'
    t.value = t.value[0]
    t.lexer.skip(1)
    return t


lexer = lex.lex()
lexer.line_start = 0    # 当前行首在源码中的偏移，由 t_newline / t_STRING 维护


KEYWORD_TYPES = frozenset(reserved.values())
OPERATOR_TYPES = frozenset(operators)
LITERAL_TYPES = frozenset(['NUMBER', 'STRING'])


@dataclass(frozen=True)
class Token:
    type: str
    value: str
    line: int
    column: int

    @property
    def kind(self) -> str:
        """粗粒度的记号类别"""
        if self.type in KEYWORD_TYPES:
            return 'keyword'
        if self.type in OPERATOR_TYPES:
            return 'operator'
        if self.type in LITERAL_TYPES:
            return 'literal'
        if self.type == 'IDENTIFIER':
            return 'identifier'
        if self.type == 'EOF':
            return 'eof'
        return 'unrecognized'

    def __repr__(self):
        return f"Token({self.type}, {self.value!r}, {self.line}:{self.column})"


def _column(lx, tok) -> int:
    return getattr(tok, 'column', tok.lexpos - lx.line_start + 1)


def tokenize(source: str) -> Iterator[Token]:
    """
    惰性地产生记号，最后一定是一个 EOF 记号。
    每次调用都基于模块级 lexer 的新副本，从头开始。
    """
    lx = lexer.clone()
    lx.lineno = 1
    lx.line_start = 0
    lx.input(source)

    while True:
        tok = lx.token()
        if tok is None:
            break
        yield Token(tok.type, tok.value, tok.lineno, _column(lx, tok))

    yield Token('EOF', '', lx.lineno, len(source) - lx.line_start + 1)


def token_list(source: str) -> List[Token]:
    return list(tokenize(source))
