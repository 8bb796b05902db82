import logging
import re
from typing import Iterable, Iterator, List, Optional, Union

from ast_nodes import *
from errors import ParseError
from lexer import Token, tokenize

logger = logging.getLogger(__name__)

_number_prefix_re = re.compile(r'\d+(?:\.\d*)?')

# 复合赋值 -> 对应的二元运算符
COMPOUND_ASSIGN = {
    'PLUS_ASSIGN': '+',
    'MINUS_ASSIGN': '-',
    'STAR_ASSIGN': '*',
    'SLASH_ASSIGN': '/',
}

# 可以当作普通标识符使用的关键字（内置函数名）
BUILTIN_KEYWORDS = ('DEKH', 'LOU', 'BAND')


def _to_number(text: str) -> float:
    """宽松转换：取最长的合法数字前缀，1.2.3 -> 1.2"""
    match = _number_prefix_re.match(text)
    return float(match.group(0)) if match else 0.0


class Parser:
    """
    递归下降解析器，优先级从低到高：
    assignment -> || -> && -> == != -> < <= > >= -> + - -> * / % -> unary -> postfix -> primary
    遇到第一个语法错误直接抛出 ParseError，不做错误恢复
    """

    def __init__(self, tokens: Iterable[Token]):
        self._tokens: Iterator[Token] = iter(tokens)
        self.current: Token = next(self._tokens)
        self.previous: Optional[Token] = None

    # ==================== 记号游标 ====================

    def is_at_end(self) -> bool:
        return self.current.type == 'EOF'

    def check(self, *types: str) -> bool:
        if self.is_at_end():
            return False
        return self.current.type in types

    def advance(self) -> Token:
        self.previous = self.current
        if not self.is_at_end():
            self.current = next(self._tokens)
        return self.previous

    def match(self, *types: str) -> bool:
        if self.check(*types):
            self.advance()
            return True
        return False

    def consume(self, type_: str, message: str) -> Token:
        if self.check(type_):
            return self.advance()
        raise self.error(message)

    def error(self, message: str) -> ParseError:
        return ParseError(message, self.current.line, self.current.column)

    # ==================== 程序结构 ====================

    def parse(self) -> Program:
        stmts = []
        while not self.is_at_end():
            stmt = self.parse_statement()
            if stmt is not None:
                stmts.append(stmt)
        return Program(stmts)

    def parse_statement(self) -> Optional[Stmt]:
        if self.match('BANAO'):
            return self.parse_var_decl()
        if self.match('KAAM'):
            return self.parse_func_decl()
        if self.match('AGAR'):
            return self.parse_if()
        if self.match('DAURA'):
            return self.parse_loop()
        if self.match('WAPAS'):
            return self.parse_return()
        if self.check('LBRACE'):
            self.parse_standalone_block()
            return None
        return self.parse_expr_stmt()

    def parse_block(self, what: str) -> List[Stmt]:
        """'{' stmt* '}'，what 用于错误信息"""
        self.consume('LBRACE', f"Expected '{{' before {what}")
        stmts = []
        while not self.check('RBRACE') and not self.is_at_end():
            stmt = self.parse_statement()
            if stmt is not None:
                stmts.append(stmt)
        self.consume('RBRACE', f"Expected '}}' after {what}")
        return stmts

    def parse_standalone_block(self):
        # 独立的 { ... } 块：照常解析，但内容不挂到语法树上
        line = self.current.line
        self.consume('LBRACE', "Expected '{'")
        discarded = 0
        while not self.check('RBRACE') and not self.is_at_end():
            if self.parse_statement() is not None:
                discarded += 1
        self.consume('RBRACE', "Expected '}'")
        logger.debug("Discarded standalone block at line %d (%d statements)", line, discarded)

    # ==================== 语句 ====================

    def parse_var_decl(self) -> VarDecl:
        line = self.previous.line
        name = self.consume('IDENTIFIER', "Expected identifier")
        init = None
        if self.match('ASSIGN'):
            init = self.parse_expression()
        self.consume('SEMICOLON', "Expected ';' after variable declaration")
        return VarDecl(name.value, init, line)

    def parse_func_decl(self) -> FuncDecl:
        line = self.previous.line
        name = self.consume('IDENTIFIER', "Expected function name")
        self.consume('LPAREN', "Expected '(' after function name")
        params = []
        if not self.check('RPAREN'):
            while True:
                params.append(self.consume('IDENTIFIER', "Expected parameter name").value)
                if not self.match('COMMA'):
                    break
        self.consume('RPAREN', "Expected ')' after parameters")
        body = self.parse_block('function body')
        return FuncDecl(name.value, params, body, line)

    def parse_if(self) -> IfStmt:
        line = self.previous.line
        self.consume('LPAREN', "Expected '(' after 'agar'")
        cond = self.parse_expression()
        self.consume('RPAREN', "Expected ')' after if condition")
        then_block = self.parse_block('if body')
        else_block = []
        if self.match('WARNAH'):
            else_block = self.parse_block('else body')
        return IfStmt(cond, then_block, else_block, line)

    def parse_loop(self) -> LoopStmt:
        line = self.previous.line
        self.consume('LPAREN', "Expected '(' after 'daura'")
        cond = self.parse_expression()
        self.consume('RPAREN', "Expected ')' after loop condition")
        block = self.parse_block('loop body')
        return LoopStmt(cond, block, line)

    def parse_return(self) -> ReturnStmt:
        line = self.previous.line
        expr = None
        if not self.check('SEMICOLON'):
            expr = self.parse_expression()
        self.consume('SEMICOLON', "Expected ';' after return statement")
        return ReturnStmt(expr, line)

    def parse_expr_stmt(self) -> ExprStmt:
        line = self.current.line
        expr = self.parse_expression()
        self.consume('SEMICOLON', "Expected ';' after expression statement")
        return ExprStmt(expr, line)

    # ==================== 表达式 ====================

    def parse_expression(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        expr = self.parse_logical_or()

        if self.match('ASSIGN'):
            op_token = self.previous
            if not isinstance(expr, Ident):
                raise ParseError("Invalid assignment target", op_token.line, op_token.column)
            value = self.parse_assignment()
            return Assign(expr.name, value, expr.line)

        if self.match(*COMPOUND_ASSIGN):
            op_token = self.previous
            if not isinstance(expr, Ident):
                raise ParseError("Invalid assignment target", op_token.line, op_token.column)
            value = self.parse_assignment()
            desugared = BinOp(COMPOUND_ASSIGN[op_token.type], expr, value, expr.line)
            return Assign(expr.name, desugared, expr.line)

        return expr

    def _parse_binary(self, operand, *types: str) -> Expr:
        """左结合的二元运算层"""
        left = operand()
        while self.match(*types):
            op = self.previous
            right = operand()
            left = BinOp(op.value, left, right, op.line)
        return left

    def parse_logical_or(self) -> Expr:
        return self._parse_binary(self.parse_logical_and, 'OR')

    def parse_logical_and(self) -> Expr:
        return self._parse_binary(self.parse_equality, 'AND')

    def parse_equality(self) -> Expr:
        return self._parse_binary(self.parse_comparison, 'EQ', 'NE')

    def parse_comparison(self) -> Expr:
        return self._parse_binary(self.parse_term, 'LT', 'LE', 'GT', 'GE')

    def parse_term(self) -> Expr:
        return self._parse_binary(self.parse_factor, 'PLUS', 'MINUS')

    def parse_factor(self) -> Expr:
        return self._parse_binary(self.parse_unary, 'STAR', 'SLASH', 'PERCENT')

    def parse_unary(self) -> Expr:
        if self.match('NOT', 'MINUS'):
            op = self.previous
            operand = self.parse_unary()
            return UnaryOp(op.value, operand, op.line)
        return self.parse_postfix()

    def parse_postfix(self) -> Expr:
        expr = self.parse_primary()

        while True:
            if self.match('LBRACKET'):
                index = self.parse_expression()
                self.consume('RBRACKET', "Expected ']' after array index")
                # 只有标识符可以被索引，其它情况丢弃下标
                if isinstance(expr, Ident):
                    expr = IndexExpr(expr.name, index, expr.line)
            elif self.check('LPAREN') and isinstance(expr, Ident):
                self.advance()
                args = []
                if not self.check('RPAREN'):
                    while True:
                        args.append(self.parse_expression())
                        if not self.match('COMMA'):
                            break
                self.consume('RPAREN', "Expected ')' after function arguments")
                expr = CallExpr(expr.name, args, expr.line)
            else:
                break

        return expr

    def parse_primary(self) -> Expr:
        tok = self.current

        if self.match('HAAN'):
            return BoolLiteral(True, tok.line)
        if self.match('NA'):
            return BoolLiteral(False, tok.line)
        if self.match('NUMBER'):
            return NumberLiteral(_to_number(tok.value), tok.line)
        if self.match('STRING'):
            return StringLiteral(tok.value, tok.line)
        if self.match('IDENTIFIER', *BUILTIN_KEYWORDS):
            return Ident(tok.value, tok.line)

        if self.match('LBRACKET'):
            items = []
            if not self.check('RBRACKET'):
                while True:
                    items.append(self.parse_expression())
                    if not self.match('COMMA'):
                        break
            self.consume('RBRACKET', "Expected ']' after array elements")
            return ArrayLiteral(items, tok.line)

        if self.match('LBRACE'):
            fields = []
            if not self.check('RBRACE'):
                while True:
                    key = self.consume('IDENTIFIER', "Expected property name")
                    self.consume('COLON', "Expected ':' after property name")
                    fields.append((key.value, self.parse_expression()))
                    if not self.match('COMMA'):
                        break
            self.consume('RBRACE', "Expected '}' after object properties")
            return ObjectLiteral(fields, tok.line)

        if self.match('LPAREN'):
            expr = self.parse_expression()
            self.consume('RPAREN', "Expected ')' after expression")
            return expr

        raise self.error(f"Expected expression at token: {tok.value}")


def parse(data: Union[str, Iterable[Token]]) -> Program:
    """解析源码（或已有的记号序列）为 Program"""
    tokens = tokenize(data) if isinstance(data, str) else data
    program = Parser(tokens).parse()
    logger.debug("Parsed %d top-level statements", len(program.stmts))
    return program
