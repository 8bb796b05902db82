"""Tests for the recursive-descent parser."""

import pytest

from ast_nodes import (
    ArrayLiteral,
    Assign,
    BinOp,
    BoolLiteral,
    CallExpr,
    ExprStmt,
    FuncDecl,
    Ident,
    IfStmt,
    IndexExpr,
    LoopStmt,
    NumberLiteral,
    ObjectLiteral,
    Program,
    ReturnStmt,
    StringLiteral,
    UnaryOp,
    VarDecl,
)
from errors import ParseError
from lexer import tokenize
from my_types import UNKNOWN
from parser import Parser, parse

# ###############
# Test Helpers
# ###############


def _expr(source: str):
    """Parse a single expression statement and return its expression."""
    program = parse(source + ";")
    assert len(program.stmts) == 1
    stmt = program.stmts[0]
    assert isinstance(stmt, ExprStmt)
    return stmt.expr


# ###############
# Program structure
# ###############


class TestProgram:
    def test_empty_source(self) -> None:
        program = parse("")
        assert isinstance(program, Program)
        assert program.stmts == []

    def test_comment_only(self) -> None:
        assert parse("// nothing here").stmts == []

    def test_accepts_token_stream(self) -> None:
        program = parse(tokenize("banao x = 1;"))
        assert isinstance(program.stmts[0], VarDecl)

    def test_parser_class(self) -> None:
        program = Parser(tokenize("dekh(1);")).parse()
        assert len(program.stmts) == 1


# ###############
# Statements
# ###############


class TestStatements:
    def test_var_decl_with_initializer(self) -> None:
        stmt = parse("banao x = 5;").stmts[0]
        assert isinstance(stmt, VarDecl)
        assert stmt.name == "x"
        assert isinstance(stmt.init, NumberLiteral)
        assert stmt.init.value == 5.0

    def test_var_decl_without_initializer(self) -> None:
        stmt = parse("banao x;").stmts[0]
        assert stmt.init is None

    def test_func_decl(self) -> None:
        stmt = parse("kaam add(a, b) { wapas a + b; }").stmts[0]
        assert isinstance(stmt, FuncDecl)
        assert stmt.name == "add"
        assert stmt.params == ["a", "b"]
        assert len(stmt.body) == 1
        assert isinstance(stmt.body[0], ReturnStmt)

    def test_func_decl_no_params(self) -> None:
        stmt = parse("kaam main() {}").stmts[0]
        assert stmt.params == []
        assert stmt.body == []

    def test_if_else(self) -> None:
        stmt = parse("agar (x) { dekh(1); } warnah { dekh(2); dekh(3); }").stmts[0]
        assert isinstance(stmt, IfStmt)
        assert isinstance(stmt.cond, Ident)
        assert len(stmt.then_block) == 1
        assert len(stmt.else_block) == 2

    def test_if_without_else(self) -> None:
        stmt = parse("agar (haan) { }").stmts[0]
        assert stmt.else_block == []

    def test_loop(self) -> None:
        stmt = parse("daura (i < 10) { i += 1; }").stmts[0]
        assert isinstance(stmt, LoopStmt)
        assert isinstance(stmt.cond, BinOp)
        assert len(stmt.block) == 1

    def test_return_without_value(self) -> None:
        stmt = parse("wapas;").stmts[0]
        assert isinstance(stmt, ReturnStmt)
        assert stmt.expr is None

    def test_statement_lines(self) -> None:
        program = parse("banao a = 1;\n\nkaam main() {\n}")
        assert [s.line for s in program.stmts] == [1, 3]

    def test_standalone_block_is_discarded(self) -> None:
        program = parse("{ banao x = 1; banao x = 2; } kaam main() {}")
        assert len(program.stmts) == 1
        assert isinstance(program.stmts[0], FuncDecl)

    def test_standalone_block_contents_are_still_parsed(self) -> None:
        with pytest.raises(ParseError):
            parse("{ banao ; }")


# ###############
# Expressions
# ###############


class TestPrecedence:
    def test_multiplication_binds_tighter_than_addition(self) -> None:
        expr = _expr("1 + 2 * 3")
        assert expr.op == "+"
        assert isinstance(expr.left, NumberLiteral)
        assert isinstance(expr.right, BinOp)
        assert expr.right.op == "*"

    def test_binary_operators_are_left_associative(self) -> None:
        expr = _expr("1 - 2 - 3")
        assert expr.op == "-"
        assert isinstance(expr.left, BinOp)
        assert expr.left.op == "-"
        assert isinstance(expr.right, NumberLiteral)

    def test_full_ladder(self) -> None:
        expr = _expr("a || b && c == d < e + f * -g")
        assert expr.op == "||"
        and_ = expr.right
        assert and_.op == "&&"
        eq = and_.right
        assert eq.op == "=="
        lt = eq.right
        assert lt.op == "<"
        plus = lt.right
        assert plus.op == "+"
        times = plus.right
        assert times.op == "*"
        assert isinstance(times.right, UnaryOp)
        assert times.right.op == "-"

    def test_parentheses_override_precedence(self) -> None:
        expr = _expr("(1 + 2) * 3")
        assert expr.op == "*"
        assert expr.left.op == "+"

    def test_modulo_is_multiplicative(self) -> None:
        expr = _expr("a + b % c")
        assert expr.op == "+"
        assert expr.right.op == "%"

    def test_nested_unary(self) -> None:
        expr = _expr("!!haan")
        assert isinstance(expr, UnaryOp)
        assert isinstance(expr.operand, UnaryOp)
        assert isinstance(expr.operand.operand, BoolLiteral)


class TestAssignment:
    def test_simple_assignment(self) -> None:
        expr = _expr("x = 1")
        assert isinstance(expr, Assign)
        assert expr.name == "x"
        assert isinstance(expr.value, NumberLiteral)

    def test_assignment_is_right_associative(self) -> None:
        expr = _expr("a = b = 1")
        assert isinstance(expr, Assign)
        assert expr.name == "a"
        assert isinstance(expr.value, Assign)
        assert expr.value.name == "b"

    @pytest.mark.parametrize("op", ["+", "-", "*", "/"])
    def test_compound_assignment_desugars(self, op: str) -> None:
        expr = _expr(f"x {op}= 2")
        assert isinstance(expr, Assign)
        assert expr.name == "x"
        assert isinstance(expr.value, BinOp)
        assert expr.value.op == op
        assert isinstance(expr.value.left, Ident)
        assert expr.value.left.name == "x"
        assert expr.value.right.value == 2.0

    @pytest.mark.parametrize("source", ["1 = 2;", "a + b = 3;", "f() = 1;", "a[0] = 1;", "f() += 1;"])
    def test_invalid_assignment_target(self, source: str) -> None:
        with pytest.raises(ParseError, match="Invalid assignment target"):
            parse(source)


class TestPostfix:
    def test_call(self) -> None:
        expr = _expr("f(1, 2)")
        assert isinstance(expr, CallExpr)
        assert expr.callee == "f"
        assert len(expr.args) == 2

    def test_call_without_args(self) -> None:
        assert _expr("random()").args == []

    def test_builtin_keywords_are_callable(self) -> None:
        for name in ("dekh", "lou", "band"):
            expr = _expr(f"{name}()")
            assert isinstance(expr, CallExpr)
            assert expr.callee == name

    def test_index(self) -> None:
        expr = _expr("a[i + 1]")
        assert isinstance(expr, IndexExpr)
        assert expr.base == "a"
        assert isinstance(expr.index, BinOp)

    def test_index_on_non_identifier_is_dropped(self) -> None:
        expr = _expr("f(1)[0]")
        assert isinstance(expr, CallExpr)

    def test_call_only_attaches_to_identifier(self) -> None:
        with pytest.raises(ParseError, match="Expected ';' after expression statement"):
            parse("f(1)(2);")


class TestPrimary:
    def test_booleans(self) -> None:
        assert _expr("haan").value is True
        assert _expr("na").value is False

    def test_string(self) -> None:
        expr = _expr('"salaam"')
        assert isinstance(expr, StringLiteral)
        assert expr.value == "salaam"

    def test_malformed_number_uses_longest_valid_prefix(self) -> None:
        assert _expr("1.2.3").value == 1.2

    def test_array_literal(self) -> None:
        expr = _expr("[1, 2, 3]")
        assert isinstance(expr, ArrayLiteral)
        assert len(expr.items) == 3

    def test_empty_array_literal(self) -> None:
        assert _expr("[]").items == []

    def test_object_literal(self) -> None:
        stmt = parse('banao o = {naam: "Ali", umar: 30};').stmts[0]
        assert isinstance(stmt.init, ObjectLiteral)
        assert [k for k, _ in stmt.init.fields] == ["naam", "umar"]

    def test_expression_type_slot_starts_unknown(self) -> None:
        assert _expr("1 + 2").type_tag == UNKNOWN


# ###############
# Syntax errors
# ###############


class TestSyntaxErrors:
    def test_missing_semicolon(self) -> None:
        with pytest.raises(ParseError, match="Expected ';' after variable declaration") as exc:
            parse("banao x = 5")
        assert exc.value.line == 1

    def test_error_reports_line(self) -> None:
        with pytest.raises(ParseError) as exc:
            parse("banao x = 1;\nbanao y = ;")
        assert exc.value.line == 2
        assert str(exc.value) == "Expected expression at token: ; at line 2"

    def test_missing_function_name(self) -> None:
        with pytest.raises(ParseError, match="Expected function name"):
            parse("kaam () {}")

    def test_missing_if_paren(self) -> None:
        with pytest.raises(ParseError, match="Expected '\\(' after 'agar'"):
            parse("agar haan { }")

    def test_unclosed_function_body(self) -> None:
        with pytest.raises(ParseError, match="Expected '}' after function body"):
            parse("kaam main() { dekh(1);")

    def test_object_key_must_be_identifier(self) -> None:
        with pytest.raises(ParseError, match="Expected property name"):
            parse("banao o = {1: 2};")

    def test_unrecognized_character_is_a_syntax_error_in_expression(self) -> None:
        with pytest.raises(ParseError, match="Expected expression at token: #"):
            parse("banao x = #;")
