"""
Lox - Test Suite
Tests for the Lexer, Parser, Environment, Interpreter, Runner and CLI.
"""

import sys
import os
import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout, redirect_stderr

# Allow running from project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lox.lexer import Scanner, tokenize, Token, TokenType
from lox.parser import Parser, ParseError
from lox.ast_nodes import (
    Literal, Grouping, Unary, Binary, Ternary, Variable, Assign,
    Expression, Print, Var, Block
)
from lox.environment import Environment
from lox.interpreter import Interpreter, stringify, is_truthy, is_equal
from lox.diagnostics import ErrorReporter, LoxRuntimeError
from lox.runner import run_source, run_file, exit_code
from lox.cli import Shell, main


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════

def quiet_reporter() -> ErrorReporter:
    return ErrorReporter(stream=io.StringIO())


def token_types(source: str):
    return [t.type for t in tokenize(source) if t.type != TokenType.EOF]


def parse_expr(source: str, reporter=None):
    reporter = reporter if reporter is not None else quiet_reporter()
    return Parser(tokenize(source, reporter), reporter).parse_expression()


def parse_(source: str, reporter=None):
    reporter = reporter if reporter is not None else quiet_reporter()
    return Parser(tokenize(source, reporter), reporter).parse()


def evaluate(source: str):
    return Interpreter(quiet_reporter()).evaluate(parse_expr(source))


def run_(source: str):
    """Run a program; return (printed output, reporter)."""
    reporter = quiet_reporter()
    out = io.StringIO()
    run_source(source, interpreter=Interpreter(reporter, output=out))
    return out.getvalue(), reporter


def _tok(ttype: TokenType, lexeme: str, line: int = 1) -> Token:
    return Token(ttype, lexeme, None, line)


# ═══════════════════════════════════════════════════════════════════════════════
# Lexer Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestLexer(unittest.TestCase):

    def test_number_integer(self):
        toks = tokenize("42")
        self.assertEqual(toks[0].type, TokenType.NUMBER)
        self.assertEqual(toks[0].lexeme, "42")
        self.assertEqual(toks[0].literal, 42.0)

    def test_number_float(self):
        toks = tokenize("3.14")
        self.assertEqual(toks[0].type, TokenType.NUMBER)
        self.assertEqual(toks[0].literal, 3.14)

    def test_trailing_dot_not_consumed(self):
        self.assertEqual(token_types("1."), [TokenType.NUMBER, TokenType.DOT])
        self.assertEqual(tokenize("1.")[0].lexeme, "1")

    def test_identifier(self):
        toks = tokenize("_my_var2")
        self.assertEqual(toks[0].type, TokenType.IDENTIFIER)
        self.assertEqual(toks[0].lexeme, "_my_var2")

    def test_keywords(self):
        types = token_types("and class else false fun for if nil or print return super this true var while")
        self.assertEqual(types, [
            TokenType.AND, TokenType.CLASS, TokenType.ELSE, TokenType.FALSE,
            TokenType.FUN, TokenType.FOR, TokenType.IF, TokenType.NIL,
            TokenType.OR, TokenType.PRINT, TokenType.RETURN, TokenType.SUPER,
            TokenType.THIS, TokenType.TRUE, TokenType.VAR, TokenType.WHILE,
        ])

    def test_keyword_prefix_is_identifier(self):
        self.assertEqual(token_types("variable orchid"), [TokenType.IDENTIFIER] * 2)

    def test_one_or_two_char_operators(self):
        types = token_types("! != = == > >= < <=")
        self.assertEqual(types, [
            TokenType.BANG, TokenType.BANG_EQUAL, TokenType.EQUAL,
            TokenType.EQUAL_EQUAL, TokenType.GREATER, TokenType.GREATER_EQUAL,
            TokenType.LESS, TokenType.LESS_EQUAL,
        ])

    def test_punctuation(self):
        types = token_types("(){},.-+;/*?:")
        self.assertEqual(types, [
            TokenType.LEFT_PAREN, TokenType.RIGHT_PAREN, TokenType.LEFT_BRACE,
            TokenType.RIGHT_BRACE, TokenType.COMMA, TokenType.DOT, TokenType.MINUS,
            TokenType.PLUS, TokenType.SEMICOLON, TokenType.SLASH, TokenType.STAR,
            TokenType.QUESTION, TokenType.COLON,
        ])

    def test_string_is_verbatim(self):
        toks = tokenize(r'"a\nb"')
        self.assertEqual(toks[0].type, TokenType.STRING)
        self.assertEqual(toks[0].literal, r"a\nb")
        self.assertEqual(toks[0].lexeme, r'"a\nb"')

    def test_string_spanning_lines_counts_lines(self):
        toks = tokenize('"a\nb" x')
        self.assertEqual(toks[0].literal, "a\nb")
        self.assertEqual(toks[1].line, 2)

    def test_unterminated_string(self):
        reporter = quiet_reporter()
        toks = tokenize('"abc', reporter)
        self.assertTrue(reporter.had_error)
        self.assertEqual(reporter.messages, ["[line 1] Error: Unterminated string."])
        self.assertEqual([t.type for t in toks], [TokenType.EOF])

    def test_line_tracking(self):
        toks = tokenize("a\nb\nc")
        lines = {t.lexeme: t.line for t in toks if t.type != TokenType.EOF}
        self.assertEqual(lines, {"a": 1, "b": 2, "c": 3})

    def test_eof_carries_final_line(self):
        toks = tokenize("a\n\n")
        self.assertEqual(toks[-1].type, TokenType.EOF)
        self.assertEqual(toks[-1].line, 3)

    def test_line_comment_ignored(self):
        toks = [t for t in tokenize("// this is a comment\nx") if t.type != TokenType.EOF]
        self.assertEqual(len(toks), 1)
        self.assertEqual(toks[0].lexeme, "x")
        self.assertEqual(toks[0].line, 2)

    def test_slash_is_division(self):
        self.assertEqual(token_types("6 / 3"), [TokenType.NUMBER, TokenType.SLASH, TokenType.NUMBER])

    def test_nested_block_comment(self):
        reporter = quiet_reporter()
        toks = tokenize("/* a /* b */ c */", reporter)
        self.assertEqual([t.type for t in toks], [TokenType.EOF])
        self.assertFalse(reporter.had_error)

    def test_block_comment_counts_lines(self):
        toks = tokenize("/* one\ntwo\n*/ x")
        self.assertEqual(toks[0].lexeme, "x")
        self.assertEqual(toks[0].line, 3)

    def test_unterminated_block_comment(self):
        reporter = quiet_reporter()
        tokenize("/* a", reporter)
        self.assertEqual(reporter.messages, ["[line 1] Error: Unterminated comment."])

    def test_unterminated_nested_block_comment(self):
        reporter = quiet_reporter()
        tokenize("/* a /* b */", reporter)
        self.assertTrue(reporter.had_error)

    def test_unexpected_character_is_skipped(self):
        reporter = quiet_reporter()
        toks = tokenize("1 @ 2", reporter)
        self.assertEqual([t.type for t in toks],
                         [TokenType.NUMBER, TokenType.NUMBER, TokenType.EOF])
        self.assertEqual(reporter.messages, ["[line 1] Error: Unexpected character."])

    def test_lexemes_reconstruct_source(self):
        src = 'var  answer=(6 *7.5) ;\n\tprint "hi there" >= nil;\n'
        toks = tokenize(src)
        pos = 0
        parts = []
        for tok in toks[:-1]:
            idx = src.index(tok.lexeme, pos)
            gap = src[pos:idx]
            self.assertTrue(gap == "" or gap.isspace(), repr(gap))
            parts.append(gap)
            parts.append(tok.lexeme)
            pos = idx + len(tok.lexeme)
        parts.append(src[pos:])
        self.assertEqual("".join(parts), src)

    def test_tokens_are_immutable(self):
        tok = tokenize("x")[0]
        with self.assertRaises(Exception):
            tok.lexeme = "y"

    def test_scanner_reports_without_explicit_reporter(self):
        err = io.StringIO()
        with redirect_stderr(err):
            scanner = Scanner('"unterminated')
            scanner.scan_tokens()
        self.assertEqual(scanner.reporter.messages, ["[line 1] Error: Unterminated string."])
        self.assertIn("Unterminated string.", err.getvalue())


# ═══════════════════════════════════════════════════════════════════════════════
# Parser Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestParser(unittest.TestCase):

    def test_precedence(self):
        expr = parse_expr("1 + 2 * 3")
        self.assertIsInstance(expr, Binary)
        self.assertEqual(expr.operator.type, TokenType.PLUS)
        self.assertIsInstance(expr.right, Binary)
        self.assertEqual(expr.right.operator.type, TokenType.STAR)

    def test_left_associative(self):
        expr = parse_expr("1 - 2 - 3")
        self.assertIsInstance(expr.left, Binary)
        self.assertEqual(expr.right, Literal(3.0))

    def test_grouping(self):
        expr = parse_expr("(1 + 2) * 3")
        self.assertEqual(expr.operator.type, TokenType.STAR)
        self.assertIsInstance(expr.left, Grouping)

    def test_comma_deepens_left(self):
        expr = parse_expr("1, 2, 3")
        self.assertEqual(expr.operator.type, TokenType.COMMA)
        self.assertEqual(expr.right, Literal(3.0))
        self.assertIsInstance(expr.left, Binary)
        self.assertEqual(expr.left.left, Literal(1.0))

    def test_ternary(self):
        expr = parse_expr("true ? 1 : 2")
        self.assertIsInstance(expr, Ternary)
        self.assertEqual(expr.predicate, Literal(True))
        self.assertEqual(expr.question.type, TokenType.QUESTION)
        self.assertEqual(expr.colon.type, TokenType.COLON)
        self.assertEqual(expr.true_branch, Literal(1.0))
        self.assertEqual(expr.false_branch, Literal(2.0))

    def test_ternary_true_branch_takes_full_expression(self):
        expr = parse_expr("a ? 1, 2 : 3")
        self.assertIsInstance(expr.true_branch, Binary)
        self.assertEqual(expr.true_branch.operator.type, TokenType.COMMA)

    def test_nested_ternary_in_true_branch(self):
        expr = parse_expr("a ? b ? 1 : 2 : 3")
        self.assertIsInstance(expr.true_branch, Ternary)
        self.assertEqual(expr.false_branch, Literal(3.0))

    def test_ternary_binds_tighter_than_comma(self):
        expr = parse_expr("a ? 1 : 2, 3")
        self.assertEqual(expr.operator.type, TokenType.COMMA)
        self.assertIsInstance(expr.left, Ternary)

    def test_ternary_missing_colon(self):
        reporter = quiet_reporter()
        self.assertIsNone(parse_expr("a ? 1 2", reporter))
        self.assertEqual(reporter.messages, ["[line 1] Error at '2': Expect ':' after expression."])

    def test_unary(self):
        expr = parse_expr("!-x")
        self.assertIsInstance(expr, Unary)
        self.assertEqual(expr.operator.type, TokenType.BANG)
        self.assertIsInstance(expr.right, Unary)
        self.assertIsInstance(expr.right.right, Variable)

    def test_leading_minus_is_negation(self):
        expr = parse_expr("-1 + 2")
        self.assertEqual(expr.operator.type, TokenType.PLUS)
        self.assertIsInstance(expr.left, Unary)

    def test_literals(self):
        self.assertEqual(parse_expr("nil"), Literal(None))
        self.assertEqual(parse_expr("false"), Literal(False))
        self.assertEqual(parse_expr('"s"'), Literal("s"))

    def test_missing_left_operand(self):
        for src, lexeme in [("* 3", "*"), ("/ 3", "/"), ("+ 3", "+"),
                            ("> 1", ">"), ("<= 1", "<="), ("== 1", "=="), ("!= 1", "!=")]:
            reporter = quiet_reporter()
            self.assertIsNone(parse_expr(src, reporter), src)
            self.assertEqual(reporter.messages,
                             [f"[line 1] Error at '{lexeme}': Expect left-hand operand."], src)

    def test_missing_left_operand_consumes_right_side(self):
        tokens = tokenize("* 3 4")
        parser = Parser(tokens, quiet_reporter())
        with self.assertRaises(ParseError):
            parser._factor()
        self.assertEqual(parser._peek().lexeme, "4")

    def test_missing_close_paren(self):
        reporter = quiet_reporter()
        self.assertIsNone(parse_expr("(1 + 2", reporter))
        self.assertEqual(reporter.messages, ["[line 1] Error at end: Expect ')' after expression."])

    def test_expect_expression(self):
        reporter = quiet_reporter()
        self.assertIsNone(parse_expr(")", reporter))
        self.assertEqual(reporter.messages, ["[line 1] Error at ')': Expect expression."])

    def test_parse_error_carries_line(self):
        tokens = tokenize("\n\n)")
        with self.assertRaises(ParseError) as ctx:
            Parser(tokens)._expression()
        self.assertEqual(ctx.exception.line, 3)

    def test_assignment(self):
        expr = parse_expr("x = y = 2")
        self.assertIsInstance(expr, Assign)
        self.assertEqual(expr.name.lexeme, "x")
        self.assertIsInstance(expr.value, Assign)

    def test_invalid_assignment_target(self):
        reporter = quiet_reporter()
        parse_("1 = 2;", reporter)
        self.assertEqual(reporter.messages, ["[line 1] Error at '=': Invalid assignment target."])

    def test_statements(self):
        stmts = parse_("var x = 1; var y; print x; x + 1; { print y; }")
        self.assertEqual([type(s) for s in stmts], [Var, Var, Print, Expression, Block])
        self.assertIsNone(stmts[1].initializer)
        self.assertIsInstance(stmts[4].statements[0], Print)

    def test_missing_semicolon(self):
        reporter = quiet_reporter()
        parse_("print 1", reporter)
        self.assertEqual(reporter.messages, ["[line 1] Error at end: Expect ';' after value."])

    def test_synchronize_recovers_at_next_statement(self):
        reporter = quiet_reporter()
        stmts = parse_("var = 1;\nprint 2;\nprint (;\nvar ok = 3;", reporter)
        self.assertEqual([type(s) for s in stmts], [Print, Var])
        self.assertEqual(len(reporter.messages), 2)
        self.assertTrue(reporter.messages[0].startswith("[line 1]"))
        self.assertTrue(reporter.messages[1].startswith("[line 3]"))

    def test_synchronize_stops_before_statement_keyword(self):
        parser = Parser(tokenize("1 2 3 print 4;"))
        parser.synchronize()
        self.assertEqual(parser._peek().type, TokenType.PRINT)

    def test_unclosed_block(self):
        reporter = quiet_reporter()
        parse_("{ print 1;", reporter)
        self.assertEqual(reporter.messages, ["[line 1] Error at end: Expect '}' after block."])

    def test_deep_nesting_is_reported(self):
        reporter = quiet_reporter()
        stmts = parse_("print " + "(" * 200 + "1" + ")" * 200 + "; print 2;", reporter)
        self.assertEqual(len(reporter.messages), 1)
        self.assertTrue(reporter.messages[0].endswith("Expression nests too deeply."))
        self.assertEqual(stmts, [Print(Literal(2.0))])

    def test_deep_nesting_in_lone_expression(self):
        reporter = quiet_reporter()
        self.assertIsNone(parse_expr("(" * 200 + "1" + ")" * 200, reporter))
        self.assertTrue(reporter.messages[0].endswith("Expression nests too deeply."))

    def test_parser_reports_without_explicit_reporter(self):
        with redirect_stderr(io.StringIO()):
            parser = Parser(tokenize(")"))
            self.assertIsNone(parser.parse_expression())
        self.assertTrue(parser.reporter.had_error)
        self.assertEqual(parser.reporter.messages, ["[line 1] Error at ')': Expect expression."])


# ═══════════════════════════════════════════════════════════════════════════════
# Environment Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestEnvironment(unittest.TestCase):

    def test_define_and_get(self):
        env = Environment()
        env.define("a", 1.0)
        self.assertEqual(env.get(_tok(TokenType.IDENTIFIER, "a")), 1.0)
        self.assertIn("a", env)

    def test_redefine_overwrites(self):
        env = Environment()
        env.define("a", 1.0)
        env.define("a", "two")
        self.assertEqual(env.get(_tok(TokenType.IDENTIFIER, "a")), "two")

    def test_get_undefined(self):
        with self.assertRaises(LoxRuntimeError) as ctx:
            Environment().get(_tok(TokenType.IDENTIFIER, "nope", line=4))
        self.assertEqual(ctx.exception.message, "Undefined variable 'nope'.")
        self.assertEqual(ctx.exception.line, 4)

    def test_assign_requires_definition(self):
        env = Environment()
        with self.assertRaises(LoxRuntimeError):
            env.assign(_tok(TokenType.IDENTIFIER, "a"), 1.0)
        self.assertNotIn("a", env)


# ═══════════════════════════════════════════════════════════════════════════════
# Interpreter Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestInterpreter(unittest.TestCase):

    def assertRuntimeError(self, source, message):
        with self.assertRaises(LoxRuntimeError) as ctx:
            evaluate(source)
        self.assertEqual(ctx.exception.message, message)

    def test_arithmetic(self):
        self.assertEqual(evaluate("1 + 2 * 3"), 7.0)
        self.assertEqual(evaluate("(1 + 2) * 3"), 9.0)
        self.assertEqual(evaluate("10 - 4 - 3"), 3.0)
        self.assertEqual(evaluate("5 / 2"), 2.5)
        self.assertEqual(evaluate("0.1 + 0.2"), 0.1 + 0.2)

    def test_negation(self):
        self.assertEqual(evaluate("-3"), -3.0)
        self.assertEqual(evaluate("--3"), 3.0)
        self.assertRuntimeError('-"a"', "Operand must be a number.")

    def test_comma_yields_rightmost(self):
        self.assertEqual(evaluate("1, 2, 3"), 3.0)

    def test_ternary_short_circuits(self):
        self.assertEqual(evaluate("true ? 1 : (1/0)"), 1.0)
        self.assertEqual(evaluate("nil ? (1/0) : 2"), 2.0)
        self.assertEqual(evaluate("0 ? 1 : 2"), 1.0)

    def test_division_by_zero(self):
        for src in ["5 / 0", "-5 / 0", "5 / -0", "0 / 0"]:
            self.assertRuntimeError(src, "Division by zero.")

    def test_arithmetic_type_errors(self):
        self.assertRuntimeError('1 - "a"', "Operands must be numbers.")
        self.assertRuntimeError("true * 2", "Operands must be numbers.")
        self.assertRuntimeError('"a" / 1', "Operands must be numbers.")

    def test_string_concatenation(self):
        self.assertEqual(evaluate('"a" + "b"'), "ab")

    def test_plus_rejects_mixed_operands(self):
        self.assertRuntimeError('"x" + 1', "Operands must be two numbers or two strings.")
        self.assertRuntimeError('nil + nil', "Operands must be two numbers or two strings.")

    def test_comparison(self):
        self.assertIs(evaluate("1 < 2"), True)
        self.assertIs(evaluate("2 <= 2"), True)
        self.assertIs(evaluate("1 > 2"), False)
        self.assertIs(evaluate("3 >= 4"), False)

    def test_string_comparison(self):
        self.assertIs(evaluate('"apple" < "banana"'), True)
        self.assertIs(evaluate('"b" >= "a"'), True)
        self.assertRuntimeError('"a" < 1', "Operands must be numbers.")

    def test_equality(self):
        self.assertIs(evaluate("nil == nil"), True)
        self.assertIs(evaluate("nil == false"), False)
        self.assertIs(evaluate("1 == 1"), True)
        self.assertIs(evaluate('"a" == "a"'), True)
        self.assertIs(evaluate('1 == "1"'), False)
        self.assertIs(evaluate("true == 1"), False)
        self.assertIs(evaluate("1 != 2"), True)

    def test_truthiness(self):
        self.assertIs(evaluate("!nil"), True)
        self.assertIs(evaluate("!false"), True)
        self.assertIs(evaluate("!0"), False)
        self.assertIs(evaluate('!""'), False)

    def test_value_helpers(self):
        self.assertFalse(is_truthy(None))
        self.assertTrue(is_truthy(0.0))
        self.assertTrue(is_equal(None, None))
        self.assertFalse(is_equal(False, 0.0))

    def test_stringify(self):
        self.assertEqual(stringify(None), "nil")
        self.assertEqual(stringify(True), "true")
        self.assertEqual(stringify(False), "false")
        self.assertEqual(stringify(42.0), "42")
        self.assertEqual(stringify(2.5), "2.5")
        self.assertEqual(stringify("3.0"), "3.0")

    def test_stringify_extreme_numbers(self):
        self.assertEqual(stringify(1e16), "10000000000000000")
        self.assertEqual(stringify(float("inf")), "Infinity")
        self.assertEqual(stringify(float("-inf")), "-Infinity")
        self.assertEqual(stringify(float("nan")), "NaN")
        self.assertEqual(stringify(-0.0), "-0")
        self.assertEqual(stringify(1e21), "1e+21")

    def test_print_large_integral_number(self):
        out, _ = run_("print 10000000000000000;")
        self.assertEqual(out, "10000000000000000\n")

    def test_overflow_prints_infinity(self):
        big = "1" + "0" * 308
        self.assertEqual(stringify(evaluate(f"{big} * 10")), "Infinity")

    def test_nan_equals_nan(self):
        big = "1" + "0" * 308
        nan = f"({big} * 10 - {big} * 10)"
        self.assertIs(evaluate(f"{nan} == {nan}"), True)
        self.assertIs(evaluate(f"{nan} != {nan}"), False)
        self.assertTrue(is_equal(float("nan"), float("nan")))
        self.assertTrue(is_equal(0.0, -0.0))

    def test_print_integral_number(self):
        out, _ = run_("print 6 * 7;")
        self.assertEqual(out, "42\n")

    def test_variable_lifecycle(self):
        out, reporter = run_("var x = 1; x = 2; print x;")
        self.assertEqual(out, "2\n")
        self.assertFalse(reporter.had_runtime_error)

    def test_redeclaration_overwrites(self):
        out, reporter = run_("var x = 1; var x = 3; print x;")
        self.assertEqual(out, "3\n")
        self.assertFalse(reporter.had_runtime_error)

    def test_uninitialized_var_is_nil(self):
        out, _ = run_("var x; print x;")
        self.assertEqual(out, "nil\n")

    def test_undefined_variable(self):
        out, reporter = run_("print nope;")
        self.assertEqual(out, "")
        self.assertTrue(reporter.had_runtime_error)
        self.assertEqual(reporter.messages, ["Undefined variable 'nope'.\n[line 1]"])

    def test_assignment_is_not_declaration(self):
        _, reporter = run_("y = 1;")
        self.assertEqual(reporter.messages, ["Undefined variable 'y'.\n[line 1]"])

    def test_assignment_yields_value(self):
        out, _ = run_("var a; var b; a = b = 5; print a + b;")
        self.assertEqual(out, "10\n")

    def test_block_shares_environment(self):
        out, _ = run_("{ var a = 1; { a = a + 1; } } print a;")
        self.assertEqual(out, "2\n")

    def test_comma_evaluates_left_side_effects(self):
        out, _ = run_("var a = 0; print (a = 1, a + 1); print a;")
        self.assertEqual(out, "2\n1\n")

    def test_runtime_error_aborts_run(self):
        out, reporter = run_('print 1;\nprint -"a";\nprint 2;')
        self.assertEqual(out, "1\n")
        self.assertEqual(reporter.messages, ["Operand must be a number.\n[line 2]"])

    def test_interpret_expression(self):
        reporter = quiet_reporter()
        interpreter = Interpreter(reporter)
        self.assertEqual(interpreter.interpret_expression(parse_expr("6 * 7")), "42")
        self.assertIsNone(interpreter.interpret_expression(parse_expr("1 / 0")))
        self.assertEqual(reporter.messages, ["Division by zero.\n[line 1]"])

    def test_deep_tree_is_a_runtime_error(self):
        out, reporter = run_("print 0;\nprint " + " + ".join(["1"] * 3000) + ";\nprint 2;")
        self.assertEqual(out, "0\n")
        self.assertEqual(reporter.messages, ["Expression nests too deeply.\n[line 2]"])

    def test_interpreter_reports_without_explicit_reporter(self):
        out = io.StringIO()
        with redirect_stderr(io.StringIO()):
            interpreter = Interpreter(output=out)
            self.assertFalse(interpreter.interpret(parse_("print 1/0;")))
        self.assertEqual(interpreter.reporter.messages, ["Division by zero.\n[line 1]"])
        self.assertTrue(interpreter.reporter.had_runtime_error)

    def test_unknown_node_is_a_bug(self):
        with self.assertRaises(AssertionError):
            Interpreter().evaluate(object())


# ═══════════════════════════════════════════════════════════════════════════════
# Runner Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestRunner(unittest.TestCase):

    def test_static_error_prevents_execution(self):
        out, reporter = run_("print 1;\nprint ;")
        self.assertEqual(out, "")
        self.assertTrue(reporter.had_error)
        self.assertEqual(exit_code(reporter), 65)

    def test_lexical_error_prevents_execution(self):
        out, reporter = run_("print 1; @")
        self.assertEqual(out, "")
        self.assertEqual(exit_code(reporter), 65)

    def test_runtime_error_exit_code(self):
        _, reporter = run_("print 1 / 0;")
        self.assertEqual(exit_code(reporter), 70)

    def test_clean_exit_code(self):
        _, reporter = run_("print 1;")
        self.assertEqual(exit_code(reporter), 0)

    def test_interpreter_state_persists(self):
        reporter = quiet_reporter()
        out = io.StringIO()
        interpreter = Interpreter(reporter, output=out)
        run_source("var a = 1;", interpreter=interpreter)
        run_source("print a + 1;", interpreter=interpreter)
        self.assertEqual(out.getvalue(), "2\n")

    def test_emit_ast_returns_json(self):
        result = run_source("var x = 1 + 2;", reporter=quiet_reporter(), emit_ast=True)
        parsed = json.loads(result)
        self.assertEqual(parsed[0]["_type"], "Var")
        self.assertEqual(parsed[0]["name"], "x")
        self.assertEqual(parsed[0]["initializer"]["_type"], "Binary")
        self.assertEqual(parsed[0]["initializer"]["operator"], "+")

    def test_emit_tokens_returns_json(self):
        result = run_source("print 1;", reporter=quiet_reporter(), emit_tokens=True)
        parsed = json.loads(result)
        self.assertEqual([t["type"] for t in parsed], ["PRINT", "NUMBER", "SEMICOLON", "EOF"])
        self.assertEqual(parsed[1]["literal"], 1.0)

    def test_debug_logs_phases(self):
        err = io.StringIO()
        with redirect_stderr(err):
            run_source("var a = 1;", reporter=quiet_reporter(), debug=True)
        self.assertIn("[lox] Phase 1: Lexical analysis", err.getvalue())
        self.assertIn("[lox] Phase 3: Interpretation", err.getvalue())

    def test_run_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "hello.lox")
            with open(path, "w", encoding="utf-8") as f:
                f.write('var greeting = "hello";\nprint greeting + " world";\n')
            out = io.StringIO()
            with redirect_stdout(out):
                code = run_file(path)
        self.assertEqual(code, 0)
        self.assertEqual(out.getvalue(), "hello world\n")

    def test_deeply_nested_source_is_a_static_error(self):
        reporter = quiet_reporter()
        out = io.StringIO()
        source = "print " + "(" * 200 + "1" + ")" * 200 + ";"
        run_source(source, interpreter=Interpreter(reporter, output=out))
        self.assertEqual(out.getvalue(), "")
        self.assertEqual(exit_code(reporter), 65)


# ═══════════════════════════════════════════════════════════════════════════════
# CLI Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestCLI(unittest.TestCase):

    def _write(self, tmp, source):
        path = os.path.join(tmp, "script.lox")
        with open(path, "w", encoding="utf-8") as f:
            f.write(source)
        return path

    def _main(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            with self.assertRaises(SystemExit) as ctx:
                main(argv)
        return ctx.exception.code, out.getvalue(), err.getvalue()

    def test_runs_script(self):
        with tempfile.TemporaryDirectory() as tmp:
            code, out, _ = self._main([self._write(tmp, "print 1 + 1;")])
        self.assertEqual(code, 0)
        self.assertEqual(out, "2\n")

    def test_syntax_error_exit_code(self):
        with tempfile.TemporaryDirectory() as tmp:
            code, _, err = self._main([self._write(tmp, "print (1;")])
        self.assertEqual(code, 65)
        self.assertIn("Expect ')' after expression.", err)

    def test_runtime_error_exit_code(self):
        with tempfile.TemporaryDirectory() as tmp:
            code, _, err = self._main([self._write(tmp, "print x;")])
        self.assertEqual(code, 70)
        self.assertIn("Undefined variable 'x'.", err)

    def test_missing_file(self):
        code, _, err = self._main(["/nonexistent/path/script.lox"])
        self.assertEqual(code, 66)
        self.assertIn("cannot read", err)

    def test_undecodable_script(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "latin1.lox")
            with open(path, "wb") as f:
                f.write(b'print "caf\xe9";')
            code, out, err = self._main([path])
        self.assertEqual(code, 65)
        self.assertEqual(out, "")
        self.assertIn("cannot decode", err)

    def test_bad_usage(self):
        code, _, _ = self._main(["a.lox", "b.lox"])
        self.assertEqual(code, 64)

    def test_emit_ast_without_script(self):
        code, _, _ = self._main(["--emit-ast"])
        self.assertEqual(code, 64)


class TestShell(unittest.TestCase):

    def test_state_persists_and_errors_reset(self):
        out = io.StringIO()
        with redirect_stdout(out), redirect_stderr(io.StringIO()):
            shell = Shell()
            shell.onecmd("var a = 20;")
            shell.onecmd("print (;")
            self.assertFalse(shell.reporter.had_error)
            shell.onecmd("print a + 22;")
        self.assertEqual(out.getvalue(), "42\n")
        self.assertEqual(len(shell.reporter.messages), 1)

    def test_exit(self):
        shell = Shell()
        self.assertTrue(shell.onecmd("exit"))
        self.assertTrue(shell.onecmd("  exit  "))

    def test_command_words_are_lox_names(self):
        out = io.StringIO()
        with redirect_stdout(out), redirect_stderr(io.StringIO()):
            shell = Shell()
            shell.onecmd("var help = 1;")
            shell.onecmd("help = 2;")
            shell.onecmd("print help;")
            shell.onecmd("var exit = 3;")
            self.assertFalse(shell.onecmd("exit = 4;"))
            shell.onecmd("print exit;")
            shell.onecmd("? 1 : 2;")
        self.assertEqual(out.getvalue(), "2\n4\n")
        self.assertEqual(shell.reporter.messages, ["[line 1] Error at '?': Expect expression."])


if __name__ == "__main__":
    unittest.main(verbosity=2)
