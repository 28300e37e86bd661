"""
Lox - Pipeline Runner
Runs the scan, parse and interpret phases in sequence.
"""

import json
import sys
from typing import List, Optional

from .lexer import Token, tokenize
from .parser import Parser
from .interpreter import Interpreter
from .diagnostics import ErrorReporter

# sysexits.h codes used by the command line front end
EXIT_OK       = 0
EXIT_USAGE    = 64
EXIT_DATAERR  = 65
EXIT_NOINPUT  = 66
EXIT_SOFTWARE = 70


def run_source(
    source: str,
    interpreter: Optional[Interpreter] = None,
    reporter: Optional[ErrorReporter] = None,
    emit_ast: bool = False,
    emit_tokens: bool = False,
    debug: bool = False,
) -> Optional[str]:
    """
    Scan, parse and execute Lox source text.

    Parameters
    ----------
    source      : Lox source code string
    interpreter : interpreter to run in; a fresh one when omitted. Passing
                  the same one keeps variables alive between calls.
    reporter    : diagnostic sink; the interpreter's or a fresh one when omitted
    emit_ast    : if True, return the parsed program as JSON instead of running it
    emit_tokens : if True, return the token stream as JSON instead of parsing it
    debug       : print each phase summary to stderr

    Returns
    -------
    The JSON dump when emit_ast/emit_tokens is set, otherwise None.
    Errors never raise: check reporter.had_error / had_runtime_error.
    """

    def log(msg):
        if debug:
            print(f"[lox] {msg}", file=sys.stderr)

    if reporter is None:
        reporter = interpreter.reporter if interpreter is not None else None
    if reporter is None:
        reporter = ErrorReporter()
    if interpreter is None:
        interpreter = Interpreter(reporter)

    # ── Phase 1: Lexical Analysis ─────────────────────────────────────────────
    log("Phase 1: Lexical analysis")
    tokens = tokenize(source, reporter)
    log(f"  {len(tokens)-1} tokens produced")

    if emit_tokens:
        return tokens_to_json(tokens)

    # ── Phase 2: Parsing ──────────────────────────────────────────────────────
    log("Phase 2: Parsing")
    statements = Parser(tokens, reporter).parse()
    log(f"  {len(statements)} top-level statements")

    if reporter.had_error:
        log("  Static errors reported, not running")
        return None

    if emit_ast:
        return ast_to_json(statements)

    # ── Phase 3: Interpretation ───────────────────────────────────────────────
    log("Phase 3: Interpretation")
    if interpreter.interpret(statements):
        log("  Run completed")
    else:
        log("  Run aborted by a runtime error")
    return None


def run_file(path: str, emit_ast: bool = False, emit_tokens: bool = False,
             debug: bool = False) -> int:
    """Run a .lox file and return the process exit code."""
    with open(path, "r", encoding="utf-8") as f:
        source = f.read()

    reporter = ErrorReporter()
    result = run_source(source, reporter=reporter, emit_ast=emit_ast,
                        emit_tokens=emit_tokens, debug=debug)
    if result is not None:
        print(result)
    return exit_code(reporter)


def exit_code(reporter: ErrorReporter) -> int:
    if reporter.had_error:
        return EXIT_DATAERR
    if reporter.had_runtime_error:
        return EXIT_SOFTWARE
    return EXIT_OK


# ── Serialization (for --emit-ast / --emit-tokens) ────────────────────────────

def ast_to_json(statements) -> str:
    return json.dumps(_node_to_dict(statements), indent=2)


def tokens_to_json(tokens: List[Token]) -> str:
    return json.dumps(
        [{"type": t.type.name, "lexeme": t.lexeme, "literal": t.literal, "line": t.line}
         for t in tokens],
        indent=2,
    )


def _node_to_dict(node):
    if node is None:
        return None
    if isinstance(node, (list, tuple)):
        return [_node_to_dict(n) for n in node]
    if isinstance(node, Token):
        return node.lexeme
    if not hasattr(node, '__dataclass_fields__'):
        return node  # primitive
    d = {"_type": type(node).__name__}
    for field_name in node.__dataclass_fields__:
        val = getattr(node, field_name)
        d[field_name] = _node_to_dict(val)
    return d
