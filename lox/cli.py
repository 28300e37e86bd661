"""
Lox - Command Line Interface

Usage:
    lox script.lox [--debug] [--emit-ast] [--emit-tokens]
    lox                       # interactive prompt
    python -m lox script.lox
"""

import sys
import argparse
import cmd


class Shell(cmd.Cmd):
    """Interactive Lox prompt. Variables persist from one line to the next."""
    intro = "Lox interpreter. Type 'exit' or press Ctrl-D to quit."
    prompt = "> "

    def __init__(self, debug=False, *args, **kwargs):
        super().__init__(*args, **kwargs)
        from .diagnostics import ErrorReporter
        from .interpreter import Interpreter

        self.reporter = ErrorReporter()
        self.interpreter = Interpreter(self.reporter)
        self.debug = debug

    def onecmd(self, line):
        """Only a bare `exit` or end of input is a shell command; the rest is Lox."""
        line = line.strip()
        if line in ("exit", "EOF"):
            return super().onecmd(line)
        if not line:
            return self.emptyline()
        return self.default(line)

    def default(self, line):
        """Runs one line of Lox."""
        from .runner import run_source

        run_source(line, interpreter=self.interpreter, debug=self.debug)
        # A mistake on one line must not poison the next.
        self.reporter.reset()

    def emptyline(self):
        """Do not repeat the previous line."""
        return False

    def do_EOF(self, arg):
        """Exits the prompt."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits the prompt."""
        return True


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="lox",
        description="Lox scripting language interpreter",
    )
    parser.add_argument("script", nargs="?", help="Path to the .lox script (omit for a prompt)")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print interpreter phase info to stderr",
    )
    parser.add_argument(
        "--emit-ast",
        action="store_true",
        dest="emit_ast",
        help="Print the parsed program as JSON instead of running it",
    )
    parser.add_argument(
        "--emit-tokens",
        action="store_true",
        dest="emit_tokens",
        help="Print the token stream as JSON instead of running it",
    )

    from .runner import EXIT_USAGE, EXIT_DATAERR, EXIT_NOINPUT, run_file

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse exits with 2 on bad usage; sysexits says 64
        if e.code:
            sys.exit(EXIT_USAGE)
        raise

    if args.script is None:
        if args.emit_ast or args.emit_tokens:
            parser.print_usage(sys.stderr)
            sys.exit(EXIT_USAGE)
        Shell(debug=args.debug).cmdloop()
        return

    try:
        code = run_file(
            args.script,
            emit_ast=args.emit_ast,
            emit_tokens=args.emit_tokens,
            debug=args.debug,
        )
    except OSError as e:
        print(f"[lox] Error: cannot read {args.script!r}: {e.strerror}", file=sys.stderr)
        sys.exit(EXIT_NOINPUT)
    except UnicodeDecodeError as e:
        print(f"[lox] Error: cannot decode {args.script!r} as UTF-8: {e.reason}", file=sys.stderr)
        sys.exit(EXIT_DATAERR)
    sys.exit(code)


if __name__ == "__main__":
    main()
