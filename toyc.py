#!/usr/bin/env python3
from __future__ import annotations

import io
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, TextIO

# ----------------------------
# Character source
# ----------------------------

EOF = ""

WHITESPACE = " \t\n\v\f\r"
LETTERS = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
DIGITS = "0123456789"


class CharSource:
    """Pull-based reader over a text stream with one character of pushback."""

    def __init__(self, stream: TextIO):
        self.stream = stream
        self.pos = 0
        self._pushed: List[str] = []

    def getc(self) -> str:
        if self._pushed:
            ch = self._pushed.pop()
        else:
            ch = self.stream.read(1)
        if ch != EOF:
            self.pos += 1
        return ch

    def ungetc(self, ch: str) -> None:
        if ch == EOF:
            return
        self._pushed.append(ch)
        self.pos -= 1


# ----------------------------
# Lexer
# ----------------------------

MAX_TOKEN_LENGTH = 100

KEYWORDS = {"int": "INT", "if": "IF"}

# there is no EQ token: '=' always lexes as ASSIGN
PUNCT = {
    "=": "ASSIGN",
    "+": "PLUS",
    "-": "MINUS",
    "{": "LBRACE",
    "}": "RBRACE",
    ";": "SEMI",
}

PARENS = {"(": "LPAREN", ")": "RPAREN"}


@dataclass
class Tok:
    kind: str
    value: str
    pos: int


class Tokenizer:
    def __init__(self, source: CharSource, parens: bool = False):
        self.source = source
        self.parens = parens
        self.punct = dict(PUNCT, **PARENS) if parens else PUNCT

    def _accumulate(self, first: str, chars: str) -> str:
        # Overlong words are truncated but still consumed.
        buf = [first]
        ch = self.source.getc()
        while ch != EOF and ch in chars:
            if len(buf) < MAX_TOKEN_LENGTH - 1:
                buf.append(ch)
            ch = self.source.getc()
        self.source.ungetc(ch)
        return "".join(buf)

    def next_token(self) -> Tok:
        src = self.source
        while True:
            start = src.pos
            ch = src.getc()
            if ch == EOF:
                return Tok("END", "", src.pos)
            if ch in WHITESPACE:
                continue
            if ch in LETTERS:
                word = self._accumulate(ch, LETTERS + DIGITS)
                return Tok(KEYWORDS.get(word, "ID"), word, start)
            if ch in DIGITS:
                return Tok("NUM", self._accumulate(ch, DIGITS), start)
            kind = self.punct.get(ch)
            if kind is not None:
                return Tok(kind, ch, start)
            # anything else is dropped without a token


def lex(src: str, parens: bool = False) -> List[Tok]:
    tz = Tokenizer(CharSource(io.StringIO(src)), parens=parens)
    toks: List[Tok] = []
    while True:
        t = tz.next_token()
        toks.append(t)
        if t.kind == "END":
            return toks


# ----------------------------
# AST
# ----------------------------

class Stmt: pass

class Expr: pass

@dataclass
class Value(Expr):
    text: str

@dataclass
class Decl(Stmt):
    name: str

@dataclass
class Assign(Stmt):
    name: str
    expr: Optional[Value]

@dataclass
class Block(Stmt):
    stmts: List[Stmt] = field(default_factory=list)

@dataclass
class Cond(Stmt):
    cond: Optional[Value]
    body: Block


# ----------------------------
# Parser (recursive descent)
# ----------------------------

class Parser:
    def __init__(self, tokenizer: Tokenizer):
        self.tokenizer = tokenizer
        self.cur: Tok = Tok("END", "", 0)
        if tokenizer.parens:
            self.cond_open, self.cond_close = ("LPAREN", "("), ("RPAREN", ")")
        else:
            self.cond_open, self.cond_close = ("LBRACE", "{"), ("RBRACE", "}")

    def advance(self) -> Tok:
        self.cur = self.tokenizer.next_token()
        return self.cur

    def expect(self, kind: str, what: str) -> Tok:
        t = self.cur
        if t.kind != kind:
            raise SyntaxError(f"Expected {what}, got {t.kind} at {t.pos}")
        return t

    def parse_program(self) -> List[Stmt]:
        stmts: List[Stmt] = []
        while True:
            st = self.parse_statement()
            if st is None:
                return stmts
            stmts.append(st)

    def parse_statement(self) -> Optional[Stmt]:
        """Parse one statement, or return None if the next token cannot start one.

        The token that stopped parsing is left in self.cur.
        """
        t = self.advance()
        if t.kind == "INT":
            return self.parse_declaration()
        if t.kind == "ID":
            return self.parse_assignment()
        if t.kind == "IF":
            return self.parse_conditional()
        if t.kind == "LBRACE":
            # an empty block ends parsing like any other non-statement
            blk = self.parse_block()
            return blk if blk.stmts else None
        return None

    def parse_declaration(self) -> Decl:
        self.advance()
        name = self.expect("ID", "identifier").value
        self.advance()
        self.expect("SEMI", "';'")
        return Decl(name)

    def parse_assignment(self) -> Assign:
        name = self.expect("ID", "identifier").value
        self.advance()
        self.expect("ASSIGN", "'='")
        expr = self.parse_expression()
        self.advance()
        self.expect("SEMI", "';'")
        return Assign(name, expr)

    def parse_expression(self) -> Optional[Value]:
        t = self.advance()
        if t.kind in ("NUM", "ID"):
            return Value(t.value)
        return None

    def parse_conditional(self) -> Cond:
        open_kind, open_text = self.cond_open
        close_kind, close_text = self.cond_close
        self.advance()
        self.expect(open_kind, f"'{open_text}'")
        cond = self.parse_expression()
        self.advance()
        self.expect(close_kind, f"'{close_text}'")
        self.advance()
        self.expect("LBRACE", "'{'")
        body = self.parse_block()
        self.expect("RBRACE", "'}'")
        return Cond(cond, body)

    def parse_block(self) -> Block:
        """Collect statements after an already consumed '{' until one comes back None.

        The closing '}' is not required here; only a conditional body checks it.
        """
        stmts: List[Stmt] = []
        while True:
            st = self.parse_statement()
            if st is None:
                break
            stmts.append(st)
        return Block(stmts)


# ----------------------------
# Codegen (pseudo-assembly)
# ----------------------------

ELSE_LABEL = "else_label"


class Codegen:
    def __init__(self, out: Optional[TextIO] = None, unique_labels: bool = False):
        self.out = out
        self.unique_labels = unique_labels
        self.lines: List[str] = []
        self.label_id = 0

    def new_label(self) -> str:
        if not self.unique_labels:
            return ELSE_LABEL
        self.label_id += 1
        return f"{ELSE_LABEL}_{self.label_id}"

    def emit(self, s: str) -> None:
        self.lines.append(s)
        if self.out is not None:
            self.out.write(s + "\n")

    def gen(self, node: object) -> None:
        if node is None:
            return
        if isinstance(node, Decl):
            self.emit(f"VAR {node.name}")
        elif isinstance(node, Assign):
            self.gen(node.expr)
            self.emit(f"STORE {node.name}")
        elif isinstance(node, Value):
            self.emit(f"LOAD {node.text}")
        elif isinstance(node, Cond):
            lab = self.new_label()
            self.gen(node.cond)
            self.emit(f"JZ {lab}")
            self.gen(node.body)
            self.emit(f"{lab}:")
        elif isinstance(node, Block):
            for st in node.stmts:
                self.gen(st)
        else:
            self.emit("Unknown node type")


# ----------------------------
# Driver
# ----------------------------

HELP = """\
Usage:
  python3 toyc.py [-o output] [-p] [-u] [-t] [-a] [-v] [program]

  -o FILE  write the listing to FILE instead of stdout
  -p       lex '(' and ')' and parse conditions as if (cond) { ... }
  -u       number else labels so conditionals do not collide
  -t       print the token stream instead of code
  -a       print the parsed statements instead of code
  -v       print a summary to stderr
  program  source file (default: input, '-' for stdin)
"""


def compile_stream(stream: TextIO, out: Optional[TextIO] = None, *,
                   parens: bool = False, unique_labels: bool = False) -> List[str]:
    parser = Parser(Tokenizer(CharSource(stream), parens=parens))
    cg = Codegen(out, unique_labels=unique_labels)
    while True:
        st = parser.parse_statement()
        if st is None:
            break
        cg.gen(st)
    return cg.lines


def compile_source(src: str, **kw) -> str:
    lines = compile_stream(io.StringIO(src), **kw)
    return "".join(line + "\n" for line in lines)


def dump_tokens(stream: TextIO, out: TextIO, parens: bool = False) -> int:
    tz = Tokenizer(CharSource(stream), parens=parens)
    n = 0
    while True:
        t = tz.next_token()
        if t.kind == "END":
            return n
        out.write(f"{t.kind} {t.value}\n")
        n += 1


def dump_ast(stream: TextIO, out: TextIO, parens: bool = False) -> int:
    parser = Parser(Tokenizer(CharSource(stream), parens=parens))
    n = 0
    while True:
        st = parser.parse_statement()
        if st is None:
            return n
        out.write(f"{st!r}\n")
        n += 1


def main(argv: List[str]) -> int:
    import getopt
    try:
        opts, args = getopt.getopt(argv[1:], "o:puatv")
    except getopt.GetoptError as e:
        print(f"toyc.py: {e}", file=sys.stderr)
        print(HELP, file=sys.stderr)
        return 2

    out_path = None
    parens = unique_labels = verbose = False
    mode = "code"
    for flag, val in opts:
        if flag == "-o":
            out_path = val
        elif flag == "-p":
            parens = True
        elif flag == "-u":
            unique_labels = True
        elif flag == "-t":
            mode = "tokens"
        elif flag == "-a":
            mode = "ast"
        elif flag == "-v":
            verbose = True

    if len(args) > 1:
        print(HELP, file=sys.stderr)
        return 2

    src_path = args[0] if args else "input"
    if src_path != "-" and not Path(src_path).exists():
        print(f"toyc.py: file not found: {src_path}", file=sys.stderr)
        return 1

    source = out = None
    try:
        # undecodable bytes become U+FFFD, which the lexer drops
        source = sys.stdin if src_path == "-" else open(src_path, encoding="utf-8", errors="replace")
        out = open(out_path, "w", encoding="utf-8") if out_path else sys.stdout
        if mode == "tokens":
            n = dump_tokens(source, out, parens=parens)
            summary = f"{n} tokens"
        elif mode == "ast":
            n = dump_ast(source, out, parens=parens)
            summary = f"{n} statements"
        else:
            lines = compile_stream(source, out, parens=parens, unique_labels=unique_labels)
            summary = f"{len(lines)} lines"
    except SyntaxError as e:
        print(f"toyc.py: Syntax Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"toyc.py: {e}", file=sys.stderr)
        return 1
    finally:
        if source is not None and source is not sys.stdin:
            source.close()
        if out is not None and out is not sys.stdout:
            out.close()

    if verbose:
        print(f"toyc.py: {summary}", file=sys.stderr)
    return 0

if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
