"""
Line-buffered lexer for goudron scripts.

The lexer works on raw bytes so that columns match the byte offsets of the
line buffer. It keeps one byte of lookahead (`c`) and pulls a new line only
when the current one is exhausted.
"""

import io
import os
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Iterable, Iterator, List, Optional, Union

from goudron.goudron_errors import (
    Diagnostics, Loc, Pos,
    ReadLine, EmptyFile, UnclosedString, UnknownEscape, EmptyString,
    WrongPath, ReadFile,
)


class TokenKind(Enum):
    ID = "identifier"
    STRING = "string"
    NUMBER = "number"
    EQ = "="
    PLUS = "+"
    QMARK = "?"
    PRINT = "print"
    BODY = "body"
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


KEYWORDS = {
    b"print": TokenKind.PRINT,
    b"body": TokenKind.BODY,
    b"get": TokenKind.GET, b"GET": TokenKind.GET,
    b"post": TokenKind.POST, b"POST": TokenKind.POST,
    b"put": TokenKind.PUT, b"PUT": TokenKind.PUT,
    b"delete": TokenKind.DELETE, b"DELETE": TokenKind.DELETE,
}

SINGLE_CHAR = {
    b"=": TokenKind.EQ,
    b"+": TokenKind.PLUS,
    b"?": TokenKind.QMARK,
}

ESCAPES = {
    b"n": b"\n",
    b"t": b"\t",
    b'"': b'"',
    b"\\": b"\\",
}


@dataclass
class Token:
    kind: TokenKind
    loc: Loc
    text: str

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.text!r}, {self.loc.start})"


class Lexer:
    """Turns a stream of lines into located tokens.

    `lines` may hold `bytes` or `str` (encoded as UTF-8); an open binary file
    is the usual source. Lexical problems are recorded on `diagnostics`
    and never raised.
    """

    def __init__(self, lines: Iterable[Union[bytes, str]], diagnostics: Diagnostics):
        self._source: Iterator = iter(lines)
        self.diagnostics = diagnostics
        self.line: bytes = b""
        self.cursor = 0
        self.line_nb = 0
        # Lookahead byte; empty once input is exhausted.
        self.c: bytes = b" "
        self.more = True
        self._read_line()

    @classmethod
    def from_text(cls, source: str, diagnostics: Diagnostics) -> "Lexer":
        # Same line splitting as a binary file: only on b"\n".
        return cls(io.BytesIO(source.encode("utf-8")), diagnostics)

    # ---------------------------------------------------------------
    # Input handling
    # ---------------------------------------------------------------

    def _read_line(self) -> None:
        if not self.more:
            return
        while True:
            try:
                line = next(self._source)
            except StopIteration:
                self.more = False
                return
            except (OSError, UnicodeError):
                self.diagnostics.push(ReadLine(self.line_nb))
                self.more = False
                return
            if isinstance(line, str):
                line = line.encode("utf-8")
            if line:
                break
        self.line = line
        self.cursor = 0
        self.line_nb += 1

    def advance(self) -> None:
        """Move the lookahead one byte forward, pulling a new line if needed."""
        if self.cursor >= len(self.line):
            self._read_line()
        if not self.more:
            self.c = b""
            self.cursor = len(self.line) + 1
            return
        self.c = self.line[self.cursor:self.cursor + 1]
        self.cursor += 1

    @property
    def pos(self) -> Pos:
        return (self.line_nb, self.cursor)

    # ---------------------------------------------------------------
    # Token readers
    # ---------------------------------------------------------------

    def read_char(self, kind: TokenKind) -> Token:
        token = Token(kind, Loc(self.pos, (self.line_nb, self.cursor + 1)), self.c.decode("ascii"))
        self.advance()
        return token

    def read_string(self) -> Token:
        start = self.pos
        quote = self.c
        self.advance()
        buf = bytearray()

        while self.more and self.c != quote:
            if self.c == b"\\":
                if self.cursor == len(self.line):
                    # Backslash is the last byte of the input.
                    self.diagnostics.push_warning(UnknownEscape(self.pos))
                else:
                    self.advance()
                    escaped = ESCAPES.get(self.c)
                    if escaped is None:
                        self.diagnostics.push_warning(UnknownEscape(self.pos))
                        buf += self.c
                    else:
                        buf += escaped
            else:
                buf += self.c
            self.advance()

        if not self.more or self.c != quote:
            self.diagnostics.push(UnclosedString(start))
        else:
            self.advance()

        try:
            content = buf.decode("utf-8")
        except UnicodeDecodeError:
            content = ""

        if content == "":
            self.diagnostics.push_warning(EmptyString(start))

        return Token(TokenKind.STRING, Loc(start, self.pos), content)

    def _read_run(self, accept) -> bytes:
        buf = bytearray()
        while self.more and accept(self.c):
            buf += self.c
            self.advance()
        return bytes(buf)

    def read_id(self) -> Token:
        start = self.pos
        word = self._read_run(bytes.isalpha)
        kind = KEYWORDS.get(word, TokenKind.ID)
        return Token(kind, Loc(start, self.pos), word.decode("ascii"))

    def read_number(self) -> Token:
        start = self.pos
        digits = self._read_run(bytes.isdigit)
        return Token(TokenKind.NUMBER, Loc(start, self.pos), digits.decode("ascii"))

    def skip_space(self) -> None:
        while self.more and self.c in (b" ", b"\t"):
            self.advance()

    def skip_line(self) -> None:
        self._read_line()
        self.advance()

    # ---------------------------------------------------------------
    # Main loop
    # ---------------------------------------------------------------

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []

        while self.more:
            self.skip_space()
            c = self.c

            if c == b"#":
                self.skip_line()
            elif c in SINGLE_CHAR:
                tokens.append(self.read_char(SINGLE_CHAR[c]))
            elif c in (b'"', b"'"):
                tokens.append(self.read_string())
            elif c and c.isalpha():
                tokens.append(self.read_id())
            elif c and c.isdigit():
                tokens.append(self.read_number())
            else:
                # Newlines and any other byte are skipped.
                self.advance()

        if not tokens:
            self.diagnostics.push(EmptyFile())

        return tokens


def open_script(path: str, diagnostics: Diagnostics) -> Optional[BinaryIO]:
    """Open a script for lexing, recording a diagnostic when that fails."""
    if not os.path.exists(path):
        diagnostics.push(WrongPath())
        return None
    try:
        return open(path, "rb")
    except OSError:
        diagnostics.push(ReadFile())
        return None
