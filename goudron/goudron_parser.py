"""
Single-pass recursive-descent parser.

Statements are compiled straight into a flat instruction list while the
tokens are consumed left to right. The only semantic check is that a
variable is declared before it is read. Errors are recorded on the shared
diagnostics sink and parsing carries on with the next token, so one run
reports as many problems as possible.

Grammar:

    statement    := assignment | print_stmt | request_stmt
    assignment   := Identifier '=' value
    print_stmt   := 'print' value
    value        := (String | Identifier) ('+' value)?
    request_stmt := Method value ('body' value)? Number? ('=' Identifier | '?' value)?
"""

from typing import List, Set

from goudron.goudron_errors import (
    Diagnostics, ExpectedToken, UnexpectedToken, NullVariable, NoParse,
)
from goudron.goudron_instructions import (
    Instruction, Method, PushLiteral, BindVariable, ReadVariable, Concatenate,
    Print, Request, RequestCapture, RequestCompare,
)
from goudron.goudron_lexer import Token, TokenKind

VALUE = "a string or a variable"

METHODS = {
    TokenKind.GET: Method.GET,
    TokenKind.POST: Method.POST,
    TokenKind.PUT: Method.PUT,
    TokenKind.DELETE: Method.DELETE,
}

DEFAULT_STATUS = "200"


class Parser:
    def __init__(self, tokens: List[Token], diagnostics: Diagnostics):
        self.tokens = tokens
        self.diagnostics = diagnostics
        self.cursor = 0
        self.program: List[Instruction] = []
        self.declared: Set[str] = set()

    # ---------------------------------------------------------------
    # Cursor helpers
    # ---------------------------------------------------------------

    @property
    def current(self) -> Token:
        return self.tokens[self.cursor]

    def next(self) -> None:
        self.cursor += 1

    def reach_end(self) -> bool:
        return self.cursor >= len(self.tokens)

    def check_near_end(self, expected: str) -> bool:
        """True when a token follows the current one.

        Otherwise records an expected-token error at the end of the current
        token and moves past it.
        """
        if self.cursor + 1 >= len(self.tokens):
            self.diagnostics.push(ExpectedToken(self.current.loc.end, expected))
            self.next()
            return False
        return True

    def unexpected(self, expected: str) -> None:
        previous_end = self.tokens[self.cursor - 1].loc.end if self.cursor > 0 else self.current.loc.start
        self.diagnostics.push(UnexpectedToken(self.current.loc, expected, previous_end))

    def emit(self, inst: Instruction) -> None:
        self.program.append(inst)

    # ---------------------------------------------------------------
    # Values
    # ---------------------------------------------------------------

    def parse_plus(self) -> None:
        if self.reach_end() or self.current.kind != TokenKind.PLUS:
            return
        if self.check_near_end(VALUE):
            self.next()
            if self.parse_value():
                self.emit(Concatenate())

    def parse_value(self) -> bool:
        """Emit the instructions of a value. Returns False when none was produced."""
        if self.reach_end():
            return False
        token = self.current
        match token.kind:
            case TokenKind.STRING:
                self.emit(PushLiteral(token.text))
                self.next()
                self.parse_plus()
                return True
            case TokenKind.ID if token.text in self.declared:
                self.emit(ReadVariable(token.text))
                self.next()
                self.parse_plus()
                return True
            case TokenKind.ID:
                self.diagnostics.push(NullVariable(token.loc, token.text))
                self.next()
            case _:
                # The offending token is left for the statement loop.
                self.unexpected(VALUE)
        return False

    # ---------------------------------------------------------------
    # Statements
    # ---------------------------------------------------------------

    def parse_assignment(self) -> None:
        if not self.check_near_end("a token"):
            return
        name = self.current.text
        self.next()

        if self.current.kind != TokenKind.EQ:
            self.unexpected("an equal sign")
            return
        if self.check_near_end(VALUE):
            self.next()
            if self.parse_value():
                self.declared.add(name)
                self.emit(BindVariable(name))

    def parse_print(self) -> None:
        if self.check_near_end(VALUE):
            self.next()
            if self.parse_value():
                self.emit(Print())

    def parse_request(self, method: Method) -> None:
        if not self.check_near_end(VALUE):
            return
        self.next()

        # URL
        if not self.parse_value():
            return

        has_body = False
        if not self.reach_end() and self.current.kind == TokenKind.BODY:
            if self.check_near_end(VALUE):
                self.next()
                has_body = self.parse_value()

        if self.reach_end():
            self.emit(PushLiteral(DEFAULT_STATUS))
            self.emit(Request(method, has_body))
            return

        if self.current.kind == TokenKind.NUMBER:
            self.emit(PushLiteral(self.current.text))
            self.next()
        else:
            self.emit(PushLiteral(DEFAULT_STATUS))

        if self.reach_end():
            self.emit(Request(method, has_body))
            return

        match self.current.kind:
            case TokenKind.EQ:
                if self.check_near_end("a variable name"):
                    self.next()
                    if self.current.kind == TokenKind.ID:
                        name = self.current.text
                        self.emit(RequestCapture(method, has_body))
                        self.emit(BindVariable(name))
                        self.declared.add(name)
                        self.next()
                    else:
                        self.unexpected("a variable name")
            case TokenKind.QMARK:
                if self.check_near_end(VALUE):
                    self.next()
                    if self.parse_value():
                        self.emit(RequestCompare(method, has_body))
            case _:
                self.emit(Request(method, has_body))

    def parse(self) -> List[Instruction]:
        while not self.reach_end():
            token = self.current
            match token.kind:
                case TokenKind.ID:
                    self.parse_assignment()
                case TokenKind.PRINT:
                    self.parse_print()
                case TokenKind.GET | TokenKind.POST | TokenKind.PUT | TokenKind.DELETE:
                    self.parse_request(METHODS[token.kind])
                case TokenKind.STRING:
                    self.diagnostics.push(NoParse(token.loc.start, f'"{token.text}"'))
                    self.next()
                case _:
                    self.diagnostics.push(NoParse(token.loc.start, token.text))
                    self.next()

        return list(self.program)
