"""
Source positions and the diagnostics sink shared by the lexer and the parser.

Every diagnostic kind is a small frozen dataclass. Errors are fatal: recording
one sets the sink's trigger so the script never reaches the machine. Warnings
are printed but never stop a run.
"""

import sys
from dataclasses import dataclass, field
from typing import List, Tuple, Union

# (line, column), both 1-based; columns count raw bytes of the line buffer.
Pos = Tuple[int, int]


@dataclass(frozen=True)
class Loc:
    """Half-open range of positions; `end` is just past the last character."""
    start: Pos
    end: Pos


# ===================================================================
# Diagnostic kinds
# ===================================================================

@dataclass(frozen=True)
class WrongPath:
    fatal = True


@dataclass(frozen=True)
class ReadFile:
    fatal = True


@dataclass(frozen=True)
class ReadLine:
    fatal = True
    line: int


@dataclass(frozen=True)
class EmptyFile:
    fatal = True


@dataclass(frozen=True)
class UnclosedString:
    fatal = True
    pos: Pos


@dataclass(frozen=True)
class ExpectedToken:
    fatal = True
    pos: Pos
    expected: str


@dataclass(frozen=True)
class UnexpectedToken:
    fatal = True
    loc: Loc
    expected: str
    # End of the token preceding the offending one.
    after: Pos


@dataclass(frozen=True)
class NullVariable:
    fatal = True
    loc: Loc
    name: str


@dataclass(frozen=True)
class NoParse:
    fatal = True
    pos: Pos
    text: str


@dataclass(frozen=True)
class WrongExec:
    fatal = True


@dataclass(frozen=True)
class UnknownEscape:
    fatal = False
    pos: Pos


@dataclass(frozen=True)
class EmptyString:
    fatal = False
    pos: Pos


Diagnostic = Union[
    WrongPath, ReadFile, ReadLine, EmptyFile, UnclosedString, ExpectedToken,
    UnexpectedToken, NullVariable, NoParse, WrongExec, UnknownEscape, EmptyString,
]


# ===================================================================
# Sink
# ===================================================================

@dataclass
class Diagnostics:
    """Accumulates the diagnostics of one script, in the order they occur."""
    file: str
    entries: List[Diagnostic] = field(default_factory=list)
    triggered: bool = False

    def push(self, error: Diagnostic) -> None:
        """Record an error. Always sets the trigger."""
        self.triggered = True
        self.entries.append(error)

    def push_warning(self, warning: Diagnostic) -> None:
        self.entries.append(warning)

    def record(self, diagnostic: Diagnostic) -> None:
        if diagnostic.fatal:
            self.push(diagnostic)
        else:
            self.push_warning(diagnostic)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.entries if d.fatal]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.entries if not d.fatal]

    def __len__(self) -> int:
        return len(self.entries)

    def _format(self, d: Diagnostic) -> List[Tuple[str, str]]:
        f = self.file
        match d:
            case WrongPath():
                return [("stderr", f"error: {f}: No such file or directory")]
            case ReadFile():
                return [("stderr", f"error: {f}: Can't read the file")]
            case ReadLine(line=n):
                return [("stderr", f"error: {f}: Can't read the file at line {n}")]
            case EmptyFile():
                return [("stderr", f"error: {f}: No instructions were found")]
            case UnclosedString(pos=(l, c)):
                return [("stderr", f"error: {f}:{l}:{c} Unclose string")]
            case ExpectedToken(pos=(l, c), expected=what):
                return [
                    ("stderr", f"error: {f}:{l}:{c} Expected token"),
                    ("stdout", f"note: {what} is expexted"),
                ]
            case UnexpectedToken(loc=loc, expected=what, after=(al, ac)):
                l, c = loc.start
                return [
                    ("stderr", f"error: {f}:{l}:{c} Unexpected token"),
                    ("stdout", f"note: {what} is expexted at {f}:{al}:{ac}"),
                ]
            case NullVariable(loc=loc, name=name):
                l, c = loc.start
                return [("stderr", f"error: {f}:{l}:{c} Variable `{name}` has no value")]
            case NoParse(pos=(l, c), text=text):
                return [("stderr", f"error: {f}:{l}:{c} Impossible to parse at token `{text}`")]
            case WrongExec():
                return [("stderr", f"error: {f}: Something went wrong with the execution")]
            case UnknownEscape(pos=(l, c)):
                return [("stderr", f"warning: {f}:{l}:{c} Unknow escape sequence")]
            case EmptyString(pos=(l, c)):
                return [("stderr", f"warning: {f}:{l}:{c} Empty string")]
            case _:
                raise TypeError(f"Unknown diagnostic: {d!r}")

    def render(self) -> List[Tuple[str, str]]:
        """Returns (stream, text) pairs for every entry in insertion order."""
        lines = []
        for d in self.entries:
            lines.extend(self._format(d))
        return lines

    def flush(self, stdout=None, stderr=None) -> None:
        """Write and forget every entry; exit with status 1 if an error was recorded."""
        if not self.entries:
            return
        streams = {"stdout": stdout or sys.stdout, "stderr": stderr or sys.stderr}
        for stream, text in self.render():
            print(text, file=streams[stream])
        self.entries.clear()
        if self.triggered:
            raise SystemExit(1)
        print("", file=streams["stdout"])
