"""
The instruction set shared by the parser and the virtual machine.

A program is a flat list of these instructions: there is no jump, so the
machine simply executes them in order. The set is closed; consumers match on
the concrete classes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Union


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class PushLiteral:
    text: str


@dataclass(frozen=True)
class BindVariable:
    """Bind `name` to the top of the stack without popping it."""
    name: str


@dataclass(frozen=True)
class ReadVariable:
    name: str


@dataclass(frozen=True)
class Concatenate:
    pass


@dataclass(frozen=True)
class Print:
    pass


@dataclass(frozen=True)
class Request:
    """Operands (top first): expected status, [body], url."""
    method: Method
    has_body: bool


@dataclass(frozen=True)
class RequestCapture:
    """Like Request; pushes the response body back for a following bind."""
    method: Method
    has_body: bool


@dataclass(frozen=True)
class RequestCompare:
    """Operands (top first): expected content, expected status, [body], url."""
    method: Method
    has_body: bool


Instruction = Union[
    PushLiteral, BindVariable, ReadVariable, Concatenate, Print,
    Request, RequestCapture, RequestCompare,
]

RequestInstruction = Union[Request, RequestCapture, RequestCompare]

Program = List[Instruction]


def min_depth(inst: RequestInstruction) -> int:
    """Stack depth needed before a request can be attempted.

    Two for `Request`/`RequestCapture` (status, url), three for
    `RequestCompare`, plus one when the request carries a body.
    """
    base = 3 if isinstance(inst, RequestCompare) else 2
    return base + (1 if inst.has_body else 0)
