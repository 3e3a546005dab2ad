"""
The stack machine that executes compiled goudron programs.

The machine owns a value stack of strings, a variable table and two
counters: routes that passed (`ok`) and routes that failed (`err`). Output is
not written directly; `print` values and route failure messages are recorded
as side effects (`{'topics': [...], 'message': ...}`) for the host to show.
"""

from typing import Any, Dict, List, Optional, Tuple

from goudron.goudron_http import http_request
from goudron.goudron_instructions import (
    Instruction, RequestInstruction, PushLiteral, BindVariable, ReadVariable,
    Concatenate, Print, Request, RequestCapture, RequestCompare, min_depth,
)


class RouteAbort(Exception):
    """Raised in blocking mode as soon as one route has failed."""
    def __init__(self, ok: int, err: int):
        super().__init__(f"route failed in blocking mode ({ok} ok, {err} failed)")
        self.ok = ok
        self.err = err


class VM:
    def __init__(self, program: List[Instruction], silent: bool = False, quiet: bool = False,
                 blocking: bool = False, http_config: Optional[Dict[str, Any]] = None):
        self.program = list(program)
        self.stack: List[str] = []
        self.variables: Dict[str, str] = {}
        self.ok = 0
        self.err = 0
        self.silent = silent
        self.quiet = quiet
        self.blocking = blocking
        self.http_config = dict(http_config or {})
        self.side_effects: List[Dict] = []
        self.cursor = 0

    def emit(self, topic: str, message: str) -> None:
        self.side_effects.append({'topics': [topic], 'message': message})

    async def run(self) -> Optional[Tuple[int, int]]:
        """Execute the whole program.

        Returns (ok, err) once the cursor reaches the end of the program.
        Raises RouteAbort in blocking mode on the first failed route.
        """
        self.cursor = 0
        while self.cursor < len(self.program):
            await self.step(self.program[self.cursor])
            self.cursor += 1
            if self.blocking and self.err != 0:
                raise RouteAbort(self.ok, self.err)

        if self.cursor == len(self.program):
            return (self.ok, self.err)
        return None

    async def step(self, inst: Instruction) -> None:
        stack = self.stack
        match inst:
            case PushLiteral(text=text):
                stack.append(text)
            case BindVariable(name=name):
                # Peek: the bound value stays available on the stack.
                if stack:
                    self.variables[name] = stack[-1]
            case ReadVariable(name=name):
                if name in self.variables:
                    stack.append(self.variables[name])
            case Concatenate():
                if len(stack) >= 2:
                    top = stack.pop()
                    second = stack.pop()
                    stack.append(second + top)
            case Print():
                # Quiet mode leaves the value on the stack.
                if stack and not self.quiet:
                    self.emit('stdout', stack.pop())
            case Request() | RequestCapture() | RequestCompare():
                await self.request(inst)
            case _:
                raise TypeError(f"Unknown instruction: {inst!r}")

    def _route_error(self, inst: RequestInstruction, url: str, reason: str) -> None:
        self.err += 1
        if not self.silent:
            self.emit('stderr', f"route error: {inst.method} {url} : {reason}")

    async def request(self, inst: RequestInstruction) -> None:
        stack = self.stack
        if len(stack) < min_depth(inst):
            self.err += 1
            return

        capture = isinstance(inst, RequestCapture)
        expected_content = stack.pop() if isinstance(inst, RequestCompare) else None
        expected_status = stack.pop()
        body = stack.pop() if inst.has_body else None
        # The url stays on the stack until the outcome is known.
        url = stack[-1]

        result = await http_request(str(inst.method), url, data=body, config=self.http_config)

        if result is None:
            self._route_error(inst, url, "Unable to make request")
            stack.pop()
            if capture:
                stack.append("")
            return

        if str(result.status) != expected_status:
            self._route_error(inst, url, "Invalid response code")
        elif expected_content is not None and result.text != expected_content:
            self._route_error(inst, url, "Invalid expected response")
        else:
            self.ok += 1
        stack.pop()
        if capture:
            stack.append(result.text)
