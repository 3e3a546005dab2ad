# goudron_runtime.py

from dataclasses import dataclass, field
from typing import List, Dict, Literal, Optional, Tuple

from goudron.goudron_config import RunConfig
from goudron.goudron_errors import Diagnostics, WrongExec
from goudron.goudron_instructions import Instruction
from goudron.goudron_lexer import Lexer, open_script
from goudron.goudron_parser import Parser
from goudron.goudron_vm import VM, RouteAbort


@dataclass
class ExecutionResult:
    """The structured result of running one script."""
    status: Literal['success', 'error']
    diagnostics: Diagnostics
    ok: int = 0
    err: int = 0
    side_effects: List[Dict] = field(default_factory=list)
    # True when blocking mode stopped the run on a failed route.
    aborted: bool = False
    # False when diagnostics kept the script from running at all.
    executed: bool = False

    @property
    def total(self) -> int:
        return self.ok + self.err

    @property
    def passed(self) -> bool:
        return self.status == 'success' and self.err == 0


class ScriptRunner:
    """Lexes, parses, and executes goudron scripts, one at a time."""

    def __init__(self, config: Optional[RunConfig] = None):
        self.config = config or RunConfig()

    def compile(self, source: str, name: str = "<script>") -> Tuple[List[Instruction], Diagnostics]:
        """Lex and parse `source` without running it."""
        diagnostics = Diagnostics(name)
        tokens = Lexer.from_text(source, diagnostics).tokenize()
        program = Parser(tokens, diagnostics).parse()
        return program, diagnostics

    def compile_file(self, path: str) -> Tuple[List[Instruction], Diagnostics]:
        """Read, lex and parse the script at `path`; a missing file yields no program."""
        diagnostics = Diagnostics(path)
        f = open_script(path, diagnostics)
        if f is None:
            return [], diagnostics
        with f:
            tokens = Lexer(f, diagnostics).tokenize()
        program = Parser(tokens, diagnostics).parse()
        return program, diagnostics

    async def handle_script(self, source: str, name: str = "<script>") -> ExecutionResult:
        """The main entry point to check and run a script held in memory."""
        program, diagnostics = self.compile(source, name)
        return await self.execute(program, diagnostics)

    async def handle_file(self, path: str) -> ExecutionResult:
        program, diagnostics = self.compile_file(path)
        return await self.execute(program, diagnostics)

    async def execute(self, program: List[Instruction], diagnostics: Diagnostics) -> ExecutionResult:
        # Any recorded error stops the script before a single request is made.
        if diagnostics.triggered:
            return ExecutionResult(status='error', diagnostics=diagnostics)

        cfg = self.config
        vm = VM(program, silent=cfg.silent, quiet=cfg.quiet, blocking=cfg.blocking, http_config=cfg.http)
        try:
            counts = await vm.run()
        except RouteAbort as abort:
            return ExecutionResult(
                status='error',
                diagnostics=diagnostics,
                ok=abort.ok,
                err=abort.err,
                side_effects=vm.side_effects,
                aborted=True,
                executed=True,
            )

        if counts is None:
            diagnostics.push(WrongExec())
            return ExecutionResult(
                status='error',
                diagnostics=diagnostics,
                ok=vm.ok,
                err=vm.err,
                side_effects=vm.side_effects,
                executed=True,
            )

        ok, err = counts
        return ExecutionResult(
            status='success',
            diagnostics=diagnostics,
            ok=ok,
            err=err,
            side_effects=vm.side_effects,
            executed=True,
        )
