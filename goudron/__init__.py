from goudron.goudron_runtime import ScriptRunner, ExecutionResult
from goudron.goudron_config import RunConfig, load_config
from goudron.goudron_errors import Diagnostics
from goudron.goudron_lexer import Lexer, Token, TokenKind
from goudron.goudron_parser import Parser
from goudron.goudron_vm import VM, RouteAbort

__all__ = [
    "ScriptRunner", "ExecutionResult", "RunConfig", "load_config", "Diagnostics",
    "Lexer", "Token", "TokenKind", "Parser", "VM", "RouteAbort",
]
