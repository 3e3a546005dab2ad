import asyncio
import sys
from typing import List, Optional

from goudron.goudron_config import RunConfig, load_config
from goudron.goudron_runtime import ScriptRunner, ExecutionResult

USAGE = """
goudron : lightweight api tester
Usage : goudron [option] file...
Option : -h, --help      Show this help.
         -b, --blocking  Stop the program after an route error.
         -f, --formated  Run script(s) and without any print, only a formated response (true or false).
         -s, --silent    Run script(s) with no route error print.
         -q, --quiet     Run script(s) without the print keyword.
         -c, --config    Read transport settings from a YAML file.
"""

FLAGS = {
    '-b': 'blocking', '--blocking': 'blocking',
    '-f': 'formatted', '--formated': 'formatted',
    '-s': 'silent', '--silent': 'silent',
    '-q': 'quiet', '--quiet': 'quiet',
}


def usage() -> None:
    print(USAGE)


def fail(message: str) -> None:
    print(f"error: {message}", file=sys.stderr)
    usage()
    raise SystemExit(1)


def parse_args(args: List[str]):
    """Split argv into (mode flags, config path, files). Options come before files."""
    args = list(args)
    flags = {}
    config_path: Optional[str] = None

    while args and args[0].startswith('-'):
        arg = args.pop(0)
        if arg in FLAGS:
            flags[FLAGS[arg]] = True
        elif arg in ('-c', '--config'):
            if not args:
                fail(f"{arg} : Missing configuration file")
            config_path = args.pop(0)
        else:
            fail(f"{arg} : No such option")

    if not args:
        fail("No input files")
    return flags, config_path, args


def print_side_effects(result: ExecutionResult) -> None:
    for effect in result.side_effects:
        stream = sys.stderr if effect.get('topics') == ['stderr'] else sys.stdout
        print(effect.get('message', ''), file=stream)


def print_summary(ok: int, err: int, formatted: bool) -> None:
    if formatted:
        print("true" if err == 0 else "false")
        return
    if ok + err == 0:
        return
    if err == 0:
        print(f"Done ! {ok} tests have been made with no errors.")
    else:
        print(f"Done ! {ok + err} tests have been made.")
        print(f"{ok} were successful")
        print(f"{err} came with errors")


async def run_files(files: List[str], config: RunConfig) -> int:
    """Run every script in order; returns the process exit status."""
    runner = ScriptRunner(config)
    ok, err = 0, 0

    for path in files:
        program, diagnostics = runner.compile_file(path)
        # Exits with status 1 when the script has errors.
        diagnostics.flush()

        result = await runner.execute(program, diagnostics)
        print_side_effects(result)
        if result.aborted:
            return 1
        if result.status == 'error':
            result.diagnostics.flush()

        ok += result.ok
        err += result.err
        print_summary(ok, err, config.formatted)

    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = sys.argv[1:] if argv is None else list(argv)

    if not args:
        usage()
        raise SystemExit(1)
    if len(args) == 1 and args[0] in ('-h', '--help'):
        usage()
        return

    flags, config_path, files = parse_args(args)
    try:
        config = load_config(config_path)
    except (OSError, ValueError) as e:
        print(f"error: {config_path}: {e}", file=sys.stderr)
        raise SystemExit(1)
    config = config.with_flags(**flags)

    status = asyncio.run(run_files(files, config))
    if status:
        raise SystemExit(status)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nExiting.")
