"""
h45c - H-45 Compiler Command-Line Interface
===========================================

This module implements the command-line interface for the H-45
compiler.

Usage Examples
--------------
Basic compilation (writes program.asm next to the source):
    $ h45c program.h45

With output file:
    $ h45c program.h45 -o out.asm

Inspect the front end:
    $ h45c --tokens program.h45
    $ h45c --ast program.h45

Verbose mode (debug logging):
    $ h45c -v program.h45
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from h45 import __version__
from h45.cli.errors import ExitCode, handle_cli_exception
from h45.lang.ast import ASTPrinter
from h45.lang.compiler import CompilerOptions, CompilerPhase, CompilerResult, H45Compiler


logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(name)s: %(message)s" if verbose else "%(message)s",
    )


def _echo_phases(result: CompilerResult) -> None:
    for phase, ok in result.phases:
        status = "ok" if ok else "failed"
        click.echo(f"Phase {phase.number}: {phase.title}... {status}")


def _phase_ok(result: CompilerResult, wanted: CompilerPhase) -> bool:
    return any(phase is wanted and ok for phase, ok in result.phases)


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output listing file (default: input.asm)",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print the token stream and exit (for debugging)",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print AST and exit (for debugging)",
)
@click.option(
    "--no-comments",
    is_flag=True,
    help="Leave comments out of the generated listing",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="h45c")
def main(
    input_file: Path,
    output: Optional[Path],
    tokens: bool,
    ast: bool,
    no_comments: bool,
    verbose: bool,
) -> None:
    """
    Compile an H-45 program to stack-machine pseudo-assembly.

    INPUT_FILE is the H-45 source file to compile.

    \b
    Examples:
        h45c prog.h45                # Outputs prog.asm
        h45c prog.h45 -o out.asm     # Specify output file
        h45c --ast prog.h45          # Dump the syntax tree
        h45c -v prog.h45             # Verbose output
    """
    setup_logging(verbose)

    if output is None:
        output = input_file.with_suffix(".asm")

    options = CompilerOptions(output_comments=not no_comments)

    try:
        source = input_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        handle_cli_exception(e, verbose)

    try:
        if verbose:
            click.echo(f"Compiling {input_file}...")

        result = H45Compiler(options).compile_source(source, str(input_file))
        _echo_phases(result)

        if tokens and _phase_ok(result, CompilerPhase.LEXICAL):
            for token in result.tokens:
                click.echo(repr(token))

        if ast and _phase_ok(result, CompilerPhase.SYNTAX):
            click.echo(ASTPrinter().print(result.ast))

        if not result.success:
            for error in result.errors:
                click.echo(str(error), err=True)
            click.echo(f"Compilation failed with {result.error_count} error(s)", err=True)
            sys.exit(ExitCode.BUILD_ERROR)

        if tokens or ast:
            return

        output.write_text(result.assembly, encoding="utf-8")
        logger.debug(f"wrote {len(result.assembly)} bytes to {output}")

        click.echo("Compilation completed successfully")
        click.echo(f"Output written to: {output}")

    except Exception as e:
        handle_cli_exception(e, verbose)


if __name__ == "__main__":
    main()
