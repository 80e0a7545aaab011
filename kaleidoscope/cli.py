"""
Command line entry point for the Kaleidoscope compiler.

    kaleidoscope program.ks         run a source file
    kaleidoscope -e "1 + 2"         run a snippet
    kaleidoscope                    interactive ready> loop on stdin
"""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .jit import Driver, KaleidoscopeJIT

LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def configure_logging(verbosity: int):
    """Route library logging to stderr through rich."""
    level = LOG_LEVELS.get(verbosity, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False), required=False)
@click.option("-e", "--expr", "expression", metavar="SOURCE",
              help="Compile and run SOURCE instead of a file.")
@click.option("--dump-ir", is_flag=True, help="Print the LLVM IR of every compiled unit.")
@click.option("--dump-ast", is_flag=True, help="Print every parsed unit as an S-expression.")
@click.option("--target", "target_triple", default=None, metavar="TRIPLE",
              help="LLVM target triple, defaults to the host.")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v, -vv).")
@click.version_option(__version__, prog_name="kaleidoscope")
def main(source_file, expression, dump_ir, dump_ast, target_triple, verbose):
    """Compile and run Kaleidoscope programs."""
    configure_logging(verbose)

    driver = Driver(KaleidoscopeJIT(target_triple), Console(), dump_ir=dump_ir, dump_ast=dump_ast)

    if expression is not None:
        summary = driver.run_source(expression, "<expr>")
    elif source_file is not None:
        with open(source_file, 'r', encoding='utf-8') as f:
            source = f.read()
        summary = driver.run_source(source, source_file)
    else:
        driver.repl(click.get_text_stream("stdin"))
        return

    if not summary.ok:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
