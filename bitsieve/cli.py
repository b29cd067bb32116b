"""CLI for bitsieve."""

from __future__ import annotations

import logging
import sys
import time

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from bitsieve import __version__
from bitsieve.errors import BitsieveError, InvalidArgumentError

DEFAULT_CLI_SIGNIFICANCE = 0.05

console = Console()


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", count=True, help="Log progress (-v) or parameter adjustments (-vv).")
def main(verbose: int) -> None:
    """bitsieve: statistical randomness checks for bit streams."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# ────────────────────────────────────────────────────────────
# Shared source options
# ────────────────────────────────────────────────────────────


def source_options(func):
    func = click.option("--input-format", type=click.Choice(["text", "gz", "bytes"]), default=None,
                        help="Input file format (default: guessed from the suffix).")(func)
    func = click.option("--input", "input_path", type=click.Path(exists=True, dir_okay=False),
                        default=None, help="Replay bits from a file instead of the generator.")(func)
    func = click.option("--seed", type=int, default=None, envvar="BITSIEVE_SEED",
                        help="Seed for the generator source (default: OS entropy).")(func)
    func = click.option("--significance", type=float, default=DEFAULT_CLI_SIGNIFICANCE,
                        show_default=True, help="Significance level alpha.")(func)
    return func


def _make_source(seed: int | None, input_path: str | None, input_format: str | None):
    """Build the bit source selected on the command line."""
    from bitsieve.sources import BitFileSource, ByteFileSource, GeneratorBitSource

    if input_path is None:
        return GeneratorBitSource(seed)
    if input_format is None:
        if input_path.endswith((".bin", ".dat")):
            input_format = "bytes"
        elif input_path.endswith(".gz"):
            input_format = "gz"
        else:
            input_format = "text"
    if input_format == "bytes":
        return ByteFileSource(input_path)
    return BitFileSource(input_path, compressed=input_format == "gz")


def _fail(exc: BitsieveError) -> None:
    click.echo(f"Error: {exc}", err=True)
    sys.exit(2 if isinstance(exc, InvalidArgumentError) else 3)


def _fmt(value: float | None, spec: str = ".6f") -> str:
    return "N/A" if value is None else format(value, spec)


def _result_table(title: str, results) -> Table:
    table = Table(title=title)
    table.add_column("Check", style="bold")
    table.add_column("Result")
    table.add_column("Grade", justify="center")
    table.add_column("P-Value", justify="right")
    table.add_column("Statistic", justify="right")
    table.add_column("Details")
    for r in results:
        verdict = "[green]pass[/green]" if r.passed else "[red]FAIL[/red]"
        table.add_row(Text(r.name), verdict, r.grade, _fmt(r.p_value), _fmt(r.statistic, ".4f"),
                      Text(r.details))
    return table


def _detail_table(result) -> Table | None:
    """Per-part or per-state values of a check, when it has any."""
    if result.parts:
        return _result_table(f"{result.name}: per template length", result.parts)
    if not (result.statistics and result.p_values):
        return None
    table = Table(title=f"{result.name}: per state")
    table.add_column("State", justify="right")
    table.add_column("Statistic", justify="right")
    table.add_column("P-Value", justify="right")
    labels = result.params.get("states") or range(1, len(result.p_values) + 1)
    for label, stat, p in zip(labels, result.statistics, result.p_values):
        table.add_row(str(label), f"{stat:.6f}", f"{p:.6f}")
    return table


# ────────────────────────────────────────────────────────────
# Commands
# ────────────────────────────────────────────────────────────


@main.command(name="list")
def list_checks() -> None:
    """List the registered checks and their default parameters."""
    from bitsieve.battery import CHECKS

    table = Table(title=f"{len(CHECKS)} checks")
    table.add_column("Name", style="bold")
    table.add_column("Check")
    table.add_column("Defaults")
    table.add_column("Description")
    for spec in CHECKS.values():
        defaults = ", ".join(
            f"{k}={getattr(v, 'name', v)}" for k, v in spec.defaults.items() if v is not None
        )
        table.add_row(spec.name, spec.title, defaults, spec.description)
    console.print(table)


@main.command()
@click.argument("check")
@click.option("--calls", "call_count", type=int, default=None, help="Number of bits (or draws) to use.")
@click.option("--bins", "bin_count", type=int, default=None, help="Bin count (uniform).")
@click.option("--block-size", type=int, default=None, help="Block size M, or L for maurer.")
@click.option("--block-count", type=int, default=None, help="Number of blocks N.")
@click.option("--matrix-size", type=int, default=None, help="Matrix size (matrixrank).")
@click.option("--mode", type=click.Choice(["forward", "backward"]), default=None,
              help="Walk direction (cusum).")
@click.option("--longest-run-size", type=click.Choice(["small", "medium", "large"]), default=None,
              help="Block size class (longestrun).")
@click.option("--repeat", type=int, default=1, show_default=True,
              help="Run the check this many times on successive bits.")
@click.option("-o", "--output", type=click.Path(dir_okay=False), default=None,
              help="Write the uniform check's bin file here.")
@source_options
def run(check: str, call_count: int | None, bin_count: int | None, block_size: int | None,
        block_count: int | None, matrix_size: int | None, mode: str | None,
        longest_run_size: str | None, repeat: int, output: str | None, significance: float,
        seed: int | None, input_path: str | None, input_format: str | None) -> None:
    """Run one check, optionally several times.

    Examples:

        bitsieve run monobit --calls 1000000

        bitsieve run cusum --mode backward --seed 7

        bitsieve run serial --input data.bin --repeat 10
    """
    from bitsieve.battery import get_check, run_repeated
    from bitsieve.checks import CusumMode, LongestRunBlockSize
    from bitsieve.combining import fisher_lines, proportion_lines, uniformity_lines

    try:
        spec = get_check(check)
        if spec.uses_integers and input_path is not None:
            raise InvalidArgumentError(f"{spec.name} draws integers and cannot replay a bit file")
        overrides = {
            "call_count": call_count,
            "bin_count": bin_count,
            "block_size": block_size,
            "block_count": block_count,
            "matrix_size": matrix_size,
            "mode": CusumMode(mode) if mode else None,
            "output": output,
        }
        if longest_run_size is not None:
            if block_size is not None:
                raise InvalidArgumentError("--block-size and --longest-run-size are exclusive")
            overrides["block_size"] = LongestRunBlockSize[longest_run_size.upper()]

        source = _make_source(seed, input_path, input_format)
        t0 = time.monotonic()
        batch = run_repeated(spec.name, source, repeat, significance, **overrides)
        elapsed = time.monotonic() - t0
    except BitsieveError as e:
        _fail(e)
        return

    console.print(_result_table(f"{spec.title} (alpha={significance}, {elapsed:.2f}s)", batch.results))
    if repeat == 1:
        detail = _detail_table(batch.results[0])
        if detail is not None:
            console.print(detail)
        return

    click.echo()
    for line in proportion_lines(batch.proportion):
        click.echo(line)
    for line in uniformity_lines(batch.uniformity):
        click.echo(line)
    for line in fisher_lines(batch.combined):
        click.echo(line)


@main.command()
@click.option("--report", "report_path", type=click.Path(dir_okay=False), default=None,
              help="Also write a Markdown report to this path.")
@source_options
def battery(report_path: str | None, significance: float, seed: int | None,
            input_path: str | None, input_format: str | None) -> None:
    """Run every bit-stream check with its defaults."""
    from bitsieve.battery import run_battery
    from bitsieve.report import generate_full_report, pass_rate

    try:
        source = _make_source(seed, input_path, input_format)
        click.echo(f"Running battery on {source.name} (alpha={significance})...")
        t0 = time.monotonic()
        results = run_battery(source, significance)
        elapsed = time.monotonic() - t0
    except BitsieveError as e:
        _fail(e)
        return

    console.print(_result_table(f"{source.name} battery ({elapsed:.1f}s)", results))
    passed = sum(1 for r in results if r.passed)
    click.echo(f"Passed {passed}/{len(results)} ({pass_rate(results):.1f}%)")

    if report_path:
        bit_count = sum(r.call_count or 0 for r in results)
        generate_full_report({source.name: (bit_count, results)}, significance, report_path)
        click.echo(f"Report saved to: {report_path}")
