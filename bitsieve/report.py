"""Markdown report for battery runs."""

from __future__ import annotations

import platform
from datetime import datetime
from pathlib import Path

from bitsieve import __version__
from bitsieve.checks.result import CheckResult


def _grade_icon(grade: str) -> str:
    return {"A": "✅", "B": "✅", "C": "⚠️", "D": "⚠️", "F": "❌"}.get(grade, "❓")


def _pass_icon(passed: bool) -> str:
    return "✅" if passed else "❌"


def _fmt(value: float | None, spec: str = ".6f") -> str:
    return "N/A" if value is None else format(value, spec)


def pass_rate(results: list[CheckResult]) -> float:
    """Percentage of passing checks."""
    if not results:
        return 0.0
    return 100.0 * sum(1 for r in results if r.passed) / len(results)


def _sub_results(r: CheckResult) -> list[str]:
    """Extra rows for checks that report per-length or per-state values."""
    lines = []
    if r.parts:
        lines.append(f"#### {r.name}")
        lines.append("")
        lines.append("| Part | Result | P-Value | Statistic | Details |")
        lines.append("|------|--------|---------|-----------|---------|")
        for part in r.parts:
            lines.append(
                f"| {part.name} | {_pass_icon(part.passed)} | {_fmt(part.p_value)} "
                f"| {_fmt(part.statistic, '.4f')} | {part.details} |"
            )
        lines.append("")
    elif r.p_values and r.statistics:
        labels = r.params.get("states") or range(1, len(r.p_values) + 1)
        lines.append(f"#### {r.name}")
        lines.append("")
        lines.append("| State | Statistic | P-Value |")
        lines.append("|-------|-----------|---------|")
        for label, stat, p in zip(labels, r.statistics, r.p_values):
            lines.append(f"| {label} | {stat:.6f} | {p:.6f} |")
        lines.append("")
    return lines


def generate_source_report(name: str, results: list[CheckResult], bit_count: int) -> str:
    """Generate markdown section for a single source."""
    passed = sum(1 for r in results if r.passed)
    total = len(results)

    lines = [
        f"### {name}",
        f"**Pass rate: {pass_rate(results):.1f}%** | **Passed: {passed}/{total}** "
        f"| **Bits consumed: {bit_count:,}**\n",
        "| Check | Result | Grade | P-Value | Statistic | Details |",
        "|-------|--------|-------|---------|-----------|---------|",
    ]

    for r in results:
        lines.append(
            f"| {r.name} | {_pass_icon(r.passed)} | {_grade_icon(r.grade)} {r.grade} "
            f"| {_fmt(r.p_value)} | {_fmt(r.statistic, '.4f')} | {r.details} |"
        )
    lines.append("")
    for r in results:
        lines.extend(_sub_results(r))
    return "\n".join(lines)


def generate_full_report(
    source_results: dict[str, tuple[int, list[CheckResult]]],
    significance: float,
    output_path: str | Path | None = None,
) -> str:
    """Generate complete markdown report for all sources.

    *source_results* maps a source name to the number of bits it supplied
    and the results of the battery run against it.
    """
    now = datetime.now()
    ranked = sorted(source_results.items(), key=lambda x: pass_rate(x[1][1]), reverse=True)

    lines = [
        "# bitsieve Randomness Report",
        "",
        f"**Generated:** {now.strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Machine:** {platform.node()} ({platform.machine()}, {platform.system()} {platform.release()})",
        f"**Python:** {platform.python_version()} | **bitsieve:** {__version__}",
        f"**Significance level:** {significance}",
        "",
        "## Summary",
        "",
        "| Rank | Source | Pass rate | Passed | Bits |",
        "|------|--------|-----------|--------|------|",
    ]

    for i, (name, (bit_count, results)) in enumerate(ranked, 1):
        passed = sum(1 for r in results if r.passed)
        lines.append(
            f"| {i} | {name} | {pass_rate(results):.1f}% | {passed}/{len(results)} | {bit_count:,} |"
        )

    lines.append("")
    lines.append("---")
    lines.append("")
    lines.append("## Detailed Results")
    lines.append("")

    for name, (bit_count, results) in ranked:
        lines.append(generate_source_report(name, results, bit_count))
        lines.append("---\n")

    report = "\n".join(lines)

    if output_path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report, encoding="utf-8")

    return report
