"""Tests for the Markdown report."""

from bitsieve.battery import run_battery
from bitsieve.checks import CheckResult
from bitsieve.report import generate_full_report, generate_source_report, pass_rate
from bitsieve.sources import GeneratorBitSource


def _result(name, passed, p=0.5, **kwargs):
    return CheckResult(name=name, passed=passed, p_value=p, statistic=1.0, **kwargs)


class TestReport:
    def test_pass_rate(self):
        assert pass_rate([_result("a", True), _result("b", False)]) == 50.0
        assert pass_rate([]) == 0.0

    def test_source_section(self):
        text = generate_source_report("gen", [_result("Monobit", True)], 100)
        assert text.startswith("### gen")
        assert "| Monobit | ✅ |" in text
        assert "**Passed: 1/1**" in text

    def test_per_state_rows(self):
        r = _result("Random Excursions", True, statistics=[1.0, 2.0], p_values=[0.3, 0.4],
                    params={"states": [-1, 1]})
        text = generate_source_report("gen", [r], 10)
        assert "| -1 | 1.000000 | 0.300000 |" in text

    def test_statistic_missing(self):
        r = CheckResult(name="Random Excursions", passed=False, p_value=0.0, statistic=None)
        assert "N/A" in generate_source_report("gen", [r], 10)

    def test_full_report_written(self, tmp_path):
        results = run_battery(GeneratorBitSource(seed=2), 0.01, names=["monobit", "nonoverlapping"])
        path = tmp_path / "out" / "report.md"
        text = generate_full_report({"generator": (108_000, results)}, 0.01, path)
        assert path.read_text(encoding="utf-8") == text
        assert text.startswith("# bitsieve Randomness Report")
        assert "| 1 | generator |" in text
        assert "Template length 10" in text
