"""The statistical checks of the battery."""

from bitsieve.checks.cusum import CusumMode, cumulative_sums
from bitsieve.checks.excursions import random_excursions, random_excursions_variant
from bitsieve.checks.frequency import frequency_block, monobit
from bitsieve.checks.linear import berlekamp_massey, linear_complexity
from bitsieve.checks.matrix import BitMatrix, matrix_rank
from bitsieve.checks.maurer import maurer
from bitsieve.checks.result import CheckResult
from bitsieve.checks.runs import LongestRunBlockSize, longest_run, runs
from bitsieve.checks.serial import approximate_entropy, serial
from bitsieve.checks.spectral import fft, spectral
from bitsieve.checks.templates import non_overlapping, overlapping, template_library
from bitsieve.checks.uniform import uniform

__all__ = [
    "BitMatrix",
    "CheckResult",
    "CusumMode",
    "LongestRunBlockSize",
    "approximate_entropy",
    "berlekamp_massey",
    "cumulative_sums",
    "fft",
    "frequency_block",
    "linear_complexity",
    "longest_run",
    "matrix_rank",
    "maurer",
    "monobit",
    "non_overlapping",
    "overlapping",
    "random_excursions",
    "random_excursions_variant",
    "runs",
    "serial",
    "spectral",
    "template_library",
    "uniform",
]
