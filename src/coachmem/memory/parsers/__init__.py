from .common import STRUCTURED_PARSERS, run_structured_parsers
from .race_result import parse_race_result
from .types import StructuredMatch, StructuredParser
from .weekly_mileage import parse_weekly_mileage

__all__ = [
    "STRUCTURED_PARSERS",
    "run_structured_parsers",
    "parse_race_result",
    "parse_weekly_mileage",
    "StructuredMatch",
    "StructuredParser",
]
