"""
Input parsing utilities.

This package contains code for parsing record exports and generated
headline bullets.
"""

from .bullets import ParseFailure, extract_bullets_from_text, load_bullets, parse_bullets_json
from .json_parser import ParsedBatch, parse_records

__all__ = [
    "ParseFailure",
    "ParsedBatch",
    "extract_bullets_from_text",
    "load_bullets",
    "parse_bullets_json",
    "parse_records",
]
