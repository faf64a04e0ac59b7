"""Readers for model, constraint and covering array files."""

from tcover.io.arrays import TestArray, parse_row, read_arrays
from tcover.io.casa import CasaModel, read_casa, read_constraints, read_model

__all__ = [
    "CasaModel",
    "TestArray",
    "parse_row",
    "read_arrays",
    "read_casa",
    "read_constraints",
    "read_model",
]
