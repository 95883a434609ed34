"""treescaffold -- generate projects from parameterized template trees."""

from treescaffold.config import ScaffoldDescription, ScaffoldOptions, load_description, parse_description
from treescaffold.pipeline import Scaffolder, main

__version__ = "0.1.0"

__all__ = [
    "ScaffoldDescription",
    "ScaffoldOptions",
    "Scaffolder",
    "load_description",
    "main",
    "parse_description",
]
