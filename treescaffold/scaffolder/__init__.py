"""treescaffold materialization -- turns a template tree into a project.

Quick usage::

    from treescaffold.models import StringValue
    from treescaffold.scaffolder import MaterializationEngine, PathMatcher

    engine = MaterializationEngine()
    result = engine.materialize(
        "templates/service",
        {"name": StringValue(value="demo")},
        exclude=PathMatcher.compile(["./target"]),
    )
    print(result.target_dir)
"""

from treescaffold.scaffolder.engine import MaterializationEngine, iter_source_entries
from treescaffold.scaffolder.matcher import PathMatcher
from treescaffold.scaffolder.templates import TemplateRenderer

__all__ = [
    "MaterializationEngine",
    "PathMatcher",
    "TemplateRenderer",
    "iter_source_entries",
]
