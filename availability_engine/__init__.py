"""Availability and schedule recurrence engine.

Pure scheduling core (expand, merge, resolve, project) plus a stateless
FastAPI adapter in availability_engine.main.
"""

__version__ = "0.1.0"

from availability_engine.services.calendar_projection import project, slot_grid
from availability_engine.services.conflict_resolver import ConflictResolver, resolve
from availability_engine.services.exception_merger import merge
from availability_engine.services.recurrence_expander import expand
from availability_engine.services.timeline import build_timeline

__all__ = [
    "__version__",
    "expand",
    "merge",
    "resolve",
    "ConflictResolver",
    "project",
    "slot_grid",
    "build_timeline",
]
