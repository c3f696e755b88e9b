"""
LessonSync Classroom - Content ordering and completion tracking.

This module provides:
- ContentGraph: immutable course structure
- Navigator: next/previous sequencing across sections
- ProgressStateMachine: item completion and enrollment rollup
- CertificateGate: 100% completion trigger
"""

from .graph import (
    ContentGraph,
    ItemRef,
    SectionRef,
)

from .progress import (
    ProgressStateMachine,
    compute_percentage,
)

from .navigator import (
    Navigator,
    NavigationItem,
    NavigationSection,
)

from .certificate import (
    CertificateGate,
)

__all__ = [
    # Graph
    "ContentGraph",
    "ItemRef",
    "SectionRef",
    # Progress
    "ProgressStateMachine",
    "compute_percentage",
    # Navigator
    "Navigator",
    "NavigationItem",
    "NavigationSection",
    # Certificate
    "CertificateGate",
]
