from .section_list import SectionList
from .span import BranchSpan, LeafSpan, Span

__all__ = [
    "BranchSpan",
    "LeafSpan",
    "SectionList",
    "Span",
]
