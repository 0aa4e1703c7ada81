from __future__ import annotations
from collections.abc import Iterable, Iterator
from math import floor
from typing import Optional, Union


class LeafSpan:
    """A run of equal-sized sections

    The size is the total size of the run. The size of each section in the
    run is `size / count`
    """

    __slots__: tuple[str, ...] = ("count", "size")
    level: int = 0

    def __init__(self, count: int, size: float):
        self.count: int = count
        self.size: float = size

    @property
    def each(self) -> float:
        """The size of every section in this run"""
        return self.size / self.count

    def __repr__(self):
        return f"<LeafSpan n: {self.count} s: {self.size}>"


class BranchSpan:
    """The union of two child spans. Both children are always present"""

    __slots__: tuple[str, ...] = ("left", "right", "count", "size", "level")

    def __init__(self, left: Span, right: Span):
        self.left: Span = left
        self.right: Span = right
        self.count: int
        self.size: float
        self.level: int
        self.update()

    def update(self):
        """Ensure that the aggregates match the current children"""
        left = self.left
        right = self.right
        self.count = left.count + right.count
        self.size = left.size + right.size
        self.level = max(left.level, right.level) + 1

    @property
    def balance(self) -> int:
        return self.left.level - self.right.level

    def __repr__(self):
        return f"<BranchSpan n: {self.count} s: {self.size} l: {self.level}>"


Span = Union[LeafSpan, BranchSpan]
OSpan = Optional[Span]


# ------------------------------------------------------------
# Queries
# ------------------------------------------------------------


def index_of(span: Span, offset: float) -> int:
    """Find the index of the section which covers the given offset

    The offset must be in the range [0, span.size)
    """
    index = 0
    while isinstance(span, BranchSpan):
        left = span.left
        if offset < left.size:
            span = left
        else:
            span = span.right
            index += left.count
            offset -= left.size

    # Float rounding can land one past the last section of the run
    local = floor(offset * span.count / span.size)
    return index + min(local, span.count - 1)


def offset_of(span: Span, index: int) -> float:
    """Find the offset of the start of the section at the given index

    The index must be an integer in the range [0, span.count)
    """
    offset = 0.0
    while isinstance(span, BranchSpan):
        left = span.left
        if index < left.count:
            span = left
        else:
            span = span.right
            index -= left.count
            offset += left.size
    return offset + index * span.size / span.count


def size_of(span: Span, index: int) -> float:
    """Find the size of the section at the given index

    The index must be an integer in the range [0, span.count)
    """
    while isinstance(span, BranchSpan):
        left = span.left
        if index < left.count:
            span = left
        else:
            span = span.right
            index -= left.count
    return span.size / span.count


# ------------------------------------------------------------
# Structural edits
# ------------------------------------------------------------


def insert(span: Span, index: int, count: int, size: float) -> Span:
    """Insert `count` sections of `size` each into the subtree at `index`

    The index must be an integer in the range [0, span.count], and the count
    must be an integer greater than zero.

    Returns:
        Span: The span which takes the place of the given span in the tree
    """
    if isinstance(span, LeafSpan):
        # Exact comparison. Only identical sizes extend a run
        if size == span.size / span.count:
            span.count += count
            span.size += count * size
            return span

        new = LeafSpan(count, count * size)
        if index == 0:
            return BranchSpan(new, span)
        if index >= span.count:
            return BranchSpan(span, new)

        # Split the run and put the new run in the middle
        each = span.size / span.count
        rest = span.count - index
        before = LeafSpan(index, index * each)
        after = LeafSpan(rest, rest * each)
        return BranchSpan(before, BranchSpan(new, after))

    if index < span.left.count:
        span.left = insert(span.left, index, count, size)
    else:
        span.right = insert(span.right, index - span.left.count, count, size)
    return rebalance(span)


def remove(span: Span, index: int, count: int) -> OSpan:
    """Remove `count` sections from the subtree starting at `index`

    The index must be an integer in range of the span, the count must be
    an integer greater than zero, and `index + count <= span.count`

    Returns:
        OSpan: The span which takes the place of the given span in the tree,
            or None if the whole span was removed
    """
    if count == span.count:
        return None

    if isinstance(span, LeafSpan):
        rest = span.count - count
        each = span.size / span.count
        span.size = rest * each
        span.count = rest
        return span

    left: OSpan = span.left
    right: OSpan = span.right
    boundary = span.left.count
    if index < boundary and index + count > boundary:
        tail = boundary - index
        left = remove(span.left, index, tail)
        right = remove(span.right, 0, count - tail)
    elif index < boundary:
        left = remove(span.left, index, count)
    else:
        right = remove(span.right, index - boundary, count)

    # Both can't be gone, the first check handles full coverage
    if left is None:
        return right
    if right is None:
        return left

    # A large removal can leave the children with any height difference
    return join(left, right)


def rebalance(span: BranchSpan) -> BranchSpan:
    """Rotate the branch so that it satisfies the AVL balance invariant

    The balance factor of the branch must be within [-2, 2], and both
    children must already be balanced. The aggregates of every touched
    branch are recomputed from its children.

    Left-Left
    -------------------------------------
           span                 new
           /  \\                /   \\
          /    \\              /     \\
         1      D            2       1
        / \\          =>     / \\     / \\
       /   \\               A   B   C   D
      2     C
     / \\
    A   B

    Left-Right
    -------------------------------------
        span                   new
        /  \\                  /  \\
       /    \\                /    \\
      1      D              1      2
     / \\          =>       / \\    / \\
    A   \\                 A   B  C   D
         2
        / \\
       B   C

    Right-Right and Right-Left are the mirror images of these.

    Returns:
        BranchSpan: The branch which takes the place of the given span
    """
    left = span.left
    right = span.right
    balance = left.level - right.level

    if balance > 1:
        assert isinstance(left, BranchSpan)
        sub_left = left.left
        sub_right = left.right
        # Ties only happen after a removal, and need the single rotation
        if sub_left.level >= sub_right.level:
            # Left-Left
            span.left = sub_left
            span.right = _reset(left, sub_right, right)
        else:
            # Left-Right
            assert isinstance(sub_right, BranchSpan)
            inner_left = sub_right.left
            inner_right = sub_right.right
            span.left = _reset(left, sub_left, inner_left)
            span.right = _reset(sub_right, inner_right, right)

    elif balance < -1:
        assert isinstance(right, BranchSpan)
        sub_left = right.left
        sub_right = right.right
        if sub_right.level >= sub_left.level:
            # Right-Right
            span.left = _reset(right, left, sub_left)
            span.right = sub_right
        else:
            # Right-Left
            assert isinstance(sub_left, BranchSpan)
            # Grab the grandchildren before sub_left is reused
            inner_left = sub_left.left
            inner_right = sub_left.right
            span.left = _reset(sub_left, left, inner_left)
            span.right = _reset(right, inner_right, sub_right)

    span.update()
    return span


def join(left: Span, right: Span) -> Span:
    """Concatenate two balanced subtrees into one balanced subtree

    The subtrees may differ in height by any amount. The shorter tree is
    attached along the inner spine of the taller one, and every branch on
    that spine is rebalanced on the way back up.
    """
    balance = left.level - right.level
    if balance > 1:
        assert isinstance(left, BranchSpan)
        left.right = join(left.right, right)
        return rebalance(left)
    if balance < -1:
        assert isinstance(right, BranchSpan)
        right.left = join(left, right.left)
        return rebalance(right)
    return BranchSpan(left, right)


def _reset(span: BranchSpan, left: Span, right: Span) -> BranchSpan:
    """Reuse a branch for a new pair of children"""
    span.left = left
    span.right = right
    span.update()
    return span


# ------------------------------------------------------------
# Bulk operations
# ------------------------------------------------------------


def build(runs: Iterable[tuple[int, float]]) -> OSpan:
    """Build a height balanced tree from (count, section_size) runs

    Adjacent runs with identical sizes are merged into a single leaf, and
    runs with no sections are skipped.
    """
    leaves: list[LeafSpan] = []
    last_each: Optional[float] = None
    for count, each in runs:
        if count <= 0:
            continue
        if leaves and last_each == each:
            leaves[-1].count += count
            leaves[-1].size += count * each
        else:
            leaves.append(LeafSpan(count, count * each))
            last_each = each

    if not leaves:
        return None
    return _build_balanced(leaves, 0, len(leaves))


def _build_balanced(leaves: list[LeafSpan], start: int, end: int) -> Span:
    if end - start == 1:
        return leaves[start]
    mid = (start + end) // 2
    return BranchSpan(
        _build_balanced(leaves, start, mid),
        _build_balanced(leaves, mid, end),
    )


def iter_runs(span: OSpan) -> Iterator[tuple[int, float]]:
    """Yield the (count, section_size) of every leaf in order"""
    if span is None:
        return
    stack: list[Span] = [span]
    while stack:
        node = stack.pop()
        if isinstance(node, LeafSpan):
            yield node.count, node.size / node.count
        else:
            # Push right first so left is processed first
            stack.append(node.right)
            stack.append(node.left)


def validate(span: OSpan):
    """Check every structural invariant of the subtree

    Raises:
        ValueError: Describing the first violation found
    """
    if span is None:
        return
    seen: set[int] = set()
    stack: list[Span] = [span]
    while stack:
        node = stack.pop()
        if id(node) in seen:
            raise ValueError(f"Span is reachable more than once: {node!r}")
        seen.add(id(node))
        if isinstance(node, LeafSpan):
            if node.count <= 0:
                raise ValueError(f"Leaf has no sections: {node!r}")
            if node.size < 0:
                raise ValueError(f"Leaf has a negative size: {node!r}")
            continue

        left = node.left
        right = node.right
        if left is None or right is None:
            raise ValueError(f"Branch is missing a child: {node!r}")
        if node.count != left.count + right.count:
            raise ValueError(f"Stale branch count: {node!r}")
        if node.size != left.size + right.size:
            raise ValueError(f"Stale branch size: {node!r}")
        if node.level != max(left.level, right.level) + 1:
            raise ValueError(f"Stale branch level: {node!r}")
        if abs(left.level - right.level) > 1:
            raise ValueError(f"Unbalanced branch: {node!r}")
        stack.append(right)
        stack.append(left)
