from __future__ import annotations

import random

from dasbench.core.config import SUPPORTED_LEAF_COUNTS
from dasbench.core.errors import PathSpaceExhausted, SamplingConfigError


def tree_depth(leaf_count: int) -> int:
    if leaf_count not in SUPPORTED_LEAF_COUNTS:
        raise SamplingConfigError(
            f"unsupported leaf count {leaf_count}; expected one of {list(SUPPORTED_LEAF_COUNTS)}"
        )
    return leaf_count.bit_length() - 1


def path_for_index(root: str, index: int, leaf_count: int) -> str:
    """Render a leaf index as ``root/b1/.../bk``, most significant bit first."""
    depth = tree_depth(leaf_count)
    if index < 0 or index >= leaf_count:
        raise IndexError(f"leaf index {index} out of range for {leaf_count} leaves")
    bits = format(index, f"0{depth}b")
    return root + "/" + "/".join(bits)


def index_from_path(path: str, leaf_count: int) -> int:
    depth = tree_depth(leaf_count)
    segments = path.split("/")
    if len(segments) < depth + 1:
        raise ValueError(f"path {path!r} is too short for a tree of {leaf_count} leaves")
    bits = segments[-depth:]
    if any(bit not in {"0", "1"} for bit in bits):
        raise ValueError(f"path {path!r} does not end in {depth} binary segments")
    return int("".join(bits), 2)


class PathSampler:
    """Draws random leaf paths; seeded samplers repeat their draws exactly."""

    def __init__(self, seed: int | None = None, rng: random.Random | None = None):
        self.rng = rng or random.Random(seed)

    def generate(self, root: str, leaf_count: int) -> str:
        index = self.rng.randrange(leaf_count)
        return path_for_index(root, index, leaf_count)

    def generate_distinct(self, root: str, leaf_count: int, seen: set[str]) -> str:
        # Only paths under this root can collide; anything else in `seen` is ignored.
        prefix = root + "/"
        used = sum(1 for path in seen if path.startswith(prefix))
        if used >= leaf_count:
            raise PathSpaceExhausted(f"all {leaf_count} leaves of {root} were already sampled")

        path = self.generate(root, leaf_count)
        while path in seen:
            path = self.generate(root, leaf_count)
        seen.add(path)
        return path

    def draw_round(self, root: str, leaf_count: int, count: int) -> list[str]:
        """Pick ``count`` distinct leaves by shuffling the index space and taking a prefix."""
        tree_depth(leaf_count)
        if count < 0 or count > leaf_count:
            raise SamplingConfigError(
                f"cannot draw {count} distinct samples from a tree with {leaf_count} leaves"
            )
        indices = list(range(leaf_count))
        self.rng.shuffle(indices)
        return [path_for_index(root, idx, leaf_count) for idx in indices[:count]]
