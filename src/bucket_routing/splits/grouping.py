# splits/grouping.py
"""Merging of small splits into fewer, larger work assignments."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol, Sequence

from ..multimap import OrderedMultimap
from ..runtime.events import TaskLocationHint
from .types import FileSplit, GroupedSplit, SplitUnit

logger = logging.getLogger(__name__)

__all__ = [
    "SplitGroupingAdapter",
    "WaveSplitGrouper",
    "LocationProvider",
    "DEFAULT_GROUPING_WAVES",
    "DEFAULT_SMB_WAVES",
    "DEFAULT_MIN_GROUP_BYTES",
]

DEFAULT_GROUPING_WAVES = 1.7
DEFAULT_SMB_WAVES = 0.5
DEFAULT_MIN_GROUP_BYTES = 50 * 1024 * 1024

LocationProvider = Callable[[SplitUnit], Sequence[str]]


class SplitGroupingAdapter(Protocol):
    """Grouping collaborator used by the coordinator."""

    def generate_grouped_splits(
        self,
        splits: Sequence[FileSplit],
        waves: float,
        available_slots: int,
        input_name: str,
        group_across_files: bool,
        location_provider: Optional[LocationProvider] = None,
    ) -> OrderedMultimap[int, GroupedSplit]:
        ...

    def group(
        self,
        bucket_splits: OrderedMultimap[int, GroupedSplit],
        available_slots: int,
        waves: float,
    ) -> OrderedMultimap[int, GroupedSplit]:
        ...

    def create_task_location_hints(
        self,
        splits: Sequence[SplitUnit],
        consistent: bool,
    ) -> List[TaskLocationHint]:
        ...


def desired_group_count(waves: float, available_slots: int) -> int:
    return max(1, int(waves * available_slots))


def _pack_by_size(
    units: Sequence[SplitUnit],
    num_groups: int,
    min_group_bytes: int = 0,
) -> List[List[SplitUnit]]:
    """
    Pack units, in order, into at most num_groups runs of roughly equal bytes.

    With min_group_bytes set, the run count is lowered until every run can
    hold at least that many bytes, so small fragments end up merged.
    """
    if not units:
        return []
    total = sum(u.total_length for u in units)
    if min_group_bytes > 0:
        num_groups = min(num_groups, total // min_group_bytes)
    num_groups = max(1, min(num_groups, len(units)))
    target = total / num_groups if total else 0

    groups: List[List[SplitUnit]] = [[]]
    size = 0
    for i, unit in enumerate(units):
        remaining_units = len(units) - i
        remaining_groups = num_groups - len(groups)
        current = groups[-1]
        must_open = remaining_units <= remaining_groups and current
        full = target and size + unit.total_length > target and current
        if (must_open or full) and len(groups) < num_groups:
            groups.append([])
            size = 0
        groups[-1].append(unit)
        size += unit.total_length
    return groups


class WaveSplitGrouper:
    """
    Size-based grouper sized by waves x available slots.

    The first pass packs a bucket's file splits into at most
    ``waves * available_slots`` groups of roughly equal byte size. The second
    pass spreads a task budget across buckets in proportion to their size and
    nests each bucket's groups into that many outer groups.
    Neither pass makes a group smaller than ``min_group_bytes`` unless the
    input, or a single file when grouping stays within files, is smaller.
    """

    def __init__(self, min_group_bytes: int = DEFAULT_MIN_GROUP_BYTES):
        if min_group_bytes < 0:
            raise ValueError(f"min_group_bytes must be >= 0, got {min_group_bytes}")
        self.min_group_bytes = min_group_bytes

    def generate_grouped_splits(
        self,
        splits: Sequence[FileSplit],
        waves: float,
        available_slots: int,
        input_name: str,
        group_across_files: bool,
        location_provider: Optional[LocationProvider] = None,
    ) -> OrderedMultimap[int, GroupedSplit]:
        desired = desired_group_count(waves, available_slots)
        if group_across_files:
            runs = _pack_by_size(list(splits), desired, self.min_group_bytes)
        else:
            # Never let a group span two files.
            by_path: OrderedMultimap[str, FileSplit] = OrderedMultimap()
            for split in splits:
                by_path.put(split.path, split)
            total = sum(s.total_length for s in splits) or 1
            runs = []
            for _, file_splits in by_path.items():
                share = sum(s.total_length for s in file_splits) / total
                runs.extend(_pack_by_size(
                    file_splits, max(1, round(desired * share)), self.min_group_bytes
                ))

        grouped: OrderedMultimap[int, GroupedSplit] = OrderedMultimap()
        for key, run in enumerate(runs):
            grouped.put(key, self._make_group(run, location_provider))

        logger.debug(
            "Grouped %d splits of input %s into %d groups (desired %d, across files=%s)",
            len(splits), input_name, len(grouped), desired, group_across_files,
        )
        return grouped

    def group(
        self,
        bucket_splits: OrderedMultimap[int, GroupedSplit],
        available_slots: int,
        waves: float,
    ) -> OrderedMultimap[int, GroupedSplit]:
        budget = desired_group_count(waves, available_slots)
        sizes = {b: sum(g.total_length for g in gs) for b, gs in bucket_splits.items()}
        total = sum(sizes.values())

        regrouped: OrderedMultimap[int, GroupedSplit] = OrderedMultimap()
        for bucket, groups in bucket_splits.items():
            if total:
                share = max(1, int(budget * sizes[bucket] / total))
            else:
                share = max(1, budget // max(1, len(bucket_splits)))
            for run in _pack_by_size(groups, share, self.min_group_bytes):
                regrouped.put(bucket, GroupedSplit(members=tuple(run)))
        return regrouped

    def create_task_location_hints(
        self,
        splits: Sequence[SplitUnit],
        consistent: bool,
    ) -> List[TaskLocationHint]:
        hints = []
        for split in splits:
            hosts = split.hosts[:1] if consistent else split.hosts
            hints.append(TaskLocationHint(hosts=tuple(hosts)))
        return hints

    @staticmethod
    def _make_group(
        run: Sequence[SplitUnit],
        location_provider: Optional[LocationProvider],
    ) -> GroupedSplit:
        group = GroupedSplit(members=tuple(run))
        if location_provider is not None:
            hosts = tuple(location_provider(group))
            if hosts:
                group = GroupedSplit(members=group.members, hosts=hosts)
        return group
