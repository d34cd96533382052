"""
Combines tuning results computed on separate partitions.

Partitions (index ranges, machines, processes) report raw counters for each
configuration. Merging sums the counters of results that share the same
identity and re-derives the rates from the sums, which makes the merge
associative and commutative. Averaging already-derived rates would weight
every partition equally regardless of how many draws it covered.
"""
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Sequence

from loguru import logger

from astrosena.errors import MergeMismatchError
from astrosena.tuning import SEARCH_GROUPS, TuningReport, TuningResult, sort_results


def merge_pair(a: TuningResult, b: TuningResult) -> TuningResult:
    """Sums the counters of two results for the same configuration."""
    if a.key() != b.key():
        raise MergeMismatchError(f"Cannot merge different configurations: {a.key()} vs {b.key()}")
    return TuningResult(name=a.name, params=a.params, stats=a.stats + b.stats, seed_offset=a.seed_offset)


def merge_results(partitions: Iterable[Iterable[TuningResult]]) -> List[TuningResult]:
    """
    Merges any number of result lists for one search group.

    Args:
        partitions: One iterable of results per partition.

    Returns:
        One result per configuration identity, sorted like the harness output.
    """
    merged: "OrderedDict[tuple, TuningResult]" = OrderedDict()
    for results in partitions:
        for result in results:
            if not isinstance(result, TuningResult):
                raise MergeMismatchError(f"Expected TuningResult, got {type(result).__name__}")
            key = result.key()
            merged[key] = merge_pair(merged[key], result) if key in merged else result
    return sort_results(list(merged.values()))


def merge_reports(reports: Sequence[TuningReport], sources: Sequence[str] = ()) -> TuningReport:
    """Merges each search group independently across reports."""
    if not reports:
        raise MergeMismatchError("Nothing to merge: no tuning reports given")
    groups: Dict[str, List[TuningResult]] = {}
    for group in SEARCH_GROUPS:
        groups[group] = merge_results(report.groups()[group] for report in reports)
        logger.info(f"Merged {group}: {len(groups[group])} configurations from {len(reports)} partitions")

    summary: Dict[str, Any] = {"chunks": len(reports)}
    if sources:
        summary["inputs"] = list(sources)
    return TuningReport(summary=summary, **groups)


def merge_report_dicts(payloads: Sequence[Dict[str, Any]], sources: Sequence[str] = ()) -> TuningReport:
    """Parses serialized chunk payloads, then merges them."""
    return merge_reports([TuningReport.from_dict(p) for p in payloads], sources=sources)
