"""
Guid-prefix partitioning for parallel NFO batches.

Release guids are hex digests, so the 16 single-character prefixes split the
release table into disjoint shards. One pipeline runs per shard, each in its
own worker process with its own database session; because the shards never
overlap, no two workers touch the same release.

Usage:
    >>> from functools import partial
    >>> from nfoarr.processors.nfo_pipeline import run_nfo_batch
    >>>
    >>> def batch(prefix):
    ...     return run_nfo_batch(MyFetcher(), guid_prefix=prefix)
    >>>
    >>> results = run_partitioned(batch, max_workers=4)
    >>> sum(results.values())
"""

import logging
from concurrent.futures import Executor, ProcessPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, List, Optional, Type

logger = logging.getLogger(__name__)

HEX_DIGITS = "0123456789abcdef"


def guid_partitions(depth: int = 1) -> List[str]:
    """
    Disjoint guid prefixes covering the whole hex keyspace.

    Args:
        depth: Prefix length (1 gives 16 partitions, 2 gives 256)

    Returns:
        Sorted list of prefixes
    """
    if depth < 1:
        raise ValueError(f"Partition depth must be >= 1, got {depth}")

    prefixes = [""]
    for _ in range(depth):
        prefixes = [prefix + digit for prefix in prefixes for digit in HEX_DIGITS]
    return prefixes


def run_partitioned(
    batch_fn: Callable[[str], int],
    partitions: Optional[Iterable[str]] = None,
    max_workers: Optional[int] = None,
    executor_cls: Type[Executor] = ProcessPoolExecutor
) -> Dict[str, int]:
    """
    Run one batch per guid prefix in parallel.

    ``batch_fn`` must be picklable when the default process pool is used
    (a module-level function or a functools.partial of one).

    Args:
        batch_fn: Called with a guid prefix, returns the number of NFOs found
        partitions: Prefixes to process (default: guid_partitions())
        max_workers: Worker count (default: executor default)
        executor_cls: Executor class (default: ProcessPoolExecutor)

    Returns:
        Mapping of prefix to NFOs found. Partitions whose batch raised are
        logged and omitted.
    """
    partitions = list(partitions) if partitions is not None else guid_partitions()
    results: Dict[str, int] = {}

    with executor_cls(max_workers=max_workers) as executor:
        futures = {executor.submit(batch_fn, prefix): prefix for prefix in partitions}

        for future in as_completed(futures):
            prefix = futures[future]
            try:
                results[prefix] = future.result()
            except Exception as e:
                logger.error(f"✗ NFO partition [{prefix}] failed: {type(e).__name__}: {e}")

    total = sum(results.values())
    logger.info(f"✓ Partitioned NFO run complete: {total} found across {len(results)}/{len(partitions)} partition(s)")
    return results
