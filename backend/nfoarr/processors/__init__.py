"""
Processors Package for Nfoarr

This package contains NFO pipeline orchestration and guid-prefix partitioning.
"""

from .nfo_pipeline import NfoPipeline, run_nfo_batch
from .partitioning import guid_partitions, run_partitioned

__all__ = ['NfoPipeline', 'run_nfo_batch', 'guid_partitions', 'run_partitioned']
