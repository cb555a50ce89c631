"""Registry of buffer pools keyed by NUMA node and payload size."""

from __future__ import annotations

import bisect
import io
import logging
import sys
import threading
from dataclasses import dataclass
from typing import ClassVar, Iterable, Optional, TextIO

from .buffer import PacketBuffer
from .pool import PacketBufferPool

logger = logging.getLogger(__name__)

GLOBAL_NODE = -1


@dataclass(frozen=True)
class PoolConfig:
    """Layout and size of one pool."""

    buffer_size: int
    initial_count: int
    headroom: int = 64
    tailroom: int = 0


class PoolManager:
    """Chooses a pool for each allocation by NUMA node and payload size.

    A request goes to the smallest pool on the requested node whose payload
    size is at least the requested size, falling back to the global
    node (-1) when the requested node has none.
    """

    _instance: ClassVar[Optional["PoolManager"]] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        self._pools: dict[int, dict[int, PacketBufferPool]] = {}
        self._lock = threading.Lock()

    @classmethod
    def instance(cls) -> "PoolManager":
        """The process-wide shared manager."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    def configure_pools_for_numa_node(
        self, numa_node: int, configs: Iterable[PoolConfig]
    ) -> None:
        """Create a pool for each config; sizes already present on the node are skipped.

        Stops at the first pool that cannot be created and re-raises its error.
        """
        with self._lock:
            pools = self._pools.setdefault(numa_node, {})
            for config in configs:
                if config.buffer_size in pools:
                    logger.warning(
                        "pool for payload size %d on NUMA node %d already exists; skipping",
                        config.buffer_size,
                        numa_node,
                    )
                    continue
                try:
                    pool = PacketBufferPool(
                        config.buffer_size,
                        config.initial_count,
                        numa_node,
                        config.headroom,
                        config.tailroom,
                    )
                except (ValueError, MemoryError):
                    logger.error(
                        "failed to create pool (size: %d, node: %d)",
                        config.buffer_size,
                        numa_node,
                    )
                    raise
                pools[config.buffer_size] = pool
                logger.info(
                    "configured pool for payload size %d (%d buffers) on NUMA node %d",
                    config.buffer_size,
                    config.initial_count,
                    numa_node,
                )

    def add_pool(self, numa_node: int, config: PoolConfig) -> None:
        """Configure a single pool on ``numa_node``."""
        self.configure_pools_for_numa_node(numa_node, [config])

    def _find_pool(
        self, desired_payload_size: int, numa_node: int
    ) -> Optional[PacketBufferPool]:
        nodes = [numa_node] if numa_node == GLOBAL_NODE else [numa_node, GLOBAL_NODE]
        for node in nodes:
            pools = self._pools.get(node)
            if not pools:
                continue
            sizes = sorted(pools)
            index = bisect.bisect_left(sizes, desired_payload_size)
            if index < len(sizes):
                return pools[sizes[index]]
        return None

    def allocate(
        self, desired_payload_size: int, numa_node: int = GLOBAL_NODE
    ) -> Optional[PacketBuffer]:
        """Allocate a buffer with at least the desired payload, or ``None``."""
        with self._lock:
            pool = self._find_pool(desired_payload_size, numa_node)
        if pool is None:
            logger.error(
                "no suitable pool for payload size %d on NUMA node %d",
                desired_payload_size,
                numa_node,
            )
            return None
        buffer = pool.allocate_buffer()
        if buffer is None:
            logger.error(
                "pool found but empty (size: %d, node: %d)",
                desired_payload_size,
                numa_node,
            )
        return buffer

    def deallocate(self, buffer: Optional[PacketBuffer]) -> None:
        """Drop one reference to ``buffer``; ``None`` is ignored."""
        if buffer is None:
            return
        logger.debug("deallocating buffer via release()")
        buffer.release()

    def format_stats(self) -> str:
        """A human-readable report of every pool's configuration and counters."""
        out = io.StringIO()
        out.write("=============== PoolManager Statistics ===============\n")
        with self._lock:
            if not self._pools:
                out.write("  No pools configured.\n")
            for node in sorted(self._pools):
                label = " (Global/Unspecified)" if node == GLOBAL_NODE else ""
                out.write(f"  NUMA Node: {node}{label}\n")
                pools = self._pools[node]
                if not pools:
                    out.write("    No pools for this NUMA node.\n")
                    continue
                for size in sorted(pools):
                    pool = pools[size]
                    out.write("    --------------------------------------------\n")
                    out.write(
                        f"    Pool (Payload Size: {pool.buffer_payload_size} B, "
                        f"Initial Count: {pool.initial_count})\n"
                    )
                    out.write(f"      Configured Headroom: {pool.headroom_size} B\n")
                    out.write(f"      Configured Tailroom: {pool.tailroom_size} B\n")
                    out.write(f"      Free Buffers:        {pool.free_count}\n")
                    out.write(f"      Alloc Count:         {pool.alloc_count}\n")
                    out.write(f"      Dealloc Count:       {pool.dealloc_count}\n")
        out.write("======================================================\n")
        return out.getvalue()

    def print_stats(self, file: Optional[TextIO] = None) -> None:
        """Write :meth:`format_stats` to ``file`` (standard output by default)."""
        target = sys.stdout if file is None else file
        target.write(self.format_stats())
        target.flush()