"""A fixed-size pool of packet buffers sharing one payload layout."""

from __future__ import annotations

import threading
from typing import Optional

from .buffer import PacketBuffer
from .metadata import BufferMetadata, BufferState


class PacketBufferPool:
    """Pre-allocates a fixed number of equally sized packet buffers.

    Buffers handed out by :meth:`allocate_buffer` hold one reference. When
    their last reference is released they come back through
    :meth:`deallocate_buffer`.
    """

    def __init__(
        self,
        buffer_payload_size: int,
        initial_count: int,
        numa_node: int = -1,
        headroom: int = 64,
        tailroom: int = 0,
    ) -> None:
        for name, value in (
            ("buffer_payload_size", buffer_payload_size),
            ("initial_count", initial_count),
            ("headroom", headroom),
            ("tailroom", tailroom),
        ):
            if value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")
        self._payload_size = buffer_payload_size
        self._initial_count = initial_count
        self._numa_node = numa_node
        self._headroom = headroom
        self._tailroom = tailroom
        self._lock = threading.Lock()
        self._alloc_count = 0
        self._dealloc_count = 0
        self._free: list[PacketBuffer] = [
            PacketBuffer(
                self,
                buffer_payload_size,
                headroom,
                tailroom,
                BufferMetadata(),
                numa_node,
            )
            for _ in range(initial_count)
        ]
        self._free_ids = {id(buffer) for buffer in self._free}

    def __repr__(self) -> str:
        return (
            f"PacketBufferPool(payload_size={self._payload_size}, "
            f"initial_count={self._initial_count}, free={self.free_count}, "
            f"numa_node={self._numa_node})"
        )

    def allocate_buffer(self) -> Optional[PacketBuffer]:
        """Take a free buffer with one reference, or ``None`` if the pool is empty."""
        with self._lock:
            if not self._free:
                return None
            buffer = self._free.pop()
            self._free_ids.discard(id(buffer))
            self._alloc_count += 1
        buffer.add_ref()
        buffer.metadata.state = BufferState.ALLOCATED
        return buffer

    def deallocate_buffer(self, buffer: PacketBuffer) -> None:
        """Return a buffer with no remaining references to the free list."""
        if buffer.pool is not self:
            raise ValueError("buffer does not belong to this pool")
        if buffer.ref_count != 0:
            raise ValueError(
                f"buffer still holds {buffer.ref_count} reference(s)"
            )
        with self._lock:
            if id(buffer) in self._free_ids:
                raise ValueError("buffer is already free")
            buffer.reset()
            buffer.metadata.state = BufferState.FREE
            self._free.append(buffer)
            self._free_ids.add(id(buffer))
            self._dealloc_count += 1

    @property
    def buffer_payload_size(self) -> int:
        return self._payload_size

    @property
    def initial_count(self) -> int:
        """Number of buffers the pool was created with."""
        return self._initial_count

    @property
    def free_count(self) -> int:
        with self._lock:
            return len(self._free)

    @property
    def numa_node(self) -> int:
        return self._numa_node

    @property
    def headroom_size(self) -> int:
        return self._headroom

    @property
    def tailroom_size(self) -> int:
        return self._tailroom

    @property
    def alloc_count(self) -> int:
        """Total number of successful allocations."""
        with self._lock:
            return self._alloc_count

    @property
    def dealloc_count(self) -> int:
        """Total number of buffers returned to the pool."""
        with self._lock:
            return self._dealloc_count