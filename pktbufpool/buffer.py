"""A reference-counted packet buffer laid out as [headroom | payload | tailroom]."""

from __future__ import annotations

import threading
from typing import Optional, Protocol

from .metadata import BufferMetadata, BufferState


class _BufferOwner(Protocol):
    def deallocate_buffer(self, buffer: "PacketBuffer") -> None: ...


class PacketBuffer:
    """A packet data region with movable start, headroom and tailroom.

    The buffer starts with no references; the owning pool takes the first
    one on allocation. When the last reference is released the buffer is
    rewound and handed back to its pool.
    """

    def __init__(
        self,
        pool: Optional[_BufferOwner],
        payload_capacity: int,
        headroom: int = 0,
        tailroom: int = 0,
        metadata: Optional[BufferMetadata] = None,
        numa_node: int = -1,
    ) -> None:
        for name, value in (
            ("payload_capacity", payload_capacity),
            ("headroom", headroom),
            ("tailroom", tailroom),
        ):
            if value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")
        self.pool = pool
        self._payload_capacity = payload_capacity
        self._headroom = headroom
        self._tailroom = tailroom
        self._storage = bytearray(headroom + payload_capacity + tailroom)
        self._offset = headroom
        self._length = 0
        self._refs = 0
        self._lock = threading.Lock()
        self.next_buffer: Optional[PacketBuffer] = None
        self.metadata = metadata if metadata is not None else BufferMetadata()
        self.numa_node = numa_node

    def __repr__(self) -> str:
        return (
            f"PacketBuffer(capacity={self.capacity}, data_offset={self._offset}, "
            f"data_len={self._length}, ref_count={self.ref_count}, "
            f"numa_node={self.numa_node})"
        )

    # Reference counting

    def add_ref(self) -> PacketBuffer:
        """Take one more reference and return the buffer."""
        with self._lock:
            self._refs += 1
        return self

    def release(self) -> None:
        """Drop one reference; the last one returns the buffer to its pool."""
        with self._lock:
            self._refs -= 1
            last = self._refs == 0
        if last and self.pool is not None:
            self._rewind()
            if self.metadata is not None:
                self.metadata.state = BufferState.RELEASED
            self.pool.deallocate_buffer(self)

    @property
    def ref_count(self) -> int:
        with self._lock:
            return self._refs

    # Sizes and data access

    @property
    def capacity(self) -> int:
        """Payload capacity, excluding the configured headroom and tailroom."""
        return self._payload_capacity

    @property
    def headroom_size(self) -> int:
        """The headroom configured at construction."""
        return self._headroom

    @property
    def tailroom_size(self) -> int:
        """The tailroom configured at construction."""
        return self._tailroom

    @property
    def total_size(self) -> int:
        """Size of the whole [headroom | payload | tailroom] region."""
        return len(self._storage)

    @property
    def data_offset(self) -> int:
        """Offset of the packet data start within the region."""
        return self._offset

    @property
    def data_len(self) -> int:
        return self._length

    @data_len.setter
    def data_len(self, length: int) -> None:
        if length < 0:
            raise ValueError(f"data length must not be negative, got {length}")
        self._length = min(length, len(self._storage) - self._offset)

    @property
    def available_headroom(self) -> int:
        """Bytes free in front of the current data start."""
        return self._offset

    @property
    def available_tailroom(self) -> int:
        """Bytes free after the current end of data."""
        return len(self._storage) - (self._offset + self._length)

    @property
    def data(self) -> memoryview:
        """Writable view of the current packet data."""
        return memoryview(self._storage)[self._offset : self._offset + self._length]

    @property
    def region(self) -> memoryview:
        """Writable view of the whole [headroom | payload | tailroom] region."""
        return memoryview(self._storage)

    # Head and tail adjustment

    def reserve_headroom(self, length: int) -> memoryview:
        """Prepend ``length`` bytes to the data and return a view of them."""
        if length < 0:
            raise ValueError(f"length must not be negative, got {length}")
        if length > self._offset:
            raise ValueError(
                f"cannot reserve {length} bytes of headroom, only {self._offset} available"
            )
        self._offset -= length
        self._length += length
        return memoryview(self._storage)[self._offset : self._offset + length]

    def reserve_tailroom(self, length: int) -> memoryview:
        """Append ``length`` bytes to the data and return a view of them."""
        if length < 0:
            raise ValueError(f"length must not be negative, got {length}")
        available = self.available_tailroom
        if length > available:
            raise ValueError(
                f"cannot reserve {length} bytes of tailroom, only {available} available"
            )
        start = self._offset + self._length
        self._length += length
        return memoryview(self._storage)[start : start + length]

    def reset_data_ptr(self) -> None:
        """Move the data start back to just after the configured headroom."""
        self._offset = self._headroom

    def reset(self) -> None:
        """Return the buffer to its freshly constructed state, with no references."""
        with self._lock:
            self._refs = 0
        self._rewind()

    def _rewind(self) -> None:
        self._offset = self._headroom
        self._length = 0
        self.next_buffer = None