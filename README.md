# pktbufpool

Reference-counted packet buffers handed out from pre-sized pools. Each pool
is tagged with a NUMA node, or with the global node `-1`. A manager picks the
smallest pool whose payload size fits a request. The package has no
dependencies beyond the standard library.

## Install

```
pip install .
```

## Metadata (`pktbufpool.metadata`)

`BufferMetadata` is a dataclass with these fields:

- `ingress_port` (default `0`)
- `vlan_id` (default `0`)
- `rx_timestamp` (default: the current UTC time)
- `custom_metadata` (any object, default `None`)
- `state`, a `BufferState` (default `BufferState.FREE`)

`BufferState` has four members: `FREE`, `ALLOCATED`, `IN_USE` and `RELEASED`.

## Buffers (`pktbufpool.buffer`)

A `PacketBuffer` holds one `bytearray` region laid out as
`[headroom | payload | tailroom]`. The data starts right after the headroom and
is empty at first.

- `data` is a writable `memoryview` of the current packet data. `region` is a
  writable view of the whole region.
- `capacity`, `headroom_size`, `tailroom_size` and `total_size` report the
  configured sizes. `data_offset`, `available_headroom` and
  `available_tailroom` report the current layout.
- Setting `data_len` clips the value to the space left after the data start.
  A negative value raises `ValueError`.
- `reserve_headroom(length)` moves the data start back by `length` bytes and
  grows the data to match. It returns a view of the prepended bytes.
- `reserve_tailroom(length)` grows the data by `length` bytes at its end and
  returns a view of the new bytes.
- Both reserve methods raise `ValueError` when the length is negative or when
  there is not enough room.
- `reset_data_ptr()` puts the data start back just after the configured
  headroom. It leaves `data_len` unchanged.
- `reset()` clears the reference count, rewinds the data and unlinks the next
  buffer.
- `next_buffer` chains buffers together. `metadata` holds the buffer's
  `BufferMetadata`. `numa_node` holds the node tag.

Buffers are reference counted, and a new buffer starts with no references.
`add_ref()` takes a reference and returns the buffer. `release()` drops one.
When the last reference goes, the buffer is rewound, its metadata state is
set to `RELEASED`, and it is handed to its pool's `deallocate_buffer`.

## Pools (`pktbufpool.pool`)

```python
from pktbufpool.pool import PacketBufferPool

pool = PacketBufferPool(256, 5, numa_node=0, headroom=64, tailroom=16)
buf = pool.allocate_buffer()   # None when the pool is exhausted
buf.reserve_tailroom(4)[:] = b"\x01\x02\x03\x04"
buf.release()                  # last reference: back to the pool
```

All buffers are created up front. The defaults are `numa_node=-1`,
`headroom=64` and `tailroom=0`.

`allocate_buffer()` returns a buffer that holds one reference and whose state
is `ALLOCATED`.

`deallocate_buffer(buffer)` resets the buffer, sets its state to `FREE`, and
puts it back on the free list. It raises `ValueError` in three cases: the
buffer belongs to another pool, it still holds references, or it is already
free.

Read-only properties report the pool's state: `buffer_payload_size`,
`initial_count`, `free_count`, `numa_node`, `headroom_size`, `tailroom_size`,
`alloc_count` and `dealloc_count`.

## Manager (`pktbufpool.manager`)

`PoolManager.instance()` returns a process-wide manager. `PoolManager()` creates
a separate, empty one.

```python
from pktbufpool.manager import PoolConfig, PoolManager

pm = PoolManager.instance()
pm.configure_pools_for_numa_node(0, [PoolConfig(128, 10, headroom=32),
                                     PoolConfig(512, 5)])
pm.add_pool(-1, PoolConfig(1024, 8, headroom=128))

buf = pm.allocate(100, 0)      # served by the 128-byte pool on node 0
big = pm.allocate(1000, 3)     # node 3 has no such pool, so the global pool serves it
pm.deallocate(buf)             # same as buf.release(); None is ignored
pm.print_stats()
```

`PoolConfig(buffer_size, initial_count, headroom=64, tailroom=0)` is a frozen
dataclass.

When you configure a node, any payload size it already has is skipped with a
logged warning. If a pool cannot be created, configuration stops and the
error (`ValueError` or `MemoryError`) is raised again.

`allocate(desired_payload_size, numa_node=-1)` first looks on the requested
node. If that node has no pool big enough, it falls back to the global node.
It returns `None` when no pool fits or when the chosen pool is empty.

`format_stats()` returns a text report with each pool's configuration and
counters. `print_stats(file=None)` writes that report to `file`, or to
standard output when no file is given. Diagnostics go to the
`pktbufpool.manager` logger.

## What it does not do

- The NUMA node is only a tag. No memory is bound to any node.
- Pools never grow past their initial count.
- There is no command-line tool.

## Tests

```
pip install .[test]
pytest
```