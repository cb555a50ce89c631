import pytest

from pktbufpool.buffer import PacketBuffer
from pktbufpool.metadata import BufferState
from pktbufpool.pool import PacketBufferPool


def test_basic_initialization_and_getters():
    pool = PacketBufferPool(256, 5, 0, 64, 16)
    assert pool.buffer_payload_size == 256
    assert pool.initial_count == 5
    assert pool.numa_node == 0
    assert pool.headroom_size == 64
    assert pool.tailroom_size == 16
    assert pool.free_count == 5
    assert pool.alloc_count == 0
    assert pool.dealloc_count == 0


def test_defaults():
    pool = PacketBufferPool(128, 2)
    assert pool.numa_node == -1
    assert pool.headroom_size == 64
    assert pool.tailroom_size == 0


def test_allocate_and_deallocate_basic():
    pool = PacketBufferPool(128, 3)
    assert pool.free_count == 3

    buf1 = pool.allocate_buffer()
    assert buf1 is not None
    assert pool.free_count == 2
    assert pool.alloc_count == 1
    assert buf1.ref_count == 1
    assert buf1.pool is pool
    assert buf1.metadata.state is BufferState.ALLOCATED

    buf2 = pool.allocate_buffer()
    assert buf2 is not None
    assert pool.free_count == 1
    assert pool.alloc_count == 2
    assert buf2.ref_count == 1

    buf1.reset()
    pool.deallocate_buffer(buf1)
    assert pool.free_count == 2
    assert pool.dealloc_count == 1
    assert buf1.metadata.state is BufferState.FREE

    buf3 = pool.allocate_buffer()
    assert buf3 is buf1
    assert pool.free_count == 1
    assert pool.alloc_count == 3

    buf2.reset()
    pool.deallocate_buffer(buf2)
    buf3.reset()
    pool.deallocate_buffer(buf3)
    assert pool.free_count == 3
    assert pool.dealloc_count == 3


def test_allocate_all_buffers():
    pool = PacketBufferPool(128, 5)
    allocated = [pool.allocate_buffer() for _ in range(5)]
    assert all(isinstance(buf, PacketBuffer) for buf in allocated)
    assert len({id(buf) for buf in allocated}) == 5
    assert pool.free_count == 0
    assert pool.alloc_count == 5

    assert pool.allocate_buffer() is None

    for buf in allocated:
        buf.reset()
        pool.deallocate_buffer(buf)
    assert pool.free_count == 5
    assert pool.dealloc_count == 5


def test_release_returns_buffer_to_pool():
    pool = PacketBufferPool(128, 2, headroom=32)
    buf = pool.allocate_buffer()
    buf.data_len = 40
    buf.reserve_headroom(8)
    buf.release()
    assert pool.free_count == 2
    assert pool.dealloc_count == 1
    assert buf.ref_count == 0
    assert buf.data_len == 0
    assert buf.data_offset == 32
    assert buf.metadata.state is BufferState.FREE


def test_extra_reference_keeps_buffer_out_of_pool():
    pool = PacketBufferPool(64, 1)
    buf = pool.allocate_buffer()
    buf.add_ref()
    buf.release()
    assert pool.free_count == 0
    buf.release()
    assert pool.free_count == 1


def test_buffers_carry_pool_layout():
    pool = PacketBufferPool(200, 1, 3, 48, 8)
    buf = pool.allocate_buffer()
    assert buf.capacity == 200
    assert buf.headroom_size == 48
    assert buf.tailroom_size == 8
    assert buf.numa_node == 3
    assert buf.total_size == 256
    assert buf.data_offset == 48


def test_deallocate_with_references_rejected():
    pool = PacketBufferPool(64, 1)
    buf = pool.allocate_buffer()
    with pytest.raises(ValueError):
        pool.deallocate_buffer(buf)
    assert pool.free_count == 0


def test_double_deallocate_rejected():
    pool = PacketBufferPool(64, 1)
    buf = pool.allocate_buffer()
    buf.release()
    with pytest.raises(ValueError):
        pool.deallocate_buffer(buf)
    assert pool.dealloc_count == 1


def test_foreign_buffer_rejected():
    pool = PacketBufferPool(64, 1)
    other = PacketBufferPool(64, 1)
    buf = other.allocate_buffer()
    buf.reset()
    with pytest.raises(ValueError):
        pool.deallocate_buffer(buf)


@pytest.mark.parametrize(
    "args",
    [(-1, 1), (64, -1), (64, 1, -1, -1, 0), (64, 1, -1, 0, -1)],
)
def test_negative_sizes_rejected(args):
    with pytest.raises(ValueError):
        PacketBufferPool(*args)


def test_empty_pool():
    pool = PacketBufferPool(64, 0)
    assert pool.free_count == 0
    assert pool.allocate_buffer() is None
    assert pool.alloc_count == 0