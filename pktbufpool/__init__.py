"""Reference-counted packet buffers served from NUMA-tagged fixed-size pools."""

__version__ = "0.1.0"
__all__ = ["buffer", "manager", "metadata", "pool"]