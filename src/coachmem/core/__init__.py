"""Core primitives shared across coachmem."""
