"""Worker pools with different concurrency strategies."""

from .multithread import BoundedWorkerPool, WaitGroup
from .serial import SerialWorkerPool

__all__ = [
    "BoundedWorkerPool",
    "SerialWorkerPool",
    "WaitGroup",
]
