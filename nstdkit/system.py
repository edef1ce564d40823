"""System information."""

import os


def processor_count() -> int:
    """Number of processors currently online."""
    try:
        count = os.sysconf("SC_NPROCESSORS_ONLN")
    except (AttributeError, ValueError, OSError):
        count = os.cpu_count() or 1
    return int(count)