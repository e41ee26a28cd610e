"""Low-level numerical kernels.

This subpackage contains performance-critical loops (Numba-accelerated) used
by the linear algebra, transform and clustering code.
"""
