"""OpenCL stages of the benchmark pipeline.

driver -> device -> context -> buffers -> program, with ``resources``
providing reverse-order release across all of them.
"""
