"""Congestion-control file-transfer benchmark (ccbench)

A sender streams files to a receiver over one TCP connection using
fixed-size frames; the receiver times every file and reports throughput.
Frame encoding, the receiver state machine and the timing ledger are
separate units so each can be tested without a network.
"""

__all__ = []
