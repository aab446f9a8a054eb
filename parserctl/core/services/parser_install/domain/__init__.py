"""
L1 Domain — pure step-list construction; no I/O beyond precondition probes.
"""
