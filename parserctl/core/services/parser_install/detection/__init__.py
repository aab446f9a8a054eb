"""
L3 Detection — read-only probes: toolchain, revisions, target state.
"""
