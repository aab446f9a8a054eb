"""
L5 Orchestration — install / update / uninstall across many targets.
"""
