"""
SnapNote journaling API.

One entry per user per UTC day, written in at most sixty seconds.
"""
