"""
aimtrace - ingestion pipeline for aim-trainer session logs.

Parses exported stats files, derives accuracy and time-to-kill, and attaches
the motion trace recorded while each session was played.
"""

__version__ = "0.1.0"
