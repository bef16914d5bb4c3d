"""
SnapNote Pipelines.

Business logic orchestration functions.
"""

from snapnote.pipelines.auth import *
from snapnote.pipelines.journal import *
from snapnote.pipelines.user import *
