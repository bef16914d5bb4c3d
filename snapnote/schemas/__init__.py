"""
SnapNote Schemas.

Pydantic models for request/response validation.
"""

from snapnote.schemas.auth import *
from snapnote.schemas.journal import *
from snapnote.schemas.user import *
