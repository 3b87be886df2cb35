"""Named constants — limits and names shared by the compiler and the VM."""

from __future__ import annotations

# Constant-pool indices are a single byte.
MAX_CONSTANTS = 256

# Call frames are counted in a single byte.
FRAMES_MAX = 255

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

SCRIPT_NAME = "<script>"

COMMENT_CHAR = "#"

# Deepest run of nested groupings and prefix operators one expression may hold.
MAX_NESTING = 128
