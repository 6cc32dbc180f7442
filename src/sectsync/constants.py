from __future__ import annotations

CONFIG_FILENAME = ".sectsync.json"

DEFAULT_BEGIN = "BEGIN SECTION"
DEFAULT_END = "END SECTION"

# Section names: letters, digits, underscore and hyphen.
NAME_PATTERN = r"[A-Za-z0-9_-]+"
# Source paths stop at a space, a closing `>` or the end of the line.
SOURCE_PATTERN = r"[^ >\r\n]+"

LOGGER_NAME = "sectsync"
