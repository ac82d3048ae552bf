"""
Deterministic replacement rules.

This file exists to make the fixed parts of the rewrite explicit.
"""

RT_ID_COLUMN = "RecordTypeId"  # identifier column, not user-configurable

SOURCE_ENCODING = "utf-8"
BOM_ENCODING = "utf-8-sig"  # used on read and write when the source starts with a BOM
UTF8_BOM = b"\xef\xbb\xbf"
DETECTION_SAMPLE_BYTES = 64 * 1024

DELIMITER = ","
QUOTECHAR = '"'
LINE_TERMINATOR = "\n"

DEFAULT_API_VERSION = "59.0"
DEFAULT_TIMEOUT_SECONDS = 30.0
