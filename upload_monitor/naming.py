"""File naming convention shared with the statement producers.

A file is ingested when its name, without the final extension, is at
least five characters long and starts with three to five ASCII letters
followed by a double underscore, e.g. ``abc__report.csv``.
"""

_MIN_BASE_LENGTH = 5
_PREFIX_LENGTHS = (3, 4, 5)
_SEPARATOR = "__"


def _is_ascii_letter(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def strip_extension(filename: str) -> str:
    """Return *filename* without its final extension.

    A leading dot is not treated as an extension separator.
    """
    idx = filename.rfind(".")
    if idx > 0:
        return filename[:idx]
    return filename


def matches_name(filename: str) -> bool:
    """Return True if *filename* follows the ingestion naming convention."""
    base = strip_extension(filename)
    if len(base) < _MIN_BASE_LENGTH:
        return False

    for prefix_len in _PREFIX_LENGTHS:
        if prefix_len + len(_SEPARATOR) > len(base):
            break
        prefix = base[:prefix_len]
        if not all(_is_ascii_letter(ch) for ch in prefix):
            continue
        if base[prefix_len:prefix_len + len(_SEPARATOR)] == _SEPARATOR:
            return True
    return False
