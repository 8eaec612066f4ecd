"""
Decoding of file paths printed by git.

Git quotes a path containing special characters and backslash-escapes those
characters, see ``core.quotePath`` in git-config(1). Only output produced with
``core.quotePath=false`` is supported: each octal escape is decoded to the
character with that byte value, so a multi-byte character that git writes as
several octal escapes is not recomposed.
"""
import re

SIMPLE_ESCAPES = {
    "a": "\x07",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}

ESCAPE_PATTERN = re.compile(r'\\([abfnrtv\\"]|[0-7]{1,3})')


def _unescape(match: re.Match) -> str:
    seq = match.group(1)
    if seq in SIMPLE_ESCAPES:
        return SIMPLE_ESCAPES[seq]
    return chr(int(seq, 8))


def decode_git_file_path(file_path: str) -> str:
    """Decode a path from git output if git quoted it, otherwise return it as is."""
    if len(file_path) >= 2 and file_path.startswith('"') and file_path.endswith('"'):
        return ESCAPE_PATTERN.sub(_unescape, file_path[1:-1])
    return file_path
