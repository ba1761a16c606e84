"""Regexes for the lenient move-text tokenizer."""

# pylint: disable=invalid-name

import re

SAN_TOKEN_PATTERN = re.compile(
    r"^(?P<san>O-O-O|O-O|0-0-0|0-0|[KQRBN]?[a-h]?[1-8]?x?[a-h][1-8](?:=?[QRBN])?)"
    r"(?P<check>[+#])?(?P<glyphs>[!?]{0,2})$"
)
MOVE_NUMBER_PATTERN = re.compile(r"^\d+\.+$")
MOVE_NUMBER_PREFIX_PATTERN = re.compile(r"^\d+\.+(?=\S)")
RESULT_TOKENS = frozenset({"1-0", "0-1", "1/2-1/2", "*"})
NAG_PATTERN = re.compile(r"^\$\d+$")
TAG_PAIR_PATTERN = re.compile(r"^\s*\[[^\]]*\]\s*$", re.MULTILINE)
COMMENT_PATTERN = re.compile(r"\{[^}]*\}")
LINE_COMMENT_PATTERN = re.compile(r";[^\n]*")
