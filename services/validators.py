"""
Structural predicates for allocation fields.

None of these raise: callers translate a False into the matching
registry error.
"""

MAX_LABEL_LENGTH = 64
MAX_THESIS_LENGTH = 128
MAX_ASSET_CLASS_LENGTH = 32
MAX_ASSET_CLASSES = 10
MAX_PERCENTAGE = 10000  # basis points
MAX_DURATION = 2_000_000  # exclusive, logical-time units
MAX_PRINCIPAL_LENGTH = 128
MAX_PERMISSION_LEVEL = 100
MAX_PERFORMANCE_SCORE = 1000
MAX_RISK_SCORE = 100
MAX_BIGINT = 2**63 - 1
MAX_TOTAL_VALUE = MAX_BIGINT  # BigInteger column
# Latest logical time at which a full-length window still fits the column
MAX_HEIGHT = MAX_BIGINT - MAX_DURATION


def _is_int(n) -> bool:
    # bool is an int subclass; a JSON true must not pass as 1
    return isinstance(n, int) and not isinstance(n, bool)


def _text_within(text, max_length: int) -> bool:
    return isinstance(text, str) and 1 <= len(text) <= max_length


def valid_label(text) -> bool:
    return _text_within(text, MAX_LABEL_LENGTH)


def valid_thesis(text) -> bool:
    return _text_within(text, MAX_THESIS_LENGTH)


def valid_asset_class(token) -> bool:
    return _text_within(token, MAX_ASSET_CLASS_LENGTH)


def valid_asset_class_collection(seq) -> bool:
    """1-10 tokens, each 1-32 characters. A bare string is not a collection."""
    if not isinstance(seq, (list, tuple)):
        return False
    if not 1 <= len(seq) <= MAX_ASSET_CLASSES:
        return False
    return all(valid_asset_class(token) for token in seq)


def valid_percentage(n) -> bool:
    return _is_int(n) and 0 < n <= MAX_PERCENTAGE


def valid_duration(n) -> bool:
    return _is_int(n) and 0 < n < MAX_DURATION


def valid_principal(text) -> bool:
    """Surrounding whitespace is rejected: callers authenticate with stripped identities."""
    return _text_within(text, MAX_PRINCIPAL_LENGTH) and text == text.strip()


def valid_height(n) -> bool:
    return _is_int(n) and 0 <= n <= MAX_HEIGHT


def valid_permission_level(n) -> bool:
    return _is_int(n) and 0 <= n <= MAX_PERMISSION_LEVEL


def valid_total_value(n) -> bool:
    return _is_int(n) and 0 < n <= MAX_TOTAL_VALUE


def valid_performance_score(n) -> bool:
    return _is_int(n) and 0 <= n <= MAX_PERFORMANCE_SCORE


def valid_risk_score(n) -> bool:
    return _is_int(n) and 0 <= n <= MAX_RISK_SCORE
