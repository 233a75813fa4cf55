"""
ERP Lens Core - Header Keyword Tables
Bilingual (Traditional Chinese / English) keyword lists that drive the header heuristics.
Kept as data so the matching rules can be tested apart from the row logic.
"""

# Headers containing any of these are identifiers and never numeric/date data.
IDENTIFIER_KEYWORDS = ('id', 'no', 'code', '單號', '編號', '料號', '工號', '客代', '廠商', '品號', '規格')

# Value columns that should be averaged rather than summed.
AVERAGE_MODE_KEYWORDS = ('rate', 'percent', 'avg', 'yield', '率', '平均', '占比', '達成')

# Value columns that should be counted rather than summed.
COUNT_MODE_KEYWORDS = ('id', 'no', 'code', '號', '單', '代碼')

# Headers treated as date candidates by the cleaner without sampling values.
DATE_HEADER_KEYWORDS = ('date', '日', 'time')

# Headers whose category axis is plotted chronologically.
DATE_AXIS_KEYWORDS = ('date', '日')

# Headers eligible as the summary date range column.
DATE_RANGE_KEYWORDS = ('date', '日期', '時間')

# Column roles used by the cleaner, in resolution priority order.
# Predicted is resolved before actual so "預計完工日" is not taken as an actual finish date,
# and both before document so the generic "date" keyword only claims what is left.
ROLE_PREDICTED = "predicted"
ROLE_ACTUAL = "actual"
ROLE_DIFFERENCE = "difference"
ROLE_DOCUMENT = "document"

COLUMN_ROLE_KEYWORDS: dict[str, tuple[str, ...]] = {
    ROLE_PREDICTED: ('預計', '預交', 'planned', 'target', 'delivery'),
    ROLE_ACTUAL: ('實際', '完工', '到貨', 'actual', 'finish', 'arrival'),
    ROLE_DIFFERENCE: ('差異', 'diff'),
    ROLE_DOCUMENT: ('單據', '訂單', '下單', '開工', 'order', 'date'),
}

# Roles whose column must hold dates; date candidates are preferred for them.
DATE_ROLES = frozenset({ROLE_PREDICTED, ROLE_ACTUAL, ROLE_DOCUMENT})


def contains_keyword(name: str, keywords) -> bool:
    """Case-insensitive substring match of any keyword in a header name."""
    lowered = str(name).lower()
    return any(str(kw).lower() in lowered for kw in keywords)
