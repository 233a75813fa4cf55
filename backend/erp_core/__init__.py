"""
ERP Lens Core
Pure tabular normalization and aggregation engine
"""

from .column_types import (
    ColumnType,
    detect_column_type,
    classify_columns,
    get_headers,
)

from .dates import (
    parse_date,
    extract_year,
    replace_year,
)

from .data_janitor import (
    find_column,
    find_date_candidates,
    discover_column_roles,
    clean_dataset,
    clean_dataset_in_place,
    clean_dataset_with_report,
)

from .profiling import (
    compute_dataset_statistics,
    find_date_range_column,
)

from .sampling import smart_sample

from .aggregation import (
    MAX_CHART_POINTS,
    ReductionMode,
    detect_reduction_mode,
    aggregate_rows,
    drill_down,
)

from .context import (
    find_relevant_rows,
    build_analysis_context,
    render_context_prompt,
)

from .formatting import (
    format_number,
    format_compact_number,
)

__all__ = [
    # Column types
    'ColumnType',
    'detect_column_type',
    'classify_columns',
    'get_headers',
    # Dates
    'parse_date',
    'extract_year',
    'replace_year',
    # Data Janitor
    'find_column',
    'find_date_candidates',
    'discover_column_roles',
    'clean_dataset',
    'clean_dataset_in_place',
    'clean_dataset_with_report',
    # Statistics
    'compute_dataset_statistics',
    'find_date_range_column',
    # Sampling
    'smart_sample',
    # Aggregation
    'MAX_CHART_POINTS',
    'ReductionMode',
    'detect_reduction_mode',
    'aggregate_rows',
    'drill_down',
    # Reasoning context
    'find_relevant_rows',
    'build_analysis_context',
    'render_context_prompt',
    # Formatting
    'format_number',
    'format_compact_number',
]
