from .json_flattener import flatten, render_as_single_row_table, render_indented
from .result_formatter import (
    export_members_to_csv,
    render_groups,
    render_members_table,
    render_user_card,
)

__all__ = [
    'flatten',
    'render_as_single_row_table',
    'render_indented',
    'export_members_to_csv',
    'render_groups',
    'render_members_table',
    'render_user_card'
]
