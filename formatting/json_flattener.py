"""
JSON flattening and display helpers.

Turns an arbitrary JSON document into a flat mapping of path keys to string
values (``owner.name``, ``tags[0]``, ``items[1].id``) and renders it either
as a single-row table or as an indented pretty-print.
"""

import json
import logging
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich import box

logger = logging.getLogger(__name__)

default_console = Console()

ROOT_SCALAR_KEY = 'value'


def _render_scalar(value: Any) -> str:
    if isinstance(value, str):
        return value
    # JSON spelling for null, booleans and numbers
    return json.dumps(value)


def _flatten_node(node: Any, prefix: str, result: Dict[str, str]) -> None:
    if isinstance(node, dict):
        for key, child in node.items():
            child_key = f"{prefix}.{key}" if prefix else str(key)
            _flatten_node(child, child_key, result)
    elif isinstance(node, list):
        for index, child in enumerate(node):
            _flatten_node(child, f"{prefix}[{index}]", result)
    else:
        result[prefix or ROOT_SCALAR_KEY] = _render_scalar(node)


def flatten(document: Any) -> Dict[str, str]:
    """
    Flatten a JSON document into path keys and string leaf values.

    Object members extend the parent path with ``.key``, array elements with
    ``[index]``. Empty objects and arrays contribute no entries. Insertion
    order follows the document: object keys in their original order, array
    indices ascending.

    Keys are not escaped, so an object key that itself contains ``.`` or
    ``[`` can build the same path as a nested member (``{'a.b': 1}`` and
    ``{'a': {'b': 2}}`` both give ``a.b``). The leaf visited last wins and
    the key keeps the position of the first.

    Args:
        document: A decoded JSON value (dict, list or scalar).

    Returns:
        Dict[str, str]: Path to rendered leaf value; null renders as "null".
    """
    result: Dict[str, str] = {}
    _flatten_node(document, '', result)
    return result


def build_single_row_table(flattened: Dict[str, str]) -> Table:
    """Build a table with one column per leaf path and one row holding every leaf value."""
    table = Table(box=box.ROUNDED, border_style='grey70', expand=True)
    for header in flattened:
        table.add_column(Text(header, style='green'))
    if flattened:
        table.add_row(*(Text(value) for value in flattened.values()))
    return table


def render_as_single_row_table(document: Any, console: Optional[Console] = None) -> Table:
    """
    Flatten a document and print it as a single-row table.

    Only meaningful for documents describing one object; arrays of records
    come out as one very wide row.

    Returns:
        Table: The rendered table.
    """
    if console is None:
        console = default_console
    flattened = flatten(document)
    table = build_single_row_table(flattened)

    if not flattened:
        logger.debug("Document has no leaf values; nothing to tabulate")
        console.print("[yellow]No values to display.[/]")
        return table

    console.print(table)
    return table


def render_indented(document: Any, console: Optional[Console] = None) -> str:
    """
    Pretty-print a document with two-space indentation inside a panel.

    Returns:
        str: The indented JSON text.
    """
    if console is None:
        console = default_console
    json_text = json.dumps(document, indent=2, ensure_ascii=False)
    console.print(
        Panel(Text(json_text), box=box.ROUNDED, title='[yellow]JSON Output[/]', expand=True)
    )
    return json_text
