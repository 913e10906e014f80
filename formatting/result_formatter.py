"""
Console and file rendering for directory lookup results.

Renders a resolved user as a card (with a table of groups), group search
results and group member listings, and writes the optional text and CSV
exports.
"""

import csv
import logging
import os
from typing import List, Optional, Sequence, Tuple

import pandas as pd
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from entra.models.directory_records import GroupRecord, MembershipEntry, UserRecord

logger = logging.getLogger(__name__)

default_console = Console()

NOT_AVAILABLE = 'N/A'

CSV_COLUMNS = [
    'DisplayName', 'NetworkID', 'Email', 'Department', 'JobTitle', 'ManagerName', 'ManagerEmail',
]


def _or_na(value: Optional[str]) -> str:
    return value if value else NOT_AVAILABLE


def _or_blank(value: Optional[str]) -> str:
    return value.strip() if value and value.strip() else ''


def build_user_details(user: UserRecord, manager: Optional[UserRecord]) -> List[Tuple[str, str]]:
    """Return the labeled attribute rows shown on a user card, with N/A for missing values."""
    phones = ', '.join(user.business_phones) if user.business_phones else NOT_AVAILABLE
    return [
        ('Name', _or_na(user.display_name)),
        ('Network ID', _or_na(user.account_name)),
        ('Email', _or_na(user.mail_or_principal_name)),
        ('Department', _or_na(user.department)),
        ('Job Title', _or_na(user.job_title)),
        ('Office', _or_na(user.office_location)),
        ('Mobile', _or_na(user.mobile_phone)),
        ('Business Phones', phones),
        ('Manager', _or_na(manager.display_name if manager else None)),
        ('Object ID', _or_na(user.id)),
    ]


def build_card_text(
    user: UserRecord,
    manager: Optional[UserRecord],
    groups: Optional[Sequence[GroupRecord]],
) -> str:
    """Plain-text rendition of a user card used for the .txt export."""
    details = build_user_details(user, manager)
    width = max(len(label) for label, _ in details) + 2
    lines = ['User Details:']
    lines.extend(f"    {(label + ':').ljust(width)} {value}" for label, value in details)

    if groups:
        lines.append('')
        lines.append('User Groups:')
        lines.extend(
            f"- {_or_na(group.display_name)}: {_or_na(group.description)}" for group in groups
        )

    return '\n'.join(lines) + '\n'


def build_user_groups_table(groups: Sequence[GroupRecord]) -> Table:
    table = Table(box=box.ROUNDED)
    table.add_column('Group Name', header_style='bold yellow')
    table.add_column('Group ID', header_style='bold yellow')
    table.add_column('Group Description', header_style='bold yellow')
    for group in groups:
        table.add_row(
            Text(_or_na(group.display_name)),
            Text(_or_na(group.id)),
            Text(_or_na(group.description)),
        )
    return table


def render_user_card(
    user: Optional[UserRecord],
    manager: Optional[UserRecord] = None,
    groups: Optional[Sequence[GroupRecord]] = None,
    export_path: Optional[str] = None,
    console: Optional[Console] = None,
) -> Optional[str]:
    """
    Print a user card followed by the user's groups, optionally exporting a text copy.

    Args:
        user: The resolved user, or None when the lookup found nothing.
        manager: The user's manager, if any.
        groups: The user's groups, if they were requested.
        export_path: Directory to write ``<account name>.txt`` into.
        console: Console to print to.

    Returns:
        Optional[str]: Path of the exported file when the export succeeded.
    """
    if console is None:
        console = default_console

    if user is None:
        console.print('[bold red]User not found.[/]')
        return None

    card_rows = Table.grid(padding=(0, 2))
    card_rows.add_column(style='bold yellow', no_wrap=True)
    card_rows.add_column(style='green')
    for label, value in build_user_details(user, manager):
        card_rows.add_row(f"{label}:", Text(value))

    console.print(
        Panel(card_rows, box=box.ROUNDED, border_style='grey70',
              title='[bold yellow]User Details[/]', expand=True)
    )

    if groups:
        console.print(
            Panel(build_user_groups_table(groups), box=box.ROUNDED, border_style='grey70',
                  title='[bold yellow]User Groups[/]', expand=True)
        )
    else:
        console.print('[bold red]No groups found for this user.[/]')

    if not export_path:
        return None

    return export_user_card(export_path, user, manager, groups, console=console)


def export_user_card(
    export_path: str,
    user: UserRecord,
    manager: Optional[UserRecord],
    groups: Optional[Sequence[GroupRecord]],
    console: Optional[Console] = None,
) -> Optional[str]:
    """Write the text card to ``<export_path>/<account name>.txt``; failures are reported, not raised."""
    if console is None:
        console = default_console

    file_name = f"{user.account_name or user.id}.txt"
    full_path = os.path.join(export_path, file_name)

    try:
        with open(full_path, 'w', encoding='utf-8') as export_file:
            export_file.write(build_card_text(user, manager, groups))
    except OSError as e:
        logger.error(f"Failed to export card to {full_path}: {e}")
        console.print(Text.assemble(('Failed to export card: ', 'bold red'), str(e)))
        return None

    logger.info(f"Exported card to {full_path}")
    console.print(Text.assemble(('Exported card to: ', 'bold green'), (full_path, 'blue')))
    return full_path


def render_groups(groups: Optional[Sequence[GroupRecord]], console: Optional[Console] = None) -> Optional[Table]:
    """Print group names and descriptions, or a notice when there are none."""
    if console is None:
        console = default_console

    if not groups:
        console.print('[bold red]No groups found.[/]')
        return None

    table = Table(box=box.ROUNDED)
    table.add_column('Group Name', header_style='bold yellow')
    table.add_column('Group Description', header_style='bold yellow')
    for group in groups:
        table.add_row(Text(_or_na(group.display_name)), Text(_or_na(group.description)))

    console.print(
        Panel(table, box=box.ROUNDED, border_style='grey70',
              title='[bold yellow]Groups[/]', expand=True)
    )
    return table


def member_row(entry: MembershipEntry) -> List[str]:
    """Table cells for one member; blank strings keep the columns uniform."""
    user, manager = entry.user, entry.manager
    return [
        _or_blank(user.display_name),
        _or_blank(user.account_name),
        _or_blank(user.mail_or_principal_name),
        _or_blank(user.department),
        _or_blank(user.job_title),
        _or_blank(manager.display_name if manager else None),
    ]


def render_members_table(
    members: Sequence[MembershipEntry],
    group_name: str,
    console: Optional[Console] = None,
) -> Table:
    """Print one row per group member with name, network id, email, department, title and manager."""
    if console is None:
        console = default_console

    table = Table(
        box=box.ROUNDED,
        border_style='grey70',
        title='[yellow]Team Members[/]',
        caption=Text(f"Showing members of {group_name}", style='grey50'),
    )
    table.add_column('Name', header_style='green')
    table.add_column('NetworkId', header_style='blue', justify='center')
    table.add_column('Email', header_style='green')
    table.add_column('Dept', header_style='green')
    table.add_column('Job Title', header_style='green')
    table.add_column('Manager', header_style='purple')

    for entry in members:
        table.add_row(*(Text(cell) for cell in member_row(entry)))

    console.print(table, justify='center')
    return table


def csv_row(entry: MembershipEntry) -> List[str]:
    user, manager = entry.user, entry.manager
    return [
        user.display_name or '',
        user.account_name or '',
        user.mail_or_principal_name or '',
        user.department or '',
        user.job_title or '',
        (manager.display_name if manager else None) or '',
        (manager.mail_or_principal_name if manager else None) or '',
    ]


def export_members_to_csv(
    path: str,
    members: Sequence[MembershipEntry],
    console: Optional[Console] = None,
) -> Optional[str]:
    """
    Write group members to a CSV file.

    The header row is written as-is; every data field is double-quoted, with
    embedded quotes doubled. Write failures are reported, not raised.

    Args:
        path: Destination file path.
        members: Members to export.
        console: Console to print the outcome to.

    Returns:
        Optional[str]: The path written, or None when the write failed.
    """
    if console is None:
        console = default_console

    frame = pd.DataFrame([csv_row(entry) for entry in members], columns=CSV_COLUMNS, dtype=str)

    try:
        with open(path, 'w', encoding='utf-8', newline='') as csv_file:
            csv_file.write(','.join(CSV_COLUMNS) + '\n')
            frame.to_csv(csv_file, header=False, index=False, quoting=csv.QUOTE_ALL, lineterminator='\n')
    except OSError as e:
        logger.error(f"Failed to export members to {path}: {e}")
        console.print(Text.assemble(('Failed to export CSV: ', 'bold red'), str(e)))
        return None

    logger.info(f"Exported {len(members)} members to {path}")
    console.print(Text.assemble(('Exported to: ', 'bold green'), (path, 'blue')))
    return path
