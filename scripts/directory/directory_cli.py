"""
Command line client for the organizational directory.

Commands:
    get-user (--networkid X | --email X | --name X) [--includegroup] [--groupfragment F] [--export DIR]
    get-user-groups --email X [--groupfragment F]
    get-group search --name FRAGMENT
    get-group members --group NAME [--csv DIR]
    http-request --method {GET|POST|PUT|DELETE} --url URL [--headers "K:V" ...] [--body JSON]

Credentials are read from the environment (or a .env file):
AZURE_TENANT_ID, GRAPH_CLIENT_ID and GRAPH_CLIENT_SECRET.
"""

import argparse
import functools
import logging
import os
import sys
from typing import Callable, List, Optional

from rich.console import Console

from entra.config import EntraConfig
from entra.exceptions import (
    DirectoryAuthenticationError,
    DirectoryConfigurationError,
    DirectoryServiceError,
)
from entra.facade.directory_facade import DirectoryFacade
from formatting.result_formatter import (
    export_members_to_csv,
    render_groups,
    render_members_table,
    render_user_card,
)
from http_utility.http_request import HttpRequestUtility

console = Console()

EXIT_OK = 0
EXIT_FAILURE = 1


def handle_keyboard_interrupt(exit_message="Command interrupted by user"):
    """Decorator to handle KeyboardInterrupt and exit gracefully."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt:
                logging.info(f"\n{exit_message}")
                return 130
        return wrapper
    return decorator


def configure_logging(log_path: Optional[str] = None, quiet: bool = False) -> None:
    """
    Send log records to stderr and, when requested, to a log file.

    Args:
        log_path: Optional log file path; its directory is created if needed.
        quiet: Only show warnings and errors.
    """
    level_name = 'WARNING' if quiet else os.getenv('LOG_LEVEL', 'INFO').upper()
    level = getattr(logging, level_name, logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_path:
        log_dir = os.path.dirname(log_path)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )
    if log_path:
        logging.info(f"Logging to file: {log_path}")


def run_directory_command(action: Callable[[DirectoryFacade], None]) -> int:
    """
    Build the directory facade from the environment and run one command against it.

    Missing credentials, a failed credential exchange and failed primary
    queries end the command with a non-zero status.
    """
    try:
        config = EntraConfig.get_config()
    except DirectoryConfigurationError as e:
        logging.error(str(e))
        console.print(f"Invalid configuration: {e}", markup=False, style='bold red')
        return EXIT_FAILURE

    try:
        facade = DirectoryFacade.from_config(config)
    except DirectoryConfigurationError as e:
        logging.error(str(e))
        console.print("Azure AD credentials are not properly set in the .env file or environment variables.")
        return EXIT_FAILURE
    except DirectoryAuthenticationError as e:
        logging.error(f"Credential exchange failed: {e}")
        console.print(f"Authentication failed: {e}", markup=False, style='bold red')
        return EXIT_FAILURE

    try:
        action(facade)
    except DirectoryServiceError as e:
        logging.error(f"Directory query failed: {e}")
        console.print(f"Directory query failed: {e}", markup=False, style='bold red')
        return EXIT_FAILURE

    return EXIT_OK


# ----- get-user -----

def handle_get_user(args: argparse.Namespace) -> int:
    provided = [value for value in (args.networkid, args.email, args.name) if value]
    if len(provided) != 1:
        console.print("You must provide exactly one of --networkid, --email, or --name.")
        return EXIT_OK

    def action(facade: DirectoryFacade) -> None:
        if args.networkid:
            logging.info(f"get-user called with networkid {args.networkid}, IncludeGroups: {args.includegroup}, GroupFragment: {args.groupfragment}")
            result = facade.resolve_user_by_account_id(args.networkid, args.includegroup, args.groupfragment)
        elif args.email:
            logging.info(f"get-user called with email {args.email}, IncludeGroups: {args.includegroup}, GroupFragment: {args.groupfragment}")
            result = facade.resolve_user_by_email(args.email, args.includegroup, args.groupfragment)
        else:
            logging.info(f"get-user called with name {args.name}, IncludeGroups: {args.includegroup}, GroupFragment: {args.groupfragment}")
            result = facade.resolve_user_by_display_name(args.name, args.includegroup, args.groupfragment)

        render_user_card(result.user, result.manager, result.groups, args.export, console=console)

    return run_directory_command(action)


def handle_get_user_groups(args: argparse.Namespace) -> int:
    def action(facade: DirectoryFacade) -> None:
        result = facade.resolve_user_by_email(args.email, include_groups=True, group_name_fragment=args.groupfragment)
        if result.user is None:
            logging.info(f"No user found with email: {args.email}")
            console.print('[bold red]User not found.[/]')
            return

        user = result.user
        console.print(f"Groups for user {user.display_name} ({user.mail_or_principal_name}):", markup=False)
        render_groups(result.groups, console=console)

    return run_directory_command(action)


# ----- get-group -----

def handle_group_search(args: argparse.Namespace) -> int:
    def action(facade: DirectoryFacade) -> None:
        logging.info(f"get-group search called with {args.name}")
        groups = facade.search_groups_by_name_prefix(args.name)
        if not groups:
            logging.info("No groups found.")
        render_groups(groups, console=console)

    return run_directory_command(action)


def handle_group_members(args: argparse.Namespace) -> int:
    def action(facade: DirectoryFacade) -> None:
        logging.info(f"get-group members called with {args.group}, CSV: {args.csv or 'None'}")
        group = facade.find_first_group(args.group)
        if group is None:
            console.print(f"No groups found with name starting with '{args.group}'.", markup=False)
            return

        logging.info(f"Found group: {group.display_name} (ID: {group.id}). Fetching members...")
        members = facade.list_group_members(group.id)
        if not members:
            console.print("No members found in this group.")
            return

        logging.info(f"Members of Group {group.display_name}:")
        for entry in members:
            user, manager = entry.user, entry.manager
            logging.info(
                f"{user.display_name} ({user.account_name}) - {user.mail_or_principal_name} | "
                f"Dept: {user.department or 'N/A'} | Title: {user.job_title or 'N/A'} | "
                f"Manager: {manager.display_name if manager and manager.display_name else 'N/A'}"
            )

        if args.csv:
            full_path = os.path.join(args.csv, f"{args.group}.csv")
            logging.info(f"Exporting {len(members)} members to CSV at: {full_path}")
            export_members_to_csv(full_path, members, console=console)
        else:
            render_members_table(members, group.display_name or args.group, console=console)

    return run_directory_command(action)


# ----- http-request -----

def handle_http_request(args: argparse.Namespace) -> int:
    HttpRequestUtility(console=console).execute(args.method, args.url, args.headers, args.body)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='directory-cli',
        description='A CLI tool to fetch user and group details from Microsoft Graph.',
    )
    parser.add_argument('--log', nargs='?', const='directory_cli.log',
                        help='Enable logging to a file. Optionally specify a file path (defaults to directory_cli.log in current directory)')
    parser.add_argument('--quiet', action='store_true', help='Only log warnings and errors')
    subparsers = parser.add_subparsers(dest='command')

    get_user = subparsers.add_parser('get-user', help='Fetch user details from Microsoft Graph')
    get_user.add_argument('--networkid', help='The network ID (onPremisesSamAccountName) of the user.')
    get_user.add_argument('--email', help='The email (UPN) of the user.')
    get_user.add_argument('--name', help='The full display name of the user.')
    get_user.add_argument('--includegroup', action='store_true', help='Include groups the user belongs to.')
    get_user.add_argument('--groupfragment', help='Filter groups by a specific name fragment.')
    get_user.add_argument('--export', help='Path to export user details and groups to a file.')
    get_user.set_defaults(handler=handle_get_user)

    get_user_groups = subparsers.add_parser('get-user-groups', help='List the groups a user belongs to')
    get_user_groups.add_argument('--email', required=True, help='The email (UPN) of the user.')
    get_user_groups.add_argument('--groupfragment', help='Filter groups by a specific name fragment.')
    get_user_groups.set_defaults(handler=handle_get_user_groups)

    get_group = subparsers.add_parser('get-group', help='Interact with Groups in Microsoft Graph')
    get_group.set_defaults(help_parser=get_group)
    group_commands = get_group.add_subparsers(dest='group_command')

    search = group_commands.add_parser('search', help='Search for groups by partial name')
    search.add_argument('--name', required=True, help='Partial or start of the group name to search')
    search.set_defaults(handler=handle_group_search)

    members = group_commands.add_parser('members', help='List members of a given group')
    members.add_argument('--group', required=True, help='The name of the group')
    members.add_argument('--csv', help='Path to export members to a CSV file')
    members.set_defaults(handler=handle_group_members)

    http_request = subparsers.add_parser('http-request', help='Make an HTTP request and display the result.')
    http_request.add_argument('--method', required=True, help='The HTTP method to use (GET, POST, PUT, DELETE).')
    http_request.add_argument('--url', required=True, help='The URL to send the request to.')
    http_request.add_argument('--headers', nargs='*', default=[], help="Optional headers in 'Key:Value' format.")
    http_request.add_argument('--body', help='Optional JSON body for POST/PUT requests.')
    http_request.set_defaults(handler=handle_http_request)

    return parser


@handle_keyboard_interrupt()
def main(argv: Optional[List[str]] = None) -> int:
    """Main function for the directory command line client."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log, args.quiet)

    handler = getattr(args, 'handler', None)
    if handler is None:
        # get-group without search/members shows the get-group help
        getattr(args, 'help_parser', parser).print_help()
        return EXIT_OK

    return handler(args)


if __name__ == '__main__':
    sys.exit(main())
