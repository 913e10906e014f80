"""
Directory Facade for the Entra Directory CLI

This facade orchestrates the user and group adapters to answer the lookups
the command line exposes: a user by account name, principal name or display
name (with manager and optional group enrichment), group search by name
prefix, and group member listings with each member's manager.

All operations are read-only. Failures of the primary user/group/member
queries are logged and re-raised; manager lookups never fail the caller.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..api.graph_api import create_headers, get_oauth_token, odata_quote
from ..api.group_api import GroupAPI
from ..api.user_api import UserAPI
from ..config import DEFAULT_AUTHORITY, DEFAULT_BASE_URL, EntraConfig
from ..exceptions import DirectoryObjectNotFoundError, DirectoryServiceError
from ..models.directory_records import (
    GROUP_SELECT_FIELDS,
    MEMBER_SELECT_FIELDS,
    USER_SELECT_FIELDS,
    GroupRecord,
    LookupResult,
    MembershipEntry,
    UserRecord,
    is_group_object,
    is_user_object,
)

logger = logging.getLogger(__name__)

ACCOUNT_LOOKUP_FIELDS = ['id', 'displayName', 'mail', 'userPrincipalName', 'onPremisesSamAccountName']


class DirectoryFacade:
    """
    Directory facade providing user, manager and group lookups.

    The facade performs one client credential exchange when it is built and
    shares the resulting headers between its adapters:
    - users: UserAPI for user, manager and memberOf queries
    - groups: GroupAPI for group search and member enumeration
    """

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        base_url: str = DEFAULT_BASE_URL,
        authority: str = DEFAULT_AUTHORITY,
        timeout: int = 30,
    ) -> None:
        """
        Initialize the facade and exchange the client credentials for a token.

        Args:
            tenant_id (str): Directory tenant ID
            client_id (str): App registration client ID
            client_secret (str): App registration client secret
            base_url (str): Directory API base URL including version
            authority (str): Identity platform host for the token exchange
            timeout (int): Request timeout in seconds

        Raises:
            DirectoryAuthenticationError: If the credential exchange fails
        """
        access_token = get_oauth_token(
            tenant_id, client_id, client_secret, authority=authority, timeout=timeout
        )
        headers = create_headers(access_token)
        self.users = UserAPI(base_url, headers, timeout=timeout)
        self.groups = GroupAPI(base_url, headers, timeout=timeout)
        logger.info(f"Directory facade initialized with ClientId: {client_id}, TenantId: {tenant_id}")

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> 'DirectoryFacade':
        """
        Build a facade from a configuration dict, loading it from the environment when omitted.

        Raises:
            DirectoryConfigurationError: If any credential is missing
        """
        config = EntraConfig.validate(config or EntraConfig.get_config())
        return cls(
            config['tenant_id'],
            config['client_id'],
            config['client_secret'],
            base_url=config.get('base_url', DEFAULT_BASE_URL),
            authority=config.get('authority', DEFAULT_AUTHORITY),
            timeout=config.get('timeout', 30),
        )

    # ----- User lookups -----

    def resolve_user_by_account_id(
        self,
        account_name: str,
        include_groups: bool = False,
        group_name_fragment: Optional[str] = None,
    ) -> LookupResult:
        """
        Look up a user by on-premises account name.

        A match is re-resolved through the principal name lookup so every
        lookup returns the same attribute projection and enrichment.

        Args:
            account_name: The on-premises account name (network id)
            include_groups: Whether to enumerate the user's groups
            group_name_fragment: Case-insensitive substring filter for group names

        Returns:
            LookupResult: All parts empty when no account matches
        """
        logger.info(f"Searching user by account name: {account_name}")
        filter_expr = f"onPremisesSamAccountName eq {odata_quote(account_name)}"

        try:
            users = self.users.find_users(filter_expr, select=ACCOUNT_LOOKUP_FIELDS, count=True)
        except DirectoryServiceError as e:
            logger.error(f"Error occurred while retrieving user by account name {account_name}: {e}")
            raise

        if not users:
            logger.warning(f"No user found with account name: {account_name}")
            return LookupResult.empty()

        match = UserRecord.from_graph(users[0])
        logger.info(f"User found: {match.display_name}, {match.user_principal_name}")

        principal_name = match.user_principal_name or match.mail
        if principal_name:
            return self.resolve_user_by_email(principal_name, include_groups, group_name_fragment)

        # No principal name to re-resolve with; enrich the record already fetched.
        return self._enrich(match, include_groups, group_name_fragment)

    def resolve_user_by_email(
        self,
        email: str,
        include_groups: bool = False,
        group_name_fragment: Optional[str] = None,
    ) -> LookupResult:
        """
        Look up a user by exact principal name match.

        Args:
            email: The user's principal name
            include_groups: Whether to enumerate the user's groups
            group_name_fragment: Case-insensitive substring filter for group names
        """
        logger.info(f"Searching user by email: {email}")
        filter_expr = f"userPrincipalName eq {odata_quote(email)}"
        return self._resolve_user(filter_expr, 'email', email, include_groups, group_name_fragment)

    def resolve_user_by_display_name(
        self,
        display_name: str,
        include_groups: bool = False,
        group_name_fragment: Optional[str] = None,
    ) -> LookupResult:
        """
        Look up a user by exact display name match.

        Args:
            display_name: The user's full display name
            include_groups: Whether to enumerate the user's groups
            group_name_fragment: Case-insensitive substring filter for group names
        """
        logger.info(f"Searching user by displayName: {display_name}")
        filter_expr = f"displayName eq {odata_quote(display_name)}"
        return self._resolve_user(filter_expr, 'displayName', display_name, include_groups, group_name_fragment)

    def _resolve_user(
        self,
        filter_expr: str,
        key_label: str,
        key_value: str,
        include_groups: bool,
        group_name_fragment: Optional[str],
    ) -> LookupResult:
        try:
            users = self.users.find_users(filter_expr, select=USER_SELECT_FIELDS)
        except DirectoryServiceError as e:
            logger.error(f"Error occurred while retrieving user by {key_label} {key_value}: {e}")
            raise

        if not users:
            logger.warning(f"No user found with {key_label}: {key_value}")
            return LookupResult.empty()

        user = UserRecord.from_graph(users[0])
        logger.info(f"User found: {user.display_name}, {user.user_principal_name}")
        return self._enrich(user, include_groups, group_name_fragment)

    def _enrich(
        self,
        user: UserRecord,
        include_groups: bool,
        group_name_fragment: Optional[str],
    ) -> LookupResult:
        manager = self.resolve_manager(user)

        groups = None
        if include_groups:
            groups = self.list_user_groups(user.id, group_name_fragment)

        return LookupResult(user=user, manager=manager, groups=groups)

    def resolve_manager(self, user: UserRecord) -> Optional[UserRecord]:
        """
        Look up the manager of a user.

        A missing relation, a manager that is not a user object, and any
        request failure all resolve to None.

        Args:
            user: The user whose manager to fetch

        Returns:
            Optional[UserRecord]: The manager, or None
        """
        logger.info(f"Fetching manager for user: {user.id}")
        try:
            payload = self.users.get_manager(user.id)
        except DirectoryObjectNotFoundError:
            logger.warning(f"No manager relationship found for user: {user.id}. It might not be set.")
            return None
        except (DirectoryServiceError, requests.RequestException) as e:
            logger.error(f"Error occurred while retrieving manager for user {user.id}: {e}")
            return None

        if not payload or not is_user_object(payload):
            logger.warning("Manager relationship exists but is not a User object.")
            return None

        manager = UserRecord.from_graph(payload)
        logger.info(f"Manager found: {manager.display_name}")
        return manager

    # ----- Group lookups -----

    def list_user_groups(self, user_id: str, name_fragment: Optional[str] = None) -> List[GroupRecord]:
        """
        List the groups a user is a direct member of.

        Args:
            user_id: The user's object id
            name_fragment: Optional case-insensitive substring the group name must contain

        Returns:
            List[GroupRecord]: Groups in directory order; roles and other
            non-group memberships are skipped
        """
        logger.info(f"Fetching groups for user: {user_id}")
        fragment = name_fragment.casefold() if name_fragment else None
        groups = []

        try:
            for membership in self.users.iterate_member_of(user_id):
                if not is_group_object(membership):
                    continue
                group = GroupRecord.from_graph(membership)
                if fragment and fragment not in (group.display_name or '').casefold():
                    continue
                groups.append(group)
        except DirectoryServiceError as e:
            logger.error(f"Error occurred while fetching groups for user {user_id}: {e}")
            raise

        logger.info(f"Found {len(groups)} groups for user {user_id}")
        return groups

    def search_groups_by_name_prefix(self, name_fragment: str) -> List[GroupRecord]:
        """
        Search groups whose display name starts with the given fragment.

        Args:
            name_fragment: Leading part of the group display name

        Returns:
            List[GroupRecord]: Every matching group across all result pages
        """
        logger.info(f"Searching groups by name fragment: {name_fragment}")
        try:
            return [GroupRecord.from_graph(group) for group in self._iterate_groups_by_prefix(name_fragment)]
        except DirectoryServiceError as e:
            logger.error(f"Error occurred while searching groups by name fragment {name_fragment}: {e}")
            raise

    def find_first_group(self, name_prefix: str) -> Optional[GroupRecord]:
        """
        Return the first group whose display name starts with name_prefix, if any.

        Stops paging as soon as one group is found.
        """
        logger.info(f"Resolving group by name prefix: {name_prefix}")
        try:
            first = next(self._iterate_groups_by_prefix(name_prefix), None)
        except DirectoryServiceError as e:
            logger.error(f"Error occurred while searching groups by name fragment {name_prefix}: {e}")
            raise

        if first is None:
            logger.warning(f"No groups found with name starting with '{name_prefix}'")
            return None
        return GroupRecord.from_graph(first)

    def _iterate_groups_by_prefix(self, name_prefix: str):
        filter_expr = f"startswith(displayName,{odata_quote(name_prefix)})"
        return self.groups.iterate_groups(filter_expr, select=GROUP_SELECT_FIELDS, count=True)

    def list_group_members(self, group_id: str) -> List[MembershipEntry]:
        """
        List the user members of a group with each member's manager.

        Nested groups, devices and other non-user members are skipped. Each
        user member is re-fetched with the member projection, one at a time.

        Args:
            group_id: The group's object id

        Returns:
            List[MembershipEntry]: One entry per user member
        """
        logger.info(f"Fetching members of group {group_id}")
        members = []

        try:
            for member in self.groups.iterate_members(group_id):
                if not is_user_object(member):
                    logger.debug(f"Skipping non-user member {member.get('id')} ({member.get('@odata.type')})")
                    continue

                payload = self.users.get_user(member['id'], select=MEMBER_SELECT_FIELDS)
                if not payload:
                    continue

                user = UserRecord.from_graph(payload)
                members.append(MembershipEntry(user=user, manager=self.resolve_manager(user)))
        except DirectoryServiceError as e:
            logger.error(f"Error occurred while fetching group members for group {group_id}: {e}")
            raise

        logger.info(f"Found {len(members)} user members in group {group_id}")
        return members
