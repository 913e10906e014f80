from .graph_api import GraphAPI
from typing import Dict, List, Any, Iterator, Optional


class UserAPI(GraphAPI):
    def find_users(self, filter_expr: str, select: Optional[List[str]] = None,
                   count: bool = False) -> List[Dict[str, Any]]:
        """
        Gets the first page of users matching an OData filter.

        Args:
            filter_expr: OData $filter expression.
            select: Attributes to project. None returns the directory defaults.
            count: Whether to request $count (advanced query).
        """
        params = {'$filter': filter_expr}
        if select:
            params['$select'] = ','.join(select)
        if count:
            params['$count'] = 'true'
        result = self.get('users', params=params)
        return (result or {}).get('value', [])

    def get_user(self, user_id: str, select: Optional[List[str]] = None) -> Optional[Dict[str, Any]]:
        """
        Gets a single user by object id or principal name.

        Args:
            user_id: The user's object id or principal name.
            select: Attributes to project.
        """
        params = {'$select': ','.join(select)} if select else None
        return self.get(f'users/{user_id}', params=params)

    def get_manager(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Gets the directory object recorded as the user's manager.

        Raises DirectoryObjectNotFoundError when no manager is set.
        """
        return self.get(f'users/{user_id}/manager')

    def iterate_member_of(self, user_id: str) -> Iterator[Dict[str, Any]]:
        """
        Iterates every directory object the user is a direct member of.

        Args:
            user_id: The user's object id.
        """
        return self.iterate_pages(f'users/{user_id}/memberOf')
