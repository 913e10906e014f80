from .graph_api import GraphAPI
from typing import Dict, List, Any, Iterator, Optional


class GroupAPI(GraphAPI):
    def iterate_groups(self, filter_expr: str, select: Optional[List[str]] = None,
                       count: bool = False) -> Iterator[Dict[str, Any]]:
        """
        Iterates every group matching an OData filter across all pages.

        Args:
            filter_expr: OData $filter expression.
            select: Attributes to project.
            count: Whether to request $count (advanced query).
        """
        params = {'$filter': filter_expr}
        if select:
            params['$select'] = ','.join(select)
        if count:
            params['$count'] = 'true'
        return self.iterate_pages('groups', params=params)

    def iterate_members(self, group_id: str) -> Iterator[Dict[str, Any]]:
        return self.iterate_pages(f'groups/{group_id}/members')
