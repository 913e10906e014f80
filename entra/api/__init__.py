from .graph_api import GraphAPI, create_headers, get_oauth_token, odata_quote, walk_pages
from .user_api import UserAPI
from .group_api import GroupAPI

__all__ = [
    'GraphAPI',
    'create_headers',
    'get_oauth_token',
    'odata_quote',
    'walk_pages',
    'UserAPI',
    'GroupAPI'
]
