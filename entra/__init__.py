from .api.graph_api import GraphAPI, create_headers, get_oauth_token
from .api.user_api import UserAPI
from .api.group_api import GroupAPI
from .config import EntraConfig
from .facade.directory_facade import DirectoryFacade
from .models.directory_records import GroupRecord, LookupResult, MembershipEntry, UserRecord

__all__ = [
    'GraphAPI',
    'create_headers',
    'get_oauth_token',
    'UserAPI',
    'GroupAPI',
    'EntraConfig',
    'DirectoryFacade',
    'GroupRecord',
    'LookupResult',
    'MembershipEntry',
    'UserRecord'
]
