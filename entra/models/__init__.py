from .directory_records import (
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

__all__ = [
    'GROUP_SELECT_FIELDS',
    'MEMBER_SELECT_FIELDS',
    'USER_SELECT_FIELDS',
    'GroupRecord',
    'LookupResult',
    'MembershipEntry',
    'UserRecord',
    'is_group_object',
    'is_user_object',
]
