from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

USER_ODATA_TYPE = '#microsoft.graph.user'
GROUP_ODATA_TYPE = '#microsoft.graph.group'

# Projection used for single-user lookups.
USER_SELECT_FIELDS = [
    'id', 'displayName', 'mail', 'userPrincipalName', 'jobTitle', 'officeLocation',
    'mobilePhone', 'businessPhones', 'onPremisesSamAccountName', 'department',
]

# Projection used when re-fetching group members.
MEMBER_SELECT_FIELDS = [
    'id', 'displayName', 'mail', 'userPrincipalName', 'jobTitle', 'department',
    'onPremisesSamAccountName',
]

GROUP_SELECT_FIELDS = ['id', 'displayName', 'mail', 'description']


def is_user_object(payload: Dict[str, Any]) -> bool:
    return (payload or {}).get('@odata.type') == USER_ODATA_TYPE


def is_group_object(payload: Dict[str, Any]) -> bool:
    return (payload or {}).get('@odata.type') == GROUP_ODATA_TYPE


@dataclass(frozen=True)
class UserRecord:
    """Snapshot of a directory user's identity attributes."""
    id: str
    display_name: Optional[str] = None
    account_name: Optional[str] = None
    mail: Optional[str] = None
    user_principal_name: Optional[str] = None
    department: Optional[str] = None
    job_title: Optional[str] = None
    office_location: Optional[str] = None
    mobile_phone: Optional[str] = None
    business_phones: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def mail_or_principal_name(self) -> Optional[str]:
        """Primary mail address, falling back to the principal name."""
        return self.mail or self.user_principal_name

    @classmethod
    def from_graph(cls, payload: Dict[str, Any]) -> 'UserRecord':
        """Build a record from a directory user JSON object."""
        return cls(
            id=payload.get('id'),
            display_name=payload.get('displayName'),
            account_name=payload.get('onPremisesSamAccountName'),
            mail=payload.get('mail'),
            user_principal_name=payload.get('userPrincipalName'),
            department=payload.get('department'),
            job_title=payload.get('jobTitle'),
            office_location=payload.get('officeLocation'),
            mobile_phone=payload.get('mobilePhone'),
            business_phones=tuple(payload.get('businessPhones') or ()),
        )


@dataclass(frozen=True)
class GroupRecord:
    """Snapshot of a directory group."""
    id: str
    display_name: Optional[str] = None
    mail: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_graph(cls, payload: Dict[str, Any]) -> 'GroupRecord':
        return cls(
            id=payload.get('id'),
            display_name=payload.get('displayName'),
            mail=payload.get('mail'),
            description=payload.get('description'),
        )


@dataclass(frozen=True)
class LookupResult:
    """
    Outcome of a single user lookup.

    Every part is independently optional, but a missing user always comes
    with a missing manager and missing groups.
    """
    user: Optional[UserRecord] = None
    manager: Optional[UserRecord] = None
    groups: Optional[List[GroupRecord]] = None

    @classmethod
    def empty(cls) -> 'LookupResult':
        return cls()

    @property
    def found(self) -> bool:
        return self.user is not None


@dataclass(frozen=True)
class MembershipEntry:
    """A group member together with that member's manager, if any."""
    user: UserRecord
    manager: Optional[UserRecord] = None
