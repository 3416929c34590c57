"""
Role -> capability table

Every protected route names exactly one capability; roles are checked here
and nowhere else.
"""

from typing import Dict, FrozenSet
from models import Role

RECORDS_READ = "records:read"
RECORDS_WRITE = "records:write"
ACTIVITY_READ = "activity:read"
ATTENDANCE_WRITE = "attendance:write"

ROLE_CAPABILITIES: Dict[str, FrozenSet[str]] = {
    Role.ADMIN.value: frozenset({RECORDS_READ, RECORDS_WRITE, ACTIVITY_READ, ATTENDANCE_WRITE}),
    Role.USER.value: frozenset({RECORDS_READ, RECORDS_WRITE}),
    Role.MR.value: frozenset({RECORDS_READ, RECORDS_WRITE, ATTENDANCE_WRITE}),
}


def has_capability(role: str, capability: str) -> bool:
    return capability in ROLE_CAPABILITIES.get(role, frozenset())
