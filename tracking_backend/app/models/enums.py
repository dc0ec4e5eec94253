"""
User roles enumeration.

Defines the role types for the shipment tracking system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        USER: Creates and follows their own shipments (default role)
        ADMIN: Staff; updates shipment progress
        SUPERADMIN: Elevated staff; deletes shipments, corrects receiver/weight,
            manages users and locations
    """
    USER = "user"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


STAFF_ROLES = [UserRole.ADMIN, UserRole.SUPERADMIN]
