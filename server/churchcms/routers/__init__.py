"""API routers for the church management service."""

from churchcms.routers import (
    account,
    attendance,
    auth,
    hierarchy,
    members,
    services,
    structure,
    users,
)  # noqa: F401
