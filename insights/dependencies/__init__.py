from .auth import CurrentUser, Role, User, get_current_user, resolve_user_from_token, role_required
from .services import ManagerUser, ViewerUser, get_analytics_service, get_report_service

__all__ = [
    "CurrentUser",
    "ManagerUser",
    "Role",
    "User",
    "ViewerUser",
    "get_analytics_service",
    "get_current_user",
    "get_report_service",
    "resolve_user_from_token",
    "role_required",
]
