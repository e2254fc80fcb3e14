import logging

from rest_framework import permissions

logger = logging.getLogger(__name__)


class RoleBasedPermission(permissions.BasePermission):
    """
    Role-based permission system that checks user roles and their permissions.

    A user's roles are the names of the Django groups they belong to.
    """

    # Define role permissions matrix
    ROLE_PERMISSIONS = {
        'finance_admin': {
            'finance': ['view', 'add', 'change', 'export'],
            'students': ['view', 'export'],
        },
        'accountant': {
            'finance': ['view', 'add', 'change', 'export'],
            'students': ['view'],  # For fee-related lookups
        },
        'principal': {
            'finance': ['view', 'export'],
            'students': ['view', 'export'],
        },
        'auditor': {
            'finance': ['view', 'export'],
        },
    }

    METHOD_ACTIONS = {
        'GET': 'view',
        'HEAD': 'view',
        'OPTIONS': 'view',
        'POST': 'add',
        'PUT': 'change',
        'PATCH': 'change',
        'DELETE': 'delete',
    }

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        # Superusers have all permissions
        if user.is_superuser:
            return True

        app_label = self._get_app_label(view)
        action = self._get_action(request, view)

        roles = self._get_roles(user)
        allowed = any(action in self.ROLE_PERMISSIONS.get(role, {}).get(app_label, []) for role in roles)
        if not allowed:
            logger.warning(
                f"Denied {action} on {app_label} for user {user.username} (roles: {', '.join(roles) or 'none'})"
            )
        return allowed

    def _get_roles(self, user):
        return sorted(user.groups.values_list('name', flat=True))

    def _get_app_label(self, view):
        # Extract app label from view or model
        if getattr(view, 'app_label', None):
            return view.app_label
        if getattr(view, 'model', None) is not None:
            return view.model._meta.app_label
        if getattr(view, 'queryset', None) is not None:
            return view.queryset.model._meta.app_label
        # Fallback: apps.<label>.module
        parts = view.__module__.split('.')
        return parts[1] if parts[0] == 'apps' and len(parts) > 1 else parts[0]

    def _get_action(self, request, view):
        # Views can pin the action, e.g. 'export' or 'change' on a POST
        action = getattr(view, 'permission_action', None)
        if action:
            return action
        return self.METHOD_ACTIONS.get(request.method, 'view')
