from rest_framework.permissions import BasePermission, IsAuthenticated

from apps.accounts.policies import caller_from_request


class HasPolicy(BasePermission):
    """Checks the policy a view names for the current action."""

    message = "You do not have permission to perform this action."

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        policy = view.required_policy() if hasattr(view, "required_policy") else None
        if policy is None:
            return True
        return caller_from_request(request).can(policy)


class PolicyMixin:
    """Maps viewset actions to policy names.

    ``policies`` is ``{action: permission}``. Actions missing from the map
    only require authentication.
    """

    policies: dict = {}
    permission_classes = [IsAuthenticated, HasPolicy]

    def required_policy(self):
        return self.policies.get(getattr(self, "action", None))
