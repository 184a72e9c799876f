"""
Caller identity stand-in.

There is no token issuance here. An upstream gateway is expected to have
authenticated the caller and to forward the account id in X-User-Id.
"""
import uuid

from rest_framework import authentication, exceptions, permissions

from .models import UserAccount

USER_HEADER = 'HTTP_X_USER_ID'


class HeaderUserAuthentication(authentication.BaseAuthentication):
    """
    X-User-Id: <uuid> -> active UserAccount.

    No header means anonymous (request.user is None). A header that does not
    resolve to an active account is rejected outright.
    """

    def authenticate(self, request):
        raw = request.META.get(USER_HEADER)
        if not raw:
            return None

        try:
            user_id = uuid.UUID(raw)
        except ValueError:
            raise exceptions.AuthenticationFailed('X-User-Id is not a valid UUID')

        user = UserAccount.objects.filter(id=user_id, is_active=True).first()
        if user is None:
            raise exceptions.AuthenticationFailed('Unknown or inactive user')
        return user, None

    def authenticate_header(self, request):
        return 'X-User-Id'


class IsAccount(permissions.BasePermission):
    """The request carries a resolved UserAccount."""

    def has_permission(self, request, view):
        return isinstance(request.user, UserAccount)


class HasRole(IsAccount):
    """
    Role gate. Build per view:

        permission_classes = [HasRole.of(Role.PHARMACIST, *ADMIN_ROLES)]
    """

    roles = ()
    message = 'Your role may not perform this action'

    def has_permission(self, request, view):
        return super().has_permission(request, view) and request.user.role in self.roles

    @classmethod
    def of(cls, *roles):
        return type(f'HasRole_{"_".join(str(r) for r in roles)}', (cls,), {'roles': tuple(str(r) for r in roles)})
