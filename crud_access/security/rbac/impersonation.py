"""
User impersonation.

An administrator can view the application as a given role. The wrapped user
keeps its identity (``id``, ``pk`` and every other attribute used by scopes),
only its roles are replaced by the impersonated role.
"""

from typing import Any

from ...config_proxy import get_setting


class ImpersonatedUser:
    """
    Proxy a real user while presenting a single impersonated role.

    The configured ``permission_settings.role_attribute`` returns
    ``[impersonated_role]``; every other attribute is read from, and written
    to, the real user.

    Examples:
        >>> viewer = ImpersonatedUser(request.user, "viewer")
        >>> PermissionEvaluator.for_model("deal", viewer).roles
        ["viewer"]
    """

    __slots__ = ("_real_user", "_impersonated_role")

    def __init__(self, real_user: Any, impersonated_role: str):
        object.__setattr__(self, "_real_user", real_user)
        object.__setattr__(self, "_impersonated_role", str(impersonated_role))

    @property
    def real_user(self) -> Any:
        return object.__getattribute__(self, "_real_user")

    @property
    def impersonated_role(self) -> str:
        return object.__getattribute__(self, "_impersonated_role")

    @property
    def impersonated_roles(self) -> list[str]:
        return [self.impersonated_role]

    def __getattr__(self, name: str) -> Any:
        if name == str(get_setting("permission_settings.role_attribute", "crud_roles")):
            return self.impersonated_roles
        return getattr(object.__getattribute__(self, "_real_user"), name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(object.__getattribute__(self, "_real_user"), name, value)

    def __repr__(self) -> str:
        return (
            f"<ImpersonatedUser user={self.real_user!r} "
            f"role={self.impersonated_role!r}>"
        )


def real_user_of(user: Any) -> Any:
    """The user behind an impersonation, or ``user`` itself."""
    if isinstance(user, ImpersonatedUser):
        return user.real_user
    return user


__all__ = ["ImpersonatedUser", "real_user_of"]
