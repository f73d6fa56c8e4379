"""Role based permission classes shared by every app."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def _role_level(user) -> int:
    if not user or not user.is_authenticated:
        return 0
    return getattr(user, "role_level", 0)


class IsStaffRole(permissions.BasePermission):
    """Équipe et au-dessus (niveau ≥ 50)."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        return _role_level(request.user) >= 50


class IsAdminRole(permissions.BasePermission):
    """Administrateurs et développeurs (niveau ≥ 80)."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        return _role_level(request.user) >= 80


class IsAdminRoleOrReadOnly(permissions.BasePermission):
    """Lecture publique, écriture réservée aux administrateurs."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        return _role_level(request.user) >= 80


class IsOwnerOrStaff(permissions.BasePermission):
    """Object-level: the object's ``user`` or any staff member."""

    def has_object_permission(self, request, view, obj) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if _role_level(user) >= 50:
            return True
        return getattr(obj, "user_id", None) == user.id
