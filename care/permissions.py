"""
Custom permission classes for user-type based access control.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

from care.models import UserType


def _user_type(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "user_type", None)


class IsTyped(BasePermission):
    """Signed in and onboarded (has a user type)."""
    message = "Complete onboarding first."

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _user_type(request) in UserType.values


class IsAdminType(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _user_type(request) == UserType.ADMIN


class IsPatientType(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _user_type(request) == UserType.PATIENT


class IsDoctorType(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _user_type(request) == UserType.DOCTOR


class IsCaretakerType(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _user_type(request) == UserType.CARETAKER


class IsMedicalStaffType(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _user_type(request) == UserType.MEDICAL_STAFF


class IsAdminTypeOrReadOnly(BasePermission):
    """Reference data: anyone signed in reads, admins write."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        if request.method in SAFE_METHODS:
            return bool(request.user and request.user.is_authenticated)
        return _user_type(request) == UserType.ADMIN
