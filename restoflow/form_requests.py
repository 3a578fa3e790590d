"""Rule sets for the registration and profile-update forms."""

from __future__ import annotations

from sqlalchemy.orm import Session

from .auth_context import AuthContext, EmployeeContext, OwnerContext
from .models import Employee, User
from .validation import (
    Confirmed,
    DateValue,
    Email,
    In,
    Integer,
    Lowercase,
    Max,
    Nullable,
    PasswordPolicy,
    Required,
    RuleSet,
    String,
    Unique,
)

GENDERS = ("Male", "Female", "Other")


def registration_rules(db: Session, password_policy: PasswordPolicy | None = None) -> RuleSet:
    policy = password_policy or PasswordPolicy()
    return {
        "name": [Required(), String(), Max(255)],
        "age": [Required(), Integer()],
        "gender": [Required(), String(), Max(255)],
        "address": [Required(), String(), Max(255), Unique(db, User, "address")],
        "email": [Required(), String(), Lowercase(), Email(), Max(255), Unique(db, User, "email")],
        "phonenumber": [Required(), String(), Max(20), Unique(db, User, "phonenumber")],
        "password": [Required(), Confirmed(), policy],
        "restaurant_name": [Required(), String(), Max(255)],
        "restaurant_address": [Required(), String(), Max(255)],
        "contact_number": [Required(), String(), Max(20)],
    }


def profile_update_rules(db: Session, ctx: AuthContext) -> RuleSet:
    """Email uniqueness is scoped to whichever account is being edited.

    An employee (with no owner logged in) is checked against ``employees``
    excluding their own primary key. Everyone else is checked against
    ``users`` excluding the acting owner; for an anonymous request nothing is
    excluded and the check runs across all users.
    """
    if isinstance(ctx, EmployeeContext):
        unique_email = Unique(db, Employee, "email", ignore=ctx.employee.employee_id, id_column="employee_id")
    else:
        # The default guard is the owner guard, so owner == default user here.
        user_id = ctx.user.id if isinstance(ctx, OwnerContext) else None
        unique_email = Unique(db, User, "email", ignore=user_id)
    return {
        "first_name": [Required(), String(), Max(255)],
        "middle_name": [Nullable(), String(), Max(255)],
        "last_name": [Required(), String(), Max(255)],
        "date_of_birth": [Required(), DateValue()],
        "gender": [Required(), In(GENDERS)],
        "email": [Required(), String(), Lowercase(), Email(), Max(255), unique_email],
    }


__all__ = ["GENDERS", "registration_rules", "profile_update_rules"]
