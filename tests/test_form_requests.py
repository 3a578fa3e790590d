import pytest

from restoflow.auth_context import (
    AnonymousContext,
    EmployeeContext,
    OwnerContext,
    resolve_auth_context,
)
from restoflow.form_requests import profile_update_rules, registration_rules
from restoflow.validation import validate


def _registration_payload(**over):
    data = {
        "name": "Ana Cruz",
        "age": 34,
        "gender": "Female",
        "address": "12 Ocean Drive",
        "email": "ana@example.com",
        "phonenumber": "09171234567",
        "password": "correct-horse",
        "password_confirmation": "correct-horse",
        "restaurant_name": "Ana's Kitchen",
        "restaurant_address": "14 Ocean Drive",
        "contact_number": "0288001122",
    }
    data.update(over)
    return data


def _profile_payload(**over):
    data = {
        "first_name": "Sam",
        "middle_name": None,
        "last_name": "Reyes",
        "date_of_birth": "1992-05-17",
        "gender": "Other",
        "email": "sam@example.com",
    }
    data.update(over)
    return data


def test_registration_valid_payload(db):
    assert validate(_registration_payload(), registration_rules(db)) == {}


def test_registration_reports_missing_email_together_with_other_violations(db):
    payload = _registration_payload(age="thirty", phonenumber="0" * 25)
    del payload["email"]
    errors = validate(payload, registration_rules(db))
    assert errors["email"] == ["The email field is required."]
    assert "age" in errors
    assert "phonenumber" in errors


def test_registration_uniqueness_across_users(db, make_owner):
    make_owner(email="ana@example.com", phonenumber="09171234567", address="12 Ocean Drive")
    errors = validate(_registration_payload(), registration_rules(db))
    assert errors["email"] == ["The email has already been taken."]
    assert errors["phonenumber"] == ["The phonenumber has already been taken."]
    assert errors["address"] == ["The address has already been taken."]


def test_registration_email_must_be_lowercase(db):
    errors = validate(_registration_payload(email="Ana@Example.com"), registration_rules(db))
    assert errors["email"] == ["The email field must be lowercase."]


def test_registration_password_confirmation_and_policy(db):
    errors = validate(_registration_payload(password="short", password_confirmation="shorter"), registration_rules(db))
    assert len(errors["password"]) == 2


def test_employee_context_excludes_own_record(db, make_owner, make_employee):
    owner = make_owner()
    emp = make_employee(owner, email="sam@example.com")
    rules = profile_update_rules(db, EmployeeContext(emp))
    assert validate(_profile_payload(email="sam@example.com"), rules) == {}


def test_employee_context_rejects_another_employees_email(db, make_owner, make_employee):
    owner = make_owner()
    emp = make_employee(owner, email="sam@example.com")
    make_employee(owner, email="taken@example.com")
    rules = profile_update_rules(db, EmployeeContext(emp))
    errors = validate(_profile_payload(email="taken@example.com"), rules)
    assert errors == {"email": ["The email has already been taken."]}


def test_employee_context_ignores_users_table(db, make_owner, make_employee):
    owner = make_owner(email="owner@example.com")
    emp = make_employee(owner)
    rules = profile_update_rules(db, EmployeeContext(emp))
    assert validate(_profile_payload(email="owner@example.com"), rules) == {}


def test_owner_context_excludes_own_user_id(db, make_owner):
    owner = make_owner(email="olivia@example.com")
    make_owner(email="someone@example.com")
    rules = profile_update_rules(db, OwnerContext(owner))
    assert validate(_profile_payload(email="olivia@example.com"), rules) == {}
    assert "email" in validate(_profile_payload(email="someone@example.com"), rules)


def test_anonymous_context_checks_uniqueness_unscoped(db, make_owner):
    make_owner(email="olivia@example.com")
    rules = profile_update_rules(db, AnonymousContext())
    assert validate(_profile_payload(email="olivia@example.com"), rules) == {
        "email": ["The email has already been taken."]
    }


def test_profile_fields(db):
    rules = profile_update_rules(db, AnonymousContext())
    errors = validate({"gender": "Unknown", "date_of_birth": "not-a-date"}, rules)
    assert set(errors) == {"first_name", "last_name", "date_of_birth", "gender", "email"}
    assert "middle_name" not in errors


def test_resolve_auth_context_owner_wins_over_employee(db, make_owner, make_employee):
    owner = make_owner()
    emp = make_employee(owner)
    ctx = resolve_auth_context(db, {"user_id": owner.id, "employee_id": emp.employee_id})
    assert isinstance(ctx, OwnerContext)
    assert ctx.user.id == owner.id


def test_resolve_auth_context_employee_only(db, make_owner, make_employee):
    owner = make_owner()
    emp = make_employee(owner)
    ctx = resolve_auth_context(db, {"employee_id": emp.employee_id})
    assert isinstance(ctx, EmployeeContext)
    assert ctx.employee.employee_id == emp.employee_id


def test_resolve_auth_context_anonymous(db):
    assert isinstance(resolve_auth_context(db, {}), AnonymousContext)
    assert isinstance(resolve_auth_context(db, {"user_id": 987654}), AnonymousContext)


@pytest.mark.parametrize("field", ["name", "gender", "address", "restaurant_name", "restaurant_address"])
def test_registration_text_fields_are_capped_at_255(db, field):
    errors = validate(_registration_payload(**{field: "x" * 256}), registration_rules(db))
    assert errors == {field: [f"The {field.replace('_', ' ')} field must not be greater than 255 characters."]}
    assert validate(_registration_payload(**{field: "x" * 255}), registration_rules(db)) == {}


def test_registration_non_string_values_are_reported_not_queried(db):
    errors = validate(
        _registration_payload(email=["ana@example.com"], address={"street": "x"}, phonenumber=7),
        registration_rules(db),
    )
    assert errors == {
        "email": ["The email field must be a string."],
        "address": ["The address field must be a string."],
        "phonenumber": ["The phonenumber field must be a string."],
    }


def test_profile_date_of_birth_rejects_trailing_text(db):
    rules = profile_update_rules(db, AnonymousContext())
    errors = validate(_profile_payload(date_of_birth="1992-05-17garbage"), rules)
    assert errors == {"date_of_birth": ["The date of birth field must be a valid date."]}
    assert validate(_profile_payload(date_of_birth="1992-05-17T08:30:00"), rules) == {}
