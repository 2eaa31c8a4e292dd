import uuid
from datetime import timedelta

import pytest

from handygo.api.exceptions import (
    AuthenticationError,
    ConflictError,
    DomainPolicyError,
    NotFoundError,
    ValidationError,
)
from handygo.database.config.config import settings
from handygo.database.core import funcs
from handygo.database.entities.user import User
from handygo.registries import verification_registry
from handygo.registries.sessions import utcnow
from tests.conftest import TEST_PASSWORD


def _register(username="alice", email="alice@aalto.fi", password="hunter22", code=None):
    return funcs.register_user(username=username, email=email, password=password, verification_code=code)


# -----------------------
# Verification codes
# -----------------------

def test_send_code_in_dev_mode_echoes_code():
    result = funcs.send_verification_code(email="Alice@Aalto.fi")

    assert result["devMode"] is True
    assert result["message"] == "Verification code sent (dev mode - no email service configured)"
    assert len(result["code"]) == 6


def test_send_code_with_relay_queues_email(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.org")
    sent = []
    monkeypatch.setattr(
        funcs.email_service, "deliver_verification_code", lambda email, code, minutes: sent.append((email, code, minutes))
    )

    result = funcs.send_verification_code(email="alice@aalto.fi")

    assert result == {"message": "Verification code sent to your email"}
    assert sent and sent[0][0] == "alice@aalto.fi"
    assert sent[0][2] == 5


@pytest.mark.parametrize("email, error", [
    (None, ValidationError),
    ("", ValidationError),
    ("not-an-email", ValidationError),
    ("alice@gmail.com", DomainPolicyError),
])
def test_send_code_rejects_bad_addresses(email, error):
    with pytest.raises(error):
        funcs.send_verification_code(email=email)


def test_domain_policy_message():
    with pytest.raises(DomainPolicyError) as exc:
        funcs.send_verification_code(email="bob@gmail.com")

    assert exc.value.message == "Please use an Aalto email address (@aalto.fi)"


def test_check_code_outcomes(monkeypatch):
    code = funcs.send_verification_code(email="alice@aalto.fi")["code"]

    with pytest.raises(AuthenticationError) as exc:
        funcs.check_verification_code(email="alice@aalto.fi", code="000000" if code != "000000" else "111111")
    assert exc.value.message == "Invalid verification code"

    assert funcs.check_verification_code(email="alice@aalto.fi", code=code) == {"message": "Verification code is valid"}

    with pytest.raises(AuthenticationError) as exc:
        funcs.check_verification_code(email="alice@aalto.fi", code=code)
    assert exc.value.message == "No verification code found for this email"


def test_check_code_expired(monkeypatch):
    code = funcs.send_verification_code(email="alice@aalto.fi")["code"]
    later = utcnow() + timedelta(minutes=6)
    monkeypatch.setattr(verification_registry, "clock", lambda: later)

    with pytest.raises(AuthenticationError) as exc:
        funcs.check_verification_code(email="alice@aalto.fi", code=code)
    assert exc.value.message == "Verification code has expired"


def test_check_code_requires_both_fields():
    with pytest.raises(ValidationError):
        funcs.check_verification_code(email="alice@aalto.fi", code=None)


# -----------------------
# Registration
# -----------------------

def test_register_with_code(db):
    code = funcs.send_verification_code(email="alice@aalto.fi")["code"]

    result = _register(code=code)

    assert result["message"] == "User registered successfully"
    user = result["user"]
    assert user["username"] == "alice"
    assert user["email"] == "alice@aalto.fi"
    assert "password_hash" not in user
    assert "password" not in user
    with db() as session:
        stored = session.get(User, uuid.UUID(user["id"]))
        assert stored.password_hash != "hunter22"


def test_register_consumes_code():
    code = funcs.send_verification_code(email="alice@aalto.fi")["code"]
    _register(code=code)

    with pytest.raises(AuthenticationError):
        funcs.check_verification_code(email="alice@aalto.fi", code=code)


def test_register_with_wrong_code():
    funcs.send_verification_code(email="alice@aalto.fi")

    with pytest.raises(AuthenticationError) as exc:
        _register(code="abcdef")
    assert exc.value.message == "Invalid or expired verification code"


def test_register_without_code_is_allowed_by_default():
    assert _register()["user"]["username"] == "alice"


def test_register_without_code_discards_pending_code():
    code = funcs.send_verification_code(email="alice@aalto.fi")["code"]
    _register()

    with pytest.raises(AuthenticationError) as exc:
        funcs.check_verification_code(email="alice@aalto.fi", code=code)
    assert exc.value.message == "No verification code found for this email"


def test_register_rejects_password_bcrypt_cannot_hash():
    code = funcs.send_verification_code(email="alice@aalto.fi")["code"]

    with pytest.raises(ValidationError) as exc:
        _register(password="x" * 73, code=code)
    assert exc.value.message == "Password must be at most 72 bytes long"

    # multi-byte characters count by their UTF-8 length
    with pytest.raises(ValidationError):
        _register(password="\u00e9" * 37, code=code)

    # the code survives the rejected attempts
    assert _register(password="x" * 72, code=code)["user"]["username"] == "alice"


def test_code_survives_a_lost_insert_race(make_user, monkeypatch):
    make_user("alice")
    code = funcs.send_verification_code(email="alice@aalto.fi")["code"]
    # a concurrent registration committed between the duplicate check and the insert
    monkeypatch.setattr(funcs.UserDao, "fetchUserByEmail", lambda self, session, email: [])

    with pytest.raises(ConflictError) as exc:
        _register(username="alice2", code=code)
    assert exc.value.message == "An account with this email already exists. Please log in instead."

    assert funcs.check_verification_code(email="alice@aalto.fi", code=code)["message"] == "Verification code is valid"


def test_rejected_code_rolls_back_the_insert():
    funcs.send_verification_code(email="alice@aalto.fi")

    with pytest.raises(AuthenticationError):
        _register(code="abcdef")

    assert _register()["user"]["email"] == "alice@aalto.fi"


def test_register_without_code_when_required(monkeypatch):
    monkeypatch.setattr(settings, "REQUIRE_VERIFICATION_CODE", True)

    with pytest.raises(ValidationError):
        _register()


def test_duplicate_email_is_reported_before_code_is_checked(make_user):
    make_user("alice")
    code = funcs.send_verification_code(email="alice@aalto.fi")["code"]

    with pytest.raises(ConflictError) as exc:
        _register(username="alice2", email="ALICE@aalto.fi", code=code)
    assert exc.value.message == "An account with this email already exists. Please log in instead."

    # the code was not burned
    assert funcs.check_verification_code(email="alice@aalto.fi", code=code)["message"] == "Verification code is valid"


def test_duplicate_username_is_case_insensitive(make_user):
    make_user("Alice", email="first@aalto.fi")

    with pytest.raises(ConflictError) as exc:
        _register(username="alice", email="second@aalto.fi")
    assert exc.value.message == "Username is already taken"


@pytest.mark.parametrize("username, email, password", [
    (None, "alice@aalto.fi", "pw"),
    ("   ", "alice@aalto.fi", "pw"),
    ("alice", None, "pw"),
    ("alice", "alice@aalto.fi", None),
])
def test_register_requires_fields(username, email, password):
    with pytest.raises(ValidationError) as exc:
        funcs.register_user(username=username, email=email, password=password)
    assert exc.value.message == "Username, email and password are required"


def test_register_rejects_foreign_domain():
    with pytest.raises(DomainPolicyError):
        _register(email="alice@gmail.com")


# -----------------------
# Login
# -----------------------

def test_login_by_email_and_username(make_user):
    make_user("bob")

    by_email = funcs.login_user(password=TEST_PASSWORD, email="bob@aalto.fi")
    by_username = funcs.login_user(password=TEST_PASSWORD, username="BOB")

    assert by_email["username"] == by_username["username"] == "bob"
    assert "password_hash" not in by_email


def test_login_email_is_case_insensitive(make_user):
    make_user("bob")

    assert funcs.login_user(password=TEST_PASSWORD, email=" Bob@Aalto.fi ")["username"] == "bob"


def test_login_failures_share_one_message(make_user):
    make_user("bob")

    with pytest.raises(AuthenticationError) as wrong_password:
        funcs.login_user(password="nope", email="bob@aalto.fi")
    with pytest.raises(AuthenticationError) as unknown_user:
        funcs.login_user(password=TEST_PASSWORD, email="ghost@aalto.fi")

    assert wrong_password.value.message == unknown_user.value.message == "Invalid email/username or password"


def test_login_with_overlong_password_is_a_plain_failure(make_user):
    make_user("bob")

    with pytest.raises(AuthenticationError) as exc:
        funcs.login_user(password="x" * 100, email="bob@aalto.fi")
    assert exc.value.message == "Invalid email/username or password"


def test_login_requires_identifier_and_password():
    with pytest.raises(ValidationError):
        funcs.login_user(password="pw")
    with pytest.raises(ValidationError):
        funcs.login_user(password=None, email="bob@aalto.fi")


# -----------------------
# Profiles
# -----------------------

def test_get_user_profile(make_user):
    user_id = make_user("carol", name="Carol")

    profile = funcs.get_user_profile(user_id=str(user_id))

    assert profile["name"] == "Carol"
    assert "password_hash" not in profile


def test_get_unknown_user_profile():
    with pytest.raises(NotFoundError):
        funcs.get_user_profile(user_id=str(uuid.uuid4()))


def test_get_profile_with_malformed_id():
    with pytest.raises(ValidationError):
        funcs.get_user_profile(user_id="not-a-uuid")


def test_sparse_profile_update(make_user):
    user_id = make_user("carol", name="Carol", bio="Cyclist", phone="123")

    updated = funcs.update_profile(user_id=user_id, fields={"bio": "", "address": "Otaniemi"})

    assert updated["bio"] == ""
    assert updated["address"] == "Otaniemi"
    assert updated["name"] == "Carol"
    assert updated["phone"] == "123"


def test_profile_update_rejects_credentials(make_user):
    user_id = make_user("carol")

    with pytest.raises(ValidationError):
        funcs.update_profile(user_id=user_id, fields={"email": "x@aalto.fi"})
    with pytest.raises(ValidationError):
        funcs.update_profile(user_id=user_id, fields={"password": "x"})


def test_profile_update_username_conflict(make_user):
    make_user("dave")
    user_id = make_user("carol")

    with pytest.raises(ConflictError):
        funcs.update_profile(user_id=user_id, fields={"username": "DAVE"})


def test_profile_update_can_change_case_of_own_username(make_user):
    user_id = make_user("carol")

    assert funcs.update_profile(user_id=user_id, fields={"username": "Carol"})["username"] == "Carol"


def test_profile_update_unknown_user():
    with pytest.raises(NotFoundError):
        funcs.update_profile(user_id=uuid.uuid4(), fields={"bio": "hi"})
