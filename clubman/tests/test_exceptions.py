"""Tests for Clubman exceptions."""

from clubman.exceptions import ClubmanError, ErrorKind


class TestClubmanError:
    def test_default_message(self):
        error = ClubmanError("REWARD_ALREADY_REDEEMED")

        assert error.message == "Este premio ya fue entregado"
        assert error.kind == ErrorKind.CONFLICT

    def test_code_is_positional_only(self):
        error = ClubmanError("REDEMPTION_NOT_FOUND", code="NOPE1234")

        assert error.code == "REDEMPTION_NOT_FOUND"
        assert error.data == {"code": "NOPE1234"}
        assert error.kind == ErrorKind.NOT_FOUND

    def test_unlisted_code_is_policy(self):
        assert ClubmanError("VISIT_COOLDOWN").kind == ErrorKind.POLICY

    def test_as_dict(self):
        error = ClubmanError("CUSTOMER_NOT_FOUND", customer_id=7)

        assert error.as_dict() == {
            "code": "CUSTOMER_NOT_FOUND",
            "message": "Cliente no encontrado",
            "data": {"customer_id": 7},
            "kind": "not_found",
        }
