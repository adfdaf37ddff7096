from types import SimpleNamespace

from django.db import IntegrityError

from src.api.exception_handler import CONSTRAINT_ERRORS, constraint_name


class DriverError(Exception):
    def __init__(self, constraint):
        super().__init__("duplicate key value violates unique constraint")
        self.diag = SimpleNamespace(constraint_name=constraint)


def test_constraint_name_prefers_driver_diagnostics():
    exc = IntegrityError("duplicate key value")
    exc.__cause__ = DriverError("card_instance_single_current")
    assert constraint_name(exc) == "card_instance_single_current"


def test_constraint_name_falls_back_to_message_when_driver_has_none():
    exc = IntegrityError("CHECK constraint failed: card_issuance_one_recipient")
    exc.__cause__ = DriverError(None)
    assert constraint_name(exc) == "card_issuance_one_recipient"
    assert CONSTRAINT_ERRORS["card_issuance_one_recipient"][1] == "INVALID_RECIPIENT"


def test_unknown_constraint_yields_empty_name():
    assert constraint_name(IntegrityError("something else")) == ""
