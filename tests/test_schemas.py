"""
Tests for request schemas and their localized validation messages.
"""
from datetime import datetime

import pytest
from pydantic import TypeAdapter, ValidationError

from errors import INVALID_INPUT, first_error_message
from schemas import BudgetBatch, BudgetIn, LoginRequest, SignupRequest, TransactionIn


def first_message(model, data):
    with pytest.raises(ValidationError) as exc_info:
        model.model_validate(data)
    return first_error_message(exc_info.value.errors())


class TestLoginRequest:
    """Tests for login payloads."""

    def test_valid_login(self):
        login = LoginRequest(username="testuser", password="password123")
        assert login.username == "testuser"

    def test_empty_username_rejected(self):
        msg = first_message(LoginRequest, {"username": "", "password": "password123"})
        assert msg == "Nazwa użytkownika jest wymagana"

    def test_empty_password_rejected(self):
        msg = first_message(LoginRequest, {"username": "testuser", "password": ""})
        assert msg == "Hasło jest wymagane"

    def test_missing_field_gets_generic_message(self):
        assert first_message(LoginRequest, {"username": "testuser"}) == INVALID_INPUT


class TestSignupRequest:
    """Tests for signup payloads."""

    def test_valid_signup_normalizes_email(self):
        signup = SignupRequest(email="  Test@Poczta.PL ", username=" testuser ", password="password123")
        assert signup.email == "test@poczta.pl"
        assert signup.username == "testuser"

    def test_invalid_email(self):
        msg = first_message(SignupRequest, {"email": "invalid-email", "username": "testuser", "password": "password123"})
        assert msg == "Nieprawidłowy adres email"

    def test_short_username(self):
        msg = first_message(SignupRequest, {"email": "test@poczta.pl", "username": "ab", "password": "password123"})
        assert msg == "Nazwa użytkownika musi mieć co najmniej 3 znaki"

    def test_short_password(self):
        msg = first_message(SignupRequest, {"email": "test@poczta.pl", "username": "testuser", "password": "12345"})
        assert msg == "Hasło musi mieć co najmniej 6 znaków"


class TestTransactionIn:
    """Tests for transaction payloads."""

    valid = {
        "type": "expense",
        "amount": 100.50,
        "category": "Jedzenie i napoje",
        "description": "Zakupy spożywcze",
        "date": "2024-01-15",
    }

    def test_valid_transaction(self):
        tx = TransactionIn(**self.valid)
        assert tx.date == datetime(2024, 1, 15)
        assert tx.amount == 100.50

    def test_negative_amount(self):
        assert first_message(TransactionIn, {**self.valid, "amount": -50}) == "Kwota musi być większa od 0"

    def test_zero_amount(self):
        assert first_message(TransactionIn, {**self.valid, "amount": 0}) == "Kwota musi być większa od 0"

    @pytest.mark.parametrize("amount", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_amount(self, amount):
        assert first_message(TransactionIn, {**self.valid, "amount": amount}) == "Kwota musi być większa od 0"

    def test_unknown_category(self):
        assert first_message(TransactionIn, {**self.valid, "category": "Podróże"}) == "Nieprawidłowa kategoria"

    def test_unknown_type(self):
        assert first_message(TransactionIn, {**self.valid, "type": "transfer"}) == "Nieprawidłowy typ transakcji"

    def test_blank_description(self):
        assert first_message(TransactionIn, {**self.valid, "description": "   "}) == "Opis jest wymagany"

    def test_unparseable_date(self):
        assert first_message(TransactionIn, {**self.valid, "date": "15/01/2024"}) == "Nieprawidłowa data"

    def test_utc_datetime_stored_naive(self):
        tx = TransactionIn(**{**self.valid, "date": "2024-01-15T23:30:00+02:00"})
        assert tx.date == datetime(2024, 1, 15, 21, 30)
        assert tx.date.tzinfo is None

    def test_zulu_suffix_accepted(self):
        tx = TransactionIn(**{**self.valid, "date": "2024-01-15T10:00:00.000Z"})
        assert tx.date == datetime(2024, 1, 15, 10, 0)


class TestBudgetIn:
    """Tests for budget payloads."""

    def test_valid_budget(self):
        budget = BudgetIn(category="Transport", amount=500, month="2024-01")
        assert budget.month == "2024-01"

    def test_zero_amount_allowed(self):
        assert BudgetIn(category="Transport", amount=0, month="2024-01").amount == 0

    def test_negative_amount(self):
        msg = first_message(BudgetIn, {"category": "Transport", "amount": -1, "month": "2024-01"})
        assert msg == "Kwota nie może być ujemna"

    @pytest.mark.parametrize("amount", [float("inf"), float("nan")])
    def test_non_finite_amount(self, amount):
        msg = first_message(BudgetIn, {"category": "Transport", "amount": amount, "month": "2024-01"})
        assert msg == "Kwota nie może być ujemna"

    @pytest.mark.parametrize("month", ["2024-1", "24-01", "2024-13", "2024/01"])
    def test_invalid_month_format(self, month):
        msg = first_message(BudgetIn, {"category": "Transport", "amount": 500, "month": month})
        assert msg == "Format miesiąca musi być YYYY-MM"

    def test_batch_reports_first_invalid_entry(self):
        batch = [
            {"category": "Transport", "amount": 500, "month": "2024-01"},
            {"category": "Nieznana", "amount": 500, "month": "2024-01"},
        ]
        with pytest.raises(ValidationError) as exc_info:
            TypeAdapter(BudgetBatch).validate_python(batch)
        assert first_error_message(exc_info.value.errors()) == "Nieprawidłowa kategoria"
