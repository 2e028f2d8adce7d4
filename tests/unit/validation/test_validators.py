"""Tests for answer validators and their registry."""

import pytest

from chatflow.validation import ValidatorRegistry, validate


class TestBuiltinValidators:
    @pytest.mark.parametrize("value", ["ana@example.com", "a.b+c@mail.co.uk"])
    def test_valid_emails(self, value):
        assert validate("email", value) is True

    @pytest.mark.parametrize("value", ["ana", "ana@", "ana@example", "a na@example.com", ""])
    def test_invalid_emails(self, value):
        assert validate("email", value) is False

    @pytest.mark.parametrize("value", ["(11) 91234-5678", "+55 11 91234 5678", "1123456789"])
    def test_valid_phones(self, value):
        assert validate("phone", value) is True

    @pytest.mark.parametrize("value", ["12345", "1234567890123456", "telefone"])
    def test_invalid_phones(self, value):
        assert validate("phone", value) is False

    @pytest.mark.parametrize("value", ["42", "3.14", " -7 ", "1e3", ".5", "+2"])
    def test_valid_numbers(self, value):
        assert validate("number", value) is True

    @pytest.mark.parametrize(
        "value", ["abc", "", "nan", "inf", "-Infinity", "1,5", "1_000", "0x1f", "1e999"]
    )
    def test_invalid_numbers(self, value):
        assert validate("number", value) is False

    def test_text_accepts_anything(self):
        assert validate("text", "") is True


class TestValidatorRegistry:
    def test_builtins_are_registered(self):
        assert {"email", "phone", "number", "text"} <= set(ValidatorRegistry.list_validators())

    def test_missing_kind_accepts_anything(self):
        assert validate(None, "whatever") is True
        assert validate("", "whatever") is True

    def test_unknown_kind_accepts_anything(self):
        assert validate("cpf", "not a cpf") is True

    def test_get_unknown_raises(self):
        with pytest.raises(ValueError, match="not registered"):
            ValidatorRegistry.get("does-not-exist")

    def test_register_custom_validator(self):
        """
        GIVEN a custom "cep" validator
        WHEN question answers are validated with kind "cep"
        THEN the custom rule applies
        """

        @ValidatorRegistry.register("cep")
        def validate_cep(value: str) -> bool:
            return len("".join(ch for ch in value if ch.isdigit())) == 8

        try:
            assert ValidatorRegistry.is_registered("cep")
            assert validate("cep", "01310-100") is True
            assert validate("cep", "0131") is False
        finally:
            ValidatorRegistry.unregister("cep")

        assert not ValidatorRegistry.is_registered("cep")
