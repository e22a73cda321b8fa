import random

import pytest

from crudgen.core.validators import (
    FORMAT_CHECKS,
    cpf_check_digits,
    is_valid_cep,
    is_valid_cnpj,
    is_valid_cpf,
    is_valid_email,
    is_valid_phone,
    just_digits,
)
from crudgen.models.enums import ValidatorKind

from conftest import VALID_CNPJ, VALID_CPF


def test_just_digits():
    assert just_digits("529.982.247-25") == VALID_CPF
    assert just_digits("abc") == ""


@pytest.mark.parametrize("value", [VALID_CPF, "529.982.247-25"])
def test_cpf_valid(value):
    assert is_valid_cpf(value, True)


@pytest.mark.parametrize("value", [
    "11111111111",        # same digit repeated
    "00000000000",
    "52998224724",        # wrong second check digit
    "52998224735",        # wrong first check digit
    "5299822472",         # too short
    "529982247250",       # too long
    "",
])
def test_cpf_invalid(value):
    assert not is_valid_cpf(value, True)


def test_cpf_not_required_always_passes():
    assert is_valid_cpf("11111111111", False)
    assert is_valid_cpf("garbage", False)


def _random_cpfs(count, seed=20240131):
    rng = random.Random(seed)
    while count:
        base = "".join(str(rng.randint(0, 9)) for _ in range(9))
        digits = cpf_check_digits(base)
        # A zero first check digit can absorb a change in the first base
        # digit (remainders 0 and 1 both give '0'), so those are skipped.
        if digits[0] == "0" or len(set(base)) == 1:
            continue
        count -= 1
        yield base + digits


def test_cpf_single_digit_corruption_detected():
    for cpf in _random_cpfs(200):
        assert is_valid_cpf(cpf, True), cpf
        for pos in range(11):
            for d in "0123456789":
                if d == cpf[pos]:
                    continue
                corrupted = cpf[:pos] + d + cpf[pos + 1:]
                assert not is_valid_cpf(corrupted, True), (cpf, corrupted)


@pytest.mark.parametrize("value", [VALID_CNPJ, "11.222.333/0001-81"])
def test_cnpj_valid(value):
    assert is_valid_cnpj(value, True)


@pytest.mark.parametrize("value", [
    "11111111111111",
    "11222333000182",
    "11222333000191",
    "1122233300018",
    "",
])
def test_cnpj_invalid(value):
    assert not is_valid_cnpj(value, True)


@pytest.mark.parametrize("value,expected", [
    ("ana@example.com", True),
    ("ana.silva+news@mail.example.com.br", True),
    ("ana@example", False),
    ("ana@example.c", False),
    ("@example.com", False),
    ("ana example@x.com", False),
    ("ana@example.com\n", False),
])
def test_email(value, expected):
    assert is_valid_email(value, True) is expected


@pytest.mark.parametrize("value,expected", [
    ("01310100", True),
    ("01310-100", False),
    ("0131010", False),
    ("013101000", False),
])
def test_cep(value, expected):
    assert is_valid_cep(value, True) is expected


@pytest.mark.parametrize("value,expected", [
    ("1133334444", True),
    ("11987654321", True),
    ("(11) 98765-4321", False),
    ("119876543", False),
    ("119876543210", False),
])
def test_phone(value, expected):
    assert is_valid_phone(value, True) is expected


def test_optional_always_passes():
    for check, _ in FORMAT_CHECKS.values():
        assert check("not valid at all", False)


def test_format_checks_cover_every_kind():
    assert set(FORMAT_CHECKS) == set(ValidatorKind) - {ValidatorKind.NONE}
