"""Built-in format validators for Brazilian documents and contact data.

Every validator takes the raw submitted value and the field's required flag.
A field that is not required always passes; callers decide whether an
optional value is checked at all.
"""

import re
from collections.abc import Callable, Iterable

from crudgen.models.enums import ValidatorKind

_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_CEP_RE = re.compile(r"[0-9]{8}")
_PHONE_RE = re.compile(r"[0-9]{10,11}")

_CNPJ_WEIGHTS_1 = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_CNPJ_WEIGHTS_2 = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)


def just_digits(value: str) -> str:
    """Keep only ASCII digits."""
    return "".join(ch for ch in value if "0" <= ch <= "9")


def _all_same_digit(digits: str) -> bool:
    return len(set(digits)) <= 1


def _check_digit(digits: str, weights: Iterable[int]) -> str:
    total = sum(int(d) * w for d, w in zip(digits, weights))
    rem = total % 11
    return "0" if rem < 2 else str(11 - rem)


def cpf_check_digits(base: str) -> str:
    """Return the two check digits for the first nine digits of a CPF."""
    d1 = _check_digit(base[:9], range(10, 1, -1))
    d2 = _check_digit(base[:9] + d1, range(11, 1, -1))
    return d1 + d2


def cnpj_check_digits(base: str) -> str:
    """Return the two check digits for the first twelve digits of a CNPJ."""
    d1 = _check_digit(base[:12], _CNPJ_WEIGHTS_1)
    d2 = _check_digit(base[:12] + d1, _CNPJ_WEIGHTS_2)
    return d1 + d2


def is_valid_cpf(value: str, required: bool) -> bool:
    if not required:
        return True
    digits = just_digits(value)
    if len(digits) != 11 or _all_same_digit(digits):
        return False
    return digits[9:] == cpf_check_digits(digits)


def is_valid_cnpj(value: str, required: bool) -> bool:
    if not required:
        return True
    digits = just_digits(value)
    if len(digits) != 14 or _all_same_digit(digits):
        return False
    return digits[12:] == cnpj_check_digits(digits)


def is_valid_email(value: str, required: bool) -> bool:
    # Deliberately loose; RFC 5322 is not attempted.
    if not required:
        return True
    return _EMAIL_RE.fullmatch(value) is not None


def is_valid_cep(value: str, required: bool) -> bool:
    """Eight digits, no separators."""
    if not required:
        return True
    return _CEP_RE.fullmatch(value) is not None


def is_valid_phone(value: str, required: bool) -> bool:
    """Ten or eleven digits (with area code), no separators."""
    if not required:
        return True
    return _PHONE_RE.fullmatch(value) is not None


FormatCheck = Callable[[str, bool], bool]

# Validator and the message shown when it rejects a value.
FORMAT_CHECKS: dict[ValidatorKind, tuple[FormatCheck, str]] = {
    ValidatorKind.CPF: (is_valid_cpf, "CPF inválido"),
    ValidatorKind.CNPJ: (is_valid_cnpj, "CNPJ inválido"),
    ValidatorKind.EMAIL: (is_valid_email, "Email inválido"),
    ValidatorKind.CEP: (is_valid_cep, "CEP inválido"),
    ValidatorKind.TELEFONE: (is_valid_phone, "Telefone inválido"),
}
