import re

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_DIGITS = re.compile(r"\D")
_CPF_LAYOUT = re.compile(r"(\d{3})(\d{3})(\d{3})(\d{2})")

CPF_LENGTH = 11
MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email.strip()) is not None


def clean_cpf(cpf: str) -> str:
    """Keep only the digits of a CPF."""
    return _NON_DIGITS.sub("", cpf or "")


def format_cpf(cpf: str) -> str:
    """000.000.000-00 layout; expects 11 digits (other input is returned cleaned)."""
    return _CPF_LAYOUT.sub(r"\1.\2.\3-\4", clean_cpf(cpf))


def _check_digit(digits: str) -> int:
    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    remainder = 11 - (total % 11)
    return 0 if remainder >= 10 else remainder


def is_valid_cpf(cpf: str) -> bool:
    """Length, repeated-digit and both check-digit validation of a CPF."""
    digits = clean_cpf(cpf)
    if len(digits) != CPF_LENGTH:
        return False
    if digits == digits[0] * CPF_LENGTH:
        return False
    first = _check_digit(digits[:9])
    second = _check_digit(digits[:10])
    return first == int(digits[9]) and second == int(digits[10])
