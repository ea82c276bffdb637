import secrets

CODE_LENGTH = 6

_LOWEST_CODE = 10 ** (CODE_LENGTH - 1)
_CODE_SPAN = 9 * _LOWEST_CODE


def generate_code() -> str:
    """Generate a 6-digit verification code, uniform over 100000-999999."""
    return str(_LOWEST_CODE + secrets.randbelow(_CODE_SPAN))
