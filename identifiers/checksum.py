# identifiers/checksum.py


def sum_digits(value: str) -> int:
    """
    Sum every ASCII digit in `value`; anything else is ignored.

        sum_digits("0123")   -> 6
        sum_digits("R12-34") -> 10
    """
    return sum(int(ch) for ch in value if "0" <= ch <= "9")
