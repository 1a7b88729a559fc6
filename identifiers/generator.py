# identifiers/generator.py
"""
Identifier generation.

Configurable identifiers look like::

    PREFIX SEQ [-RAND [-CHECKSUM]]      e.g. R0042-517-19

    PREFIX    1-3 letters from the field configuration
    SEQ       sequence number zero padded to `sequence_length`; numbers
              wider than the padding are written in full
    RAND      optional 3 random digits (100-999) so the next identifier
              cannot be guessed
    CHECKSUM  optional sum of the digits of SEQ + RAND

The order-id variant keeps its historical fixed layout::

    R SEQ(5) RAND(4) -L                 e.g. R000420517-9

    L is the number of characters in SEQ + RAND.
"""
from __future__ import annotations

import random
import re
from dataclasses import dataclass
from typing import Optional

from .checksum import sum_digits
from .config import ORDER_ID_PREFIX, ORDER_ID_SEQUENCE_LENGTH, IdentifierConfig

RANDOM_DIGITS_MIN = 100
RANDOM_DIGITS_MAX = 999

ORDER_ID_RANDOM_MIN = 1
ORDER_ID_RANDOM_MAX = 999
ORDER_ID_RANDOM_WIDTH = 4


@dataclass(frozen=True)
class IdentifierValue:
    """
    An identifier string and the sequence number behind it.
    `seq` is None for values submitted from outside.
    """
    value: str
    seq: Optional[int] = None


def zero_pad(number: int, width: int) -> str:
    return str(number).zfill(width)


def next_seq(current_max_seq: Optional[int]) -> int:
    if current_max_seq is None:
        return 1
    return int(current_max_seq) + 1


def format_order_id(seq: int, rand: int) -> str:
    digits = zero_pad(seq, ORDER_ID_SEQUENCE_LENGTH) + zero_pad(rand, ORDER_ID_RANDOM_WIDTH)
    return f"{ORDER_ID_PREFIX}{digits}-{len(digits)}"


def generate(config: IdentifierConfig, current_max_seq: Optional[int], rng=None) -> IdentifierValue:
    """
    Build the next candidate identifier after `current_max_seq`.

    `rng` is anything with a `randint(a, b)` method; defaults to the
    `random` module. Collisions in the random part are left to the
    uniqueness check.
    """
    rng = rng or random
    seq = next_seq(current_max_seq)

    if config.is_order_id:
        rand = rng.randint(ORDER_ID_RANDOM_MIN, ORDER_ID_RANDOM_MAX)
        return IdentifierValue(value=format_order_id(seq, rand), seq=seq)

    seq_str = zero_pad(seq, config.sequence_length)
    identifier = f"{config.prefix}{seq_str}"

    if config.enable_random_digits:
        rand = rng.randint(RANDOM_DIGITS_MIN, RANDOM_DIGITS_MAX)
        identifier = f"{identifier}-{rand}"
        if config.uses_checksum:
            identifier = f"{identifier}-{sum_digits(f'{seq_str}{rand}')}"

    return IdentifierValue(value=identifier, seq=seq)


def recover_seq(value: Optional[str], config: IdentifierConfig) -> Optional[int]:
    """
    Parse the sequence number back out of a stored identifier.

    Only for rows written before the seq column existed; steady-state
    code reads the seq column instead.
    """
    if not value:
        return None

    if config.is_order_id:
        pattern = rf"^{ORDER_ID_PREFIX}(\d{{{ORDER_ID_SEQUENCE_LENGTH}}})"
    else:
        pattern = rf"^{re.escape(config.prefix)}(\d+)"

    match = re.match(pattern, value.strip(), re.IGNORECASE)
    if match is None:
        return None
    return int(match.group(1))
