"""
Identity Commitments
====================

Binds private identity attributes to a public, fixed-width commitment.

The commitment is a SHA-256 digest over a domain-separated encoding of all
four attributes, reduced into the BN254 scalar field so a circuit can take
it as a single public input. It is rendered as 64 lowercase hex chars.

Version: 1.0.0
"""

import hashlib
import string
from datetime import UTC, date, datetime
from typing import Any

from shared.errors import InvalidAttributesError
from shared.zk.models import AttributeSet


# BN254 scalar field order
FIELD_ORDER = 21888242871839275222246405745257275088548364400416034343698204186575808495617

MIN_BIRTH_YEAR = 1900
MAX_SECRET_LENGTH = 256
COMMITMENT_HEX_LENGTH = 64

_DOMAIN_TAG = b"ageproof/identity-commitment/v1"
_HEX_DIGITS = frozenset(string.hexdigits)


def _require_int(name: str, value: Any, low: int, high: int) -> int:
    # bool is an int subclass; a birth field of True is malformed input
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAttributesError(f"{name} must be an integer", field=name)
    if not low <= value <= high:
        raise InvalidAttributesError(f"{name} must be between {low} and {high}", field=name)
    return value


def validate_attributes(attributes: AttributeSet, today: date | None = None) -> None:
    """
    Check every attribute against its declared range.

    Raises:
        InvalidAttributesError: naming the first offending field
    """
    today = today or datetime.now(UTC).date()

    _require_int("birth_year", attributes.birth_year, MIN_BIRTH_YEAR, today.year)
    _require_int("birth_month", attributes.birth_month, 1, 12)
    _require_int("birth_day", attributes.birth_day, 1, 31)

    secret = attributes.identity_secret
    if not isinstance(secret, str) or not secret:
        raise InvalidAttributesError("identity_secret must be a non-empty string", field="identity_secret")
    if len(secret) > MAX_SECRET_LENGTH:
        raise InvalidAttributesError(
            f"identity_secret must be at most {MAX_SECRET_LENGTH} characters",
            field="identity_secret",
        )
    try:
        secret.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidAttributesError(
            "identity_secret must be valid UTF-8 text",
            field="identity_secret",
        ) from e


def _encode(attributes: AttributeSet) -> bytes:
    birth = f"{attributes.birth_year:04d}{attributes.birth_month:02d}{attributes.birth_day:02d}"
    return b"\x00".join([_DOMAIN_TAG, birth.encode(), attributes.identity_secret.encode("utf-8")])


def commit(attributes: AttributeSet, today: date | None = None) -> str:
    """
    Compute the identity commitment for a set of private attributes.

    Deterministic: identical attributes always give the identical
    commitment. Validation happens before any hashing.

    Args:
        attributes: Private identity attributes
        today: Upper bound for the birth year (defaults to the current UTC date)

    Returns:
        64-char lowercase hex commitment

    Raises:
        InvalidAttributesError: If any attribute is missing or out of range
    """
    validate_attributes(attributes, today)

    digest = hashlib.sha256(_encode(attributes)).digest()
    field_element = int.from_bytes(digest, "big") % FIELD_ORDER
    return f"{field_element:0{COMMITMENT_HEX_LENGTH}x}"


def commitment_to_field(commitment: str) -> int:
    """Parse a hex commitment back into its field element."""
    return int(commitment, 16)


def is_well_formed_commitment(value: str) -> bool:
    """Check the fixed-width hex shape without touching private data."""
    if len(value) != COMMITMENT_HEX_LENGTH:
        return False
    # int() alone would also take a "0x" prefix, underscores and whitespace
    if not set(value) <= _HEX_DIGITS:
        return False
    return int(value, 16) < FIELD_ORDER


def age_in_years(attributes: AttributeSet, reference_date: date) -> int:
    """
    Whole years between the birth date and ``reference_date``.

    One is subtracted from the year difference unless the birthday has
    already occurred in the reference year. A birthday on the reference
    date counts as occurred.
    """
    age = reference_date.year - attributes.birth_year
    if (reference_date.month, reference_date.day) < attributes.birth_month_day:
        age -= 1
    return age


def age_bracket(predicate_result: bool) -> str:
    """Privacy-preserving age indicator shown to clients."""
    return "18+" if predicate_result else "under_18"
