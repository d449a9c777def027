"""Permission bitfield codec.

A user's permission level is a 32-bit integer split into eight 4-bit
categories, each holding four independent flags::

    bit = (1 << flag) << (4 * category)

Flag 0 of the SPECIAL category is the admin override: when it is set every
permission check passes.
"""

from __future__ import annotations

from enum import IntEnum

_UINT32_MASK = 0xFFFFFFFF
_CATEGORY_MASK = 0xF
_BITS_PER_CATEGORY = 4


class PermissionCategory(IntEnum):
    TIER_1 = 0
    TIER_2 = 1
    TIER_3 = 2
    USERS = 3
    MACHINES = 4
    MAINTENANCE = 5
    INVENTORY = 6
    SPECIAL = 7


class PermissionFlag(IntEnum):
    FIRST = 0
    SECOND = 1
    THIRD = 2
    FOURTH = 3


ADMIN_FLAG = PermissionFlag.FIRST


def get_category_value(perms: int, category: int) -> int:
    """Return the 4-bit value stored in ``category``.

    ``perms`` is treated as unsigned, so a negative ``int4`` read from
    Postgres decodes the same as its unsigned counterpart.
    """
    assert 0 <= category <= 7, f"category out of range: {category}"
    return ((perms & _UINT32_MASK) >> (_BITS_PER_CATEGORY * category)) & _CATEGORY_MASK


def has_permission(perms: int | None, category: int, flag: int) -> bool:
    """True if ``flag`` is set in ``category`` or the admin override is set."""
    assert 0 <= category <= 7, f"category out of range: {category}"
    assert 0 <= flag <= 3, f"flag out of range: {flag}"
    if perms is None:
        return False

    if get_category_value(perms, PermissionCategory.SPECIAL) & (1 << ADMIN_FLAG):
        return True

    return bool(get_category_value(perms, category) & (1 << flag))


def get_permission_bit(category: int, flag: int) -> int:
    assert 0 <= category <= 7, f"category out of range: {category}"
    assert 0 <= flag <= 3, f"flag out of range: {flag}"
    return (1 << flag) << (_BITS_PER_CATEGORY * category)


def describe_permissions(perms: int | None) -> dict[str, list[str]]:
    """Name every flag set in ``perms``, grouped by category.

    Only the raw bits are reported; the admin override does not expand into
    the other categories here.
    """
    if perms is None:
        return {}

    described: dict[str, list[str]] = {}
    for category in PermissionCategory:
        value = get_category_value(perms, category)
        flags = [flag.name for flag in PermissionFlag if value & (1 << flag)]
        if flags:
            described[category.name] = flags
    return described
