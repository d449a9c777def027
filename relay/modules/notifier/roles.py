"""Mirror the permission bitfield onto Discord tier roles."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import discord
import structlog

from relay.modules.notifier.messages import ROLES_UPDATED_MESSAGE
from relay.modules.notifier.platform import ChatPlatform
from relay.shared.config import TierRoles
from relay.shared.permissions import PermissionFlag, has_permission

logger = structlog.get_logger()


@dataclass(frozen=True)
class RoleDelta:
    """Roles to strip and roles to grant, applied in that order."""

    to_add: tuple[int, ...]
    to_remove: tuple[int, ...]


def compute_role_delta(
    tier_roles: TierRoles,
    bitfield: int | None,
    override: Iterable[int] | None = None,
) -> RoleDelta:
    """Compute the clean-slate role change for a member.

    Every tier role is removed first. With an ``override`` exactly those roles
    are granted; otherwise each tier (highest first) whose FIRST flag is set.
    Tiers are not exclusive: several may be granted together.
    """
    to_remove = tier_roles.all()
    if override is not None:
        return RoleDelta(to_add=tuple(override), to_remove=to_remove)

    to_add = tuple(
        role_id
        for category, role_id in tier_roles.by_priority()
        if has_permission(bitfield, category, PermissionFlag.FIRST)
    )
    return RoleDelta(to_add=to_add, to_remove=to_remove)


class RoleReconciler:
    """Applies role deltas to guild members."""

    def __init__(self, platform: ChatPlatform, tier_roles: TierRoles):
        self.platform = platform
        self.tier_roles = tier_roles

    async def apply_roles(
        self,
        identity: str,
        bitfield: int | None,
        override: Iterable[int] | None = None,
    ) -> RoleDelta | None:
        """Revoke all tier roles from ``identity`` then grant the earned ones.

        Returns None when the member is not in the guild. Only the bitfield
        path notifies the member; an override (e.g. an unlinked profile) just
        revokes and grants silently.
        """
        member = await self.platform.resolve_member(identity)
        if member is None:
            logger.info("role_sync_member_not_found", identity=identity)
            return None

        delta = compute_role_delta(self.tier_roles, bitfield, override)

        await self.platform.revoke_roles(member, delta.to_remove)
        for role_id in delta.to_add:
            await self.platform.grant_role(member, role_id)

        logger.info(
            "roles_applied",
            identity=identity,
            granted=list(delta.to_add),
            override=override is not None,
        )

        if override is None:
            try:
                await self.platform.send_direct_message(member, ROLES_UPDATED_MESSAGE)
            except discord.HTTPException as e:
                # Roles are already applied; members with DMs closed just miss the note
                logger.warning("roles_updated_dm_failed", identity=identity, error=str(e))

        return delta
