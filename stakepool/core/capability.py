"""Owner and admin capabilities."""
import secrets
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from loguru import logger

from .errors import AlreadyExists, CapacityExceeded, NotFound, Unauthorized

MAX_ADMINS = 2


def new_capability_id() -> str:
    return secrets.token_hex(16)


@dataclass
class OwnerCap:
    """Capability held by the single pool owner."""
    id: str
    holder: str


@dataclass
class AdminCap:
    """Capability bound to one admin address."""
    id: str
    holder: str


class CapabilityRegistry:
    """Tracks which capabilities are live and who holds them.

    A capability object only grants rights while its id matches the one
    recorded here, so copies of a revoked or transferred capability are inert.
    """

    def __init__(self, owner: str, owner_cap_id: str, admins: Optional[Dict[str, str]] = None):
        self.owner = owner
        self.owner_cap_id = owner_cap_id
        self.admins: Dict[str, str] = dict(admins or {})  # address -> admin cap id

    @classmethod
    def bootstrap(cls, owner: str) -> Tuple["CapabilityRegistry", OwnerCap]:
        cap = OwnerCap(id=new_capability_id(), holder=owner)
        return cls(owner, cap.id), cap

    @property
    def admin_count(self) -> int:
        return len(self.admins)

    def admin_addresses(self) -> List[str]:
        return list(self.admins)

    def is_privileged(self, address: str) -> bool:
        return address == self.owner or address in self.admins

    def verify_owner(self, caller: str, owner_cap: OwnerCap) -> None:
        """Raise Unauthorized unless ``caller`` holds the live owner capability."""
        if not isinstance(owner_cap, OwnerCap):
            raise Unauthorized("Owner capability required")
        if not secrets.compare_digest(owner_cap.id, self.owner_cap_id):
            raise Unauthorized("Owner capability is not live")
        if caller != owner_cap.holder or caller != self.owner:
            raise Unauthorized(f"{caller} is not the pool owner")

    def grant_admin(self, caller: str, owner_cap: OwnerCap, new_admin: str) -> AdminCap:
        self.verify_owner(caller, owner_cap)
        if new_admin in self.admins:
            raise AlreadyExists(f"{new_admin} is already an admin")
        if self.admin_count >= MAX_ADMINS:
            raise CapacityExceeded(f"Admin limit of {MAX_ADMINS} reached")
        cap = AdminCap(id=new_capability_id(), holder=new_admin)
        self.admins[new_admin] = cap.id
        logger.debug(f"Admin capability {cap.id} issued to {new_admin}")
        return cap

    def revoke_admin(self, caller: str, owner_cap: OwnerCap, admin: str) -> None:
        self.verify_owner(caller, owner_cap)
        if admin not in self.admins:
            raise NotFound(f"{admin} is not an admin")
        del self.admins[admin]

    def transfer_owner(self, caller: str, owner_cap: OwnerCap, new_owner: str) -> None:
        self.verify_owner(caller, owner_cap)
        self.owner = new_owner
        owner_cap.holder = new_owner
