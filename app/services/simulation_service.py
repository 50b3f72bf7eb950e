# app/services/simulation_service.py

from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from app.core.exceptions import SimulationNotAllowedError
from app.models.enums import UserRole, parse_role
from app.models.user import User

UserLookup = Callable[[str], Awaitable[Optional[User]]]


class SimulationState(str, Enum):
    NORMAL = "NORMAL"
    SIMULATING_ROLE = "SIMULATING_ROLE"
    SIMULATING_USER = "SIMULATING_USER"


class SimulationController:
    """
    Lets a super admin look at the platform as another role or a specific user.
    The real user is never modified; `effective_role` is the only answer to
    "which role is active".
    """

    def __init__(self, real_user: User, lookup_user: Optional[UserLookup] = None):
        self.real_user = real_user
        self._lookup_user = lookup_user
        self.simulated_role: Optional[UserRole] = None
        self.requested_role: Optional[UserRole] = None
        self.simulated_user_id: Optional[str] = None
        self.simulated_user: Optional[User] = None

    # ---------------- state ----------------
    @property
    def real_role(self) -> UserRole:
        return parse_role(self.real_user.role)

    @property
    def state(self) -> SimulationState:
        if self.simulated_user_id is not None:
            return SimulationState.SIMULATING_USER
        if self.simulated_role is not None:
            return SimulationState.SIMULATING_ROLE
        return SimulationState.NORMAL

    @property
    def is_simulating(self) -> bool:
        return self.state != SimulationState.NORMAL

    @property
    def effective_role(self) -> UserRole:
        return self.simulated_role or self.real_role

    def _ensure_allowed(self) -> None:
        if self.real_role != UserRole.SUPER_ADMIN:
            raise SimulationNotAllowedError(self.real_user.role)

    # ---------------- transitions ----------------
    def set_simulated_role(self, role) -> UserRole:
        self._ensure_allowed()
        parsed = parse_role(role)
        if parsed is None:
            raise ValueError(f"Unknown role '{role}'")
        self.simulated_role = parsed
        self.requested_role = parsed
        self.simulated_user_id = None
        self.simulated_user = None
        return parsed

    async def set_simulated_user(self, external_id: str) -> Optional[User]:
        """
        Resolve `external_id` and take over its role. On failure the explicitly
        chosen role (if any) stays active for labels and the real profile is shown.
        """
        self._ensure_allowed()
        self.simulated_user_id = external_id
        self.simulated_user = None
        # a previous target must not leak its role into this lookup
        self.simulated_role = self.requested_role

        user = None
        if self._lookup_user is not None:
            try:
                user = await self._lookup_user(external_id)
            except Exception:
                logger.exception(f"Simulation lookup failed for '{external_id}'")
                user = None

        if user is None:
            logger.warning(f"Simulated user '{external_id}' not found; showing real profile")
            return None

        self.simulated_user = user
        self.simulated_role = parse_role(user.role) or self.simulated_role
        return user

    def clear(self) -> None:
        self.simulated_role = None
        self.requested_role = None
        self.simulated_user_id = None
        self.simulated_user = None

    # ---------------- views ----------------
    @property
    def organization_id(self) -> Optional[str]:
        source = self.simulated_user or self.real_user
        return source.organization_id

    def displayed_user(self) -> dict[str, Any]:
        source = self.simulated_user or self.real_user
        return {
            "id": source.id,
            "sip_id": source.sip_id,
            "name": source.name,
            "email": source.email,
            "role": self.effective_role,
            "organization_id": source.organization_id,
            "simulated": self.is_simulating,
        }

    async def effective_sidebar(self, store, sidebar_groups=None) -> list[str]:
        return await store.effective_sidebar(self.effective_role, self.organization_id, sidebar_groups)
