"""
Role-specific resolution of spoken page names to application paths.
"""
import logging
from typing import Optional, Union

from .config import RouteTable
from .types import Role

logger = logging.getLogger(__name__)


class RoleRouter:
    """Resolves navigation targets against an immutable role route table."""

    def __init__(self, routes: RouteTable):
        self.routes = routes

    def resolve(self, role: Union[Role, str, None], target: str) -> Optional[str]:
        """
        Return the path of the first configured keyword contained in target.

        Args:
            role: Active role; unknown values fall back to USER
            target: Spoken page name, e.g. "my appointments"

        Returns:
            Destination path, or None if no keyword matches
        """
        if not isinstance(role, Role):
            role = Role.parse(role)
        table = self.routes.get(role.value) or self.routes.get(Role.USER.value) or {}

        target = target.lower()
        for keyword, path in table.items():
            if keyword in target:
                logger.debug(f"Resolved '{target}' for {role.value} via '{keyword}' -> {path}")
                return path
        return None
