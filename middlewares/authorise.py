from enum import Enum
import logging

logger = logging.getLogger(__name__)

class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"

def authorise(*roles: Role):
    """Create a middleware that only lets users with one of ``roles`` through.

    Must be applied after ``authenticate``.
    """
    allowed = {Role(role).value for role in roles}

    def middleware(event, response, context):
        """Restricts access by user role.
        --- description
        Requires one of the roles: {roles}.
        """
        user = event.get('user')
        if user is None or user.role not in allowed:
            logger.warning("Denied %s to %s", getattr(user, 'email', None), event.get('path'))
            response.status(403).json({
                "success": False,
                "comment": "FORBIDDEN",
                "error": f"Requires role: {', '.join(sorted(allowed))}",
            })
        return event, response, context

    middleware.__name__ = 'authorise'
    middleware.__doc__ = middleware.__doc__.format(roles=', '.join(sorted(allowed)))
    return middleware
