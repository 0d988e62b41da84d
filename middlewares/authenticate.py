import logging

from db.database import session_scope
from models.user import User, UserORM
from utils import jwt

logger = logging.getLogger(__name__)

def find_user(user_id: str) -> User | None:
    with session_scope() as session:
        user = session.get(UserORM, user_id)
        return User.from_orm_user(user) if user is not None else None

def authenticate(event, response, context):
    """Middleware to authenticate the user using a JSON web token.

    The user named by the token is loaded from the database and passed to the
    applied function as ``event['user']``.

    ---
    security:
        - bearerAuth: []
    """
    headers = event.get('headers', None)
    if headers is None:
        response.status(401).json({
            "success": False,
            "comment": 'NO_HEADERS',
        })
        return event, response, context
    bearer = headers.get('Authorization', None) or headers.get('authorization', None)
    if bearer is None:
        response.status(401).json({
            "success": False,
            "comment": 'NO_AUTHORIZATION_HEADER',
        })
        return event, response, context
    if not bearer.startswith('Bearer '):
        response.status(401).json({
            "success": False,
            "comment": 'INVALID_AUTHORIZATION_HEADER',
        })
        return event, response, context
    token = bearer[7:]
    if not jwt.verify_token(token):
        response.status(401).json({
            "success": False,
            "comment": "SESSION_TOKEN_EXPIRED",
        })
        return event, response, context

    json_web_token = jwt.JsonWebToken.from_token(token)

    # The token may outlive the account
    user = find_user(json_web_token.sub)
    if user is None or not user.enabled:
        response.status(401).json({
            "success": False,
            "comment": "USER_NOT_FOUND",
        })
        return event, response, context

    event['user'] = user
    logger.info("Authenticated %s (%s)", user.email, user.role)
    return event, response, context
