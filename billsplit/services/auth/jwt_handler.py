import os
import logging
from typing import Optional

import jwt

logger = logging.getLogger(__name__)

SECRET_KEY = os.getenv("SECRET_KEY", "billsplit-development-secret-key-change-me")
ALGORITHM = "HS256"


def get_user_id_from_token(token: str) -> Optional[str]:
    """Return the user_id claim of a valid access token, None for expired or invalid tokens"""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired access token")
        return None
    except jwt.InvalidTokenError:
        return None
    return payload.get("user_id")
