from datetime import datetime, timedelta, timezone

import jwt

from ..core.errors import Unauthenticated

class TokenIdentity:
    """Bearer tokens shared with the external auth service (HS256 JWTs)."""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl: timedelta = timedelta(days=7)):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {"userId": user_id, "iat": now, "exp": now + self.ttl}
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def authenticate(self, token: str) -> str:
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.PyJWTError as e:
            raise Unauthenticated() from e
        user_id = claims.get("userId")
        if not user_id:
            raise Unauthenticated()
        return str(user_id)
