import jwt
from datetime import datetime, timedelta
from typing import Optional

from .errors import AuthError
from .models import AdminAccount


class Token:
    def __init__(
        self,
        secret: str,
    ):
        self._secret = secret
        self._algo = "HS256"

    def create(
        self,
        payload: dict,
        expires_at: Optional[datetime] = None,
        not_before: Optional[datetime] = None,
    ):
        claims = payload.copy()
        if not_before:
            claims["nbf"] = int(not_before.timestamp())
        if expires_at:
            claims["exp"] = int(expires_at.timestamp())
        # issued at
        claims["iat"] = int(datetime.now().timestamp())
        return jwt.encode(claims, self._secret, algorithm=self._algo)

    def extract(self, token: str) -> dict:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algo],
                options={
                    "verify_exp": True,
                    "verify_nbf": True,
                    "verify_iat": True,
                },
            )
        except jwt.ExpiredSignatureError:
            raise AuthError("Session expired, please log in again")
        except jwt.InvalidTokenError:
            raise AuthError("Invalid access token")

    def for_account(self, account: AdminAccount, expires_in: int) -> str:
        # sub must be a string for PyJWT
        return self.create(
            {"sub": str(account.id), "role": account.role.value},
            expires_at=Token.seconds(expires_in),
        )

    @staticmethod
    def seconds(after: int):
        return datetime.now() + timedelta(seconds=after)
