"""Helper methods and endpoints for authentication."""

import logging
from datetime import datetime
from typing import Annotated

from authlib.common.errors import AuthlibBaseError
from authlib.jose import jwt
from fastapi import APIRouter, Depends, HTTPException, Security
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from pydantic import BaseModel

from assetvault.config import get_settings
from assetvault.models import User
from assetvault.systemdata.users import get_user, login

app_auth = APIRouter(tags=["auth"])

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token", auto_error=False)


class InvalidToken(ValueError):
    pass


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


def create_token(user_id: str, days_valid: int | None = None) -> str:
    """
    Create a new token for this user
    :param days_valid: the number of days from now that the token should be valid (default from settings)
    """
    settings = get_settings()
    days_valid = days_valid if days_valid is not None else settings.token_days_valid
    exp = int(datetime.now().timestamp()) + days_valid * 24 * 60 * 60
    payload = dict(sub=user_id, resource=settings.host, exp=exp)
    return jwt.encode({"alg": "HS256"}, payload, settings.secret_key).decode("utf-8")


def verify_token(token: str) -> str:
    """
    Verifies the given token and returns the user id

    raises a InvalidToken exception if the token could not be validated
    """
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.secret_key)
        claims.validate()
    except AuthlibBaseError as e:
        raise InvalidToken(e)
    except ValueError as e:
        raise InvalidToken(f"Malformed token: {e}")
    if missing := {"sub", "resource", "exp"} - set(claims.keys()):
        raise InvalidToken(f"Invalid token, missing keys {missing}")
    if claims["resource"] != settings.host:
        raise InvalidToken(f"Wrong host! {claims['resource']} != {settings.host}")
    return claims["sub"]


async def optional_user(token: str | None = Security(oauth2_scheme)) -> User | None:
    """
    Authenticates the user based on the bearer token, or returns None if no token was given.
    """
    if token is None:
        return None
    try:
        user_id = verify_token(token)
    except InvalidToken as e:
        logging.warning(f"Token verification failed: {e}")
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}") from e
    user = await get_user(user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Token refers to a user that no longer exists")
    return user


async def authenticated_user(user: User | None = Depends(optional_user)) -> User:
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="This endpoint requires authentication. Please provide a valid bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


@app_auth.post("/auth/token")
async def get_token(form_data: Annotated[OAuth2PasswordRequestForm, Depends()]) -> TokenResponse:
    """Exchange a username and password for an access token."""
    user = await login(form_data.username, form_data.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Incorrect username or password")
    return TokenResponse(access_token=create_token(user.id))
