from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from crud_engine.core.errors import Unauthorized
from crud_engine.core.security import decode_jwt

bearer = HTTPBearer(auto_error=False)

def get_current_principal(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> dict:
    if not creds:
        raise Unauthorized("Missing bearer token")
    try:
        return decode_jwt(creds.credentials)
    except JWTError:
        raise Unauthorized("Invalid token")

def get_optional_principal(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> dict | None:
    if not creds:
        return None
    return get_current_principal(creds)
