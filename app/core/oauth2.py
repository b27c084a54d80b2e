from fastapi.security import OAuth2PasswordBearer

# Tokens are issued by the login service; this API only verifies them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
