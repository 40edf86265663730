import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./finance.db")

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    raise RuntimeError("SECRET_KEY must be set to sign access tokens")

ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if o.strip()
]

PORT = int(os.getenv("PORT", "8001"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# "none" accepts any allocation, "cap" keeps an account's pockets at or below 100%
POCKET_ALLOCATION_POLICY = os.getenv("POCKET_ALLOCATION_POLICY", "none").lower()
