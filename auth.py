import logging
import uuid
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from database import get_db
from models import User
from schemas import Token, UserCreate, UserLogin, UserPublic
from store import commit

logger = logging.getLogger("finance-api.auth")

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

DUMMY_HASH = pwd_context.hash("placeholder-password-for-unknown-emails")

router = APIRouter(prefix="/api/auth", tags=["auth"])


def hash_password(password: str):
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str):
    return pwd_context.verify(password, hashed)


def create_access_token(data: dict, expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES):
    payload = dict(data)
    payload["exp"] = datetime.utcnow() + timedelta(minutes=expires_minutes)
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def _unauthorized(detail="Invalid or expired token"):
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
):
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = uuid.UUID(payload.get("sub") or "")
    except (JWTError, ValueError):
        logger.warning("rejected bearer token")
        raise _unauthorized()

    user = db.get(User, user_id)
    if not user:
        raise _unauthorized()

    return user


def _token_for(user: User):
    return {
        "access_token": create_access_token({"sub": str(user.id)}),
        "token_type": "bearer",
        "user": user,
    }


def find_user_by_email(db: Session, email: str):
    return db.query(User).filter(
        func.lower(User.email) == email.strip().lower()
    ).first()


@router.post("/register", response_model=Token, status_code=201)
def register(user: UserCreate, db: Session = Depends(get_db)):
    normalized_email = user.email.strip().lower()

    if find_user_by_email(db, normalized_email):
        raise HTTPException(
            status_code=409,
            detail="Email already registered"
        )

    new_user = User(
        name=user.name.strip(),
        email=normalized_email,
        hashed_password=hash_password(user.password)
    )
    db.add(new_user)
    # a concurrent registration can still win the unique index
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail="Email already registered"
        )
    commit(db, "create", "user")
    db.refresh(new_user)

    logger.info("registered user %s", new_user.id)
    return _token_for(new_user)


@router.post("/login", response_model=Token)
def login(user: UserLogin, db: Session = Depends(get_db)):
    db_user = find_user_by_email(db, user.email)

    # unknown emails still pay for one argon2 verify
    hashed = db_user.hashed_password if db_user else DUMMY_HASH
    password_ok = verify_password(user.password, hashed)

    if not db_user or not password_ok:
        logger.warning("failed login attempt")
        raise _unauthorized("Invalid email or password")

    return _token_for(db_user)


@router.get("/me", response_model=UserPublic)
def me(current_user: User = Depends(get_current_user)):
    return current_user
