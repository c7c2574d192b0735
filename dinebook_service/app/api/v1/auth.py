"""
Authentication endpoints
"""
import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import JWTError, jwt

from dinebook_service.app.api.v1.dependencies import get_user_repository
from dinebook_service.app.api.v1.errors import http_error
from dinebook_service.app.api.v1.schemas import Token, TokenData, UserCreate, UserResponse
from dinebook_service.config import get_settings
from dinebook_service.domain.entities.user import User
from dinebook_service.domain.ports.authentication_port import IAuthenticationService
from dinebook_service.domain.ports.user_port import IUserRepository
from dinebook_service.infrastructure.adapters.authentication_adapter import AuthenticationService

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


def get_authentication_service(
    user_repo: IUserRepository = Depends(get_user_repository)
) -> IAuthenticationService:
    """Dependency injection for authentication service"""
    return AuthenticationService(user_repo)


def create_access_token(data: dict, expires_delta: timedelta | None = None):
    """Create JWT access token"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=15)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
    return encoded_jwt


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    auth_service: IAuthenticationService = Depends(get_authentication_service)
) -> User:
    """Get current authenticated user"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        token_data = TokenData(user_id=user_id, role=payload.get("role"))
    except JWTError:
        raise credentials_exception

    user = await auth_service.get_user_by_id(token_data.user_id)
    if user is None or not user.is_active:
        raise credentials_exception
    return user


async def require_owner(current_user: User = Depends(get_current_user)) -> User:
    """Allow restaurant owners only"""
    if not current_user.is_owner:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Restaurant owner role required."
        )
    return current_user


async def require_customer(current_user: User = Depends(get_current_user)) -> User:
    """Allow customers only"""
    if not current_user.is_customer:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Customer role required."
        )
    return current_user


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    auth_service: IAuthenticationService = Depends(get_authentication_service)
):
    """Register new user"""
    existing_email = await auth_service.get_user_by_email(user_data.email)
    if existing_email:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )

    try:
        user = await auth_service.create_user(
            name=user_data.name,
            email=user_data.email,
            password=user_data.password,
            role=user_data.role
        )
    except Exception as e:
        raise http_error(e, "Registration")

    logger.info(f"👤 Registered {user.role} {user.id}")
    return UserResponse.from_entity(user)


@router.post("/token", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    auth_service: IAuthenticationService = Depends(get_authentication_service)
):
    """Login with e-mail (as username) and password and get access token"""
    user = await auth_service.authenticate_user(form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token_expires = timedelta(minutes=settings.access_token_expire_minutes)
    access_token = create_access_token(
        data={"sub": user.id, "role": user.role}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user: User = Depends(get_current_user)):
    """Get current user info"""
    return UserResponse.from_entity(current_user)
