from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from pymongo.errors import DuplicateKeyError
from tenantblog.db import get_db
from tenantblog.errors import Conflict, Unauthenticated, conflict_from_duplicate_key
from tenantblog.logging_config import get_logger
from tenantblog.models.user import Identity, User
from tenantblog.schemas import Token, UserCreate, single_user_serializer
from tenantblog.security import BEARER_CHALLENGE, authenticate_user, get_current_user
from tenantblog.utils import create_access_token, hash_password

router = APIRouter()

logger = get_logger(__name__)


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(user: UserCreate, db=Depends(get_db)):
    new_user = User(
        name=user.name,
        email=user.email,
        password=hash_password(password=user.password)
    )

    existing_user = await db.users.find_one({"email": new_user.email})
    if existing_user:
        raise Conflict("email")

    document = new_user.model_dump()
    try:
        result = await db.users.insert_one(document)
    except DuplicateKeyError as e:
        raise conflict_from_duplicate_key(e)
    document["_id"] = result.inserted_id
    logger.info("User %s signed up", document["_id"])

    return {"message": "User created successfully.", "data": single_user_serializer(document)}


@router.post("/token", response_model=Token)
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends(), db=Depends(get_db)):
    """Exchange an email (sent as ``username``) and password for a bearer token."""
    user = await authenticate_user(form_data.username, form_data.password, db)
    if not user:
        raise Unauthenticated("Invalid email or password", headers=BEARER_CHALLENGE)
    token = create_access_token(user["email"], str(user["_id"]))
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me")
async def read_user_details(user: Identity = Depends(get_current_user)):
    return {"data": user.model_dump()}
