import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Query, Response, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from scorekings.api.deps import db_dependency, ledger_dependency
from scorekings.core.errors import AuthError, ValidationError
from scorekings.models.user import User
from scorekings.schemas.auth import LoginResponse, LoginSchema, SignupSchema, UserOut
from scorekings.services.auth import (
    create_access_token,
    current_user_dependency,
    hash_password,
    resolve_user_id,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/auth/signup", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def signup(form: SignupSchema, db: db_dependency):
    try:
        # 1. Start the atomic block immediately
        with db.begin():
            # Check for existing user INSIDE the transaction for safety
            existing = db.execute(select(User).where(User.email == form.email)).scalars().first()
            if existing:
                raise ValidationError("Email already registered")

            user = User(
                email=form.email,
                hashed_password=hash_password(form.password),
            )
            db.add(user)
            db.flush()  # Gets the user.id and defaults
            created = UserOut.model_validate(user)
    except IntegrityError:
        # lost a race with a concurrent signup for the same email
        raise ValidationError("Email already registered")

    logger.info("User %s signed up", created.id)
    return created


@router.post("/auth/login", response_model=LoginResponse)
def login(form: LoginSchema, db: db_dependency):
    with db.begin():
        user = db.execute(select(User).where(User.email == form.email)).scalars().first()

        # same message for unknown email and wrong password
        if not user or not user.is_active or not verify_password(form.password, user.hashed_password):
            logger.warning("Failed login for %s", form.email)
            raise AuthError("Invalid email or password")

        profile = UserOut.model_validate(user)

    return LoginResponse(token=create_access_token(profile.id), user=profile)


@router.get("/me", response_model=UserOut)
def me(
    ledger: ledger_dependency,
    current_user_id: current_user_dependency,
    user_id: Annotated[Optional[UUID], Query(alias="userId")] = None,
):
    return ledger.get_user(resolve_user_id(user_id, current_user_id))


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_me(ledger: ledger_dependency, current_user_id: current_user_dependency):
    ledger.deactivate_user(current_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
