from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from astex.core.dependencies import get_current_user
from astex.db.models import User
from astex.db.session import get_db
from astex.schemas import LoginRequest, SignUpRequest
from astex.serializers import user_to_dict
from astex.services.users import UserService

router = APIRouter(prefix="/user", tags=["User"])


@router.post("/sign-up", status_code=201)
def sign_up(payload: SignUpRequest, db: Session = Depends(get_db)):
    user = UserService(db).sign_up(payload)
    return JSONResponse(
        status_code=201,
        content={
            "success": True,
            "message": "User created successfully",
            "user": {"id": user.id, "email": user.email, "name": user.name},
        },
    )


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user, token = UserService(db).authenticate(payload.email, payload.password)
    return {
        "success": True,
        "token": token,
        "user": {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "role": user.role.value,
            "isVerified": user.is_verified,
        },
    }


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    return {"success": True, "user": user_to_dict(current_user)}
