from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database import get_db
from app.logging_config import setup_logging
from app.models.user import User
from app.schemas.auth import TokenResponse, UserLoginRequest, UserRegisterRequest, UserResponse
from app.schemas.common import APIResponse
from app.services.auth import authenticate_user, create_access_token, get_user_by_email, hash_password

# tags為標籤，用於 API 文件分組，在 Swagger自動文件頁面會顯示為「auth」區塊
router = APIRouter(prefix="/auth", tags=["auth"])

logger = setup_logging()


def _email_taken() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"success": False, "error": "Bad Request", "message": "Email already exists"},
    )


@router.post(
    "/register",
    response_model=APIResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
def register(request: UserRegisterRequest, db: Session = Depends(get_db)):
    email = request.email.lower()

    if get_user_by_email(db, email):
        raise _email_taken()

    user = User(
        email=email,
        hashed_password=hash_password(request.password),
    )

    try:
        db.add(user)
        db.commit()
        # 重新讀取DB自動產生的欄位(id, created_at)
        db.refresh(user)
    except IntegrityError:
        # 兩個請求同時註冊同一個email時，由unique約束擋下
        db.rollback()
        raise _email_taken()

    logger.info(f"User registered: user_id={user.id}")
    return APIResponse(success=True, data=UserResponse.model_validate(user))


@router.post("/login", response_model=APIResponse[TokenResponse])
def login(request: UserLoginRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, request.email, request.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "success": False,
                "error": "Unauthorized",
                "message": "Invalid credentials",
            },
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "success": False,
                "error": "Forbidden",
                "message": "User is inactive",
            },
        )

    return APIResponse(success=True, data=TokenResponse(access_token=create_access_token(user.id)))
