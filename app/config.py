from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database settings
    DATABASE_URL: str

    # JWT settings
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 300

    # Storage settings
    STORAGE_BACKEND: str = "local"  # local | s3 (future)
    STORAGE_BASE_PATH: str = "app/storage/data"
    MAX_UPLOAD_SIZE_MB: int = 10
    ALLOWED_UPLOAD_CONTENT_TYPES: list[str] = [
        "image/jpeg",
        "image/png",
        "application/pdf",
        "video/mp4",
        "text/plain",
        "application/msword",
    ]

    # Share link settings
    SHARE_TOKEN_BYTES: int = 32
    # 分享連結的對外網址，未設定時使用請求本身的base URL
    PUBLIC_BASE_URL: str | None = None

    # Google Drive mirror settings (mirror disabled when client id is missing)
    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None
    GOOGLE_TOKEN_URI: str = "https://oauth2.googleapis.com/token"

    # Pydantic Settings的配置設定，用來控制類別如何讀取環境變數
    # "env_file": ".env"：告訴 Pydantic 要從.env檔案讀取環境變數
    # "extra": "ignore"：環境變數裡有，但Settings類別沒定義的欄位直接忽略
    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
