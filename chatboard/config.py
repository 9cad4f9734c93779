import os


class Settings:
    def __init__(self) -> None:
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./chatboard.db")
        self.SECRET_KEY: str | None = os.getenv("SECRET_KEY")
        self.JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
        # 3 days
        self.TOKEN_TTL_SECONDS: int = int(os.getenv("TOKEN_TTL_SECONDS", str(3 * 24 * 60 * 60)))
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
