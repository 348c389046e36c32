"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent


class Settings:
    ENV: str
    DATABASE_URL: str
    LOG_LEVEL: str
    ALLOW_DEV_CORS: bool
    MAX_COURSES_PER_STUDENT: int
    MAX_STUDENTS_PER_COURSE: int

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'registrar.db'}")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.MAX_COURSES_PER_STUDENT = int(os.getenv("MAX_COURSES_PER_STUDENT", "5"))
        self.MAX_STUDENTS_PER_COURSE = int(os.getenv("MAX_STUDENTS_PER_COURSE", "50"))
        self._validate()

    def _validate(self):
        if self.MAX_COURSES_PER_STUDENT < 1 or self.MAX_STUDENTS_PER_COURSE < 1:
            raise RuntimeError("enrollment limits must be positive integers")
        if self.ENV != "dev" and self.ALLOW_DEV_CORS:
            raise RuntimeError("ALLOW_DEV_CORS must be disabled in non-dev environments")


settings = Settings()
