from sqlalchemy import Column, String
from powdercoat.models.base import BaseModel, enum_column
from powdercoat.core.enums import UserRole


class User(BaseModel):
    __tablename__ = "users"
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(120), nullable=True)
    role = Column(enum_column(UserRole), nullable=False, default=UserRole.CLIENT)
