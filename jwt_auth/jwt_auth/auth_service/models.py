from sqlalchemy import Column, Integer, String, DateTime, Text
from .db import Base


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String)
    last_name = Column(String)
    username = Column(String, unique=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)


class BlacklistedToken(Base):
    __tablename__ = "blacklisted_tokens"
    token = Column(Text, primary_key=True)
    expiry = Column(DateTime, index=True, nullable=False)


class PasswordReset(Base):
    __tablename__ = "password_resets"
    # One outstanding reset per email; a new request replaces the old row
    email = Column(String, primary_key=True)
    token = Column(String, unique=True, index=True, nullable=False)
    expiry = Column(DateTime, index=True, nullable=False)
