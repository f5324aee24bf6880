import logging
from datetime import timedelta, datetime, timezone
from typing import Dict, Any, Optional
from jose import JWTError, jwt

from passlib.context import CryptContext

from rentledger.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)


class AuthService:
	@staticmethod
	def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
		"""Verify a password against its hash; persons without password never match"""
		if not hashed_password:
			return False
		return pwd_context.verify(plain_password, hashed_password)

	@staticmethod
	def hash_password(password: str) -> str:
		return pwd_context.hash(password)

	@staticmethod
	def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
		"""Create JWT access token"""
		to_encode = data.copy()
		expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=settings.JWT_EXPIRATION_HOURS))
		to_encode.update({"exp": expire, "type": "access"})
		return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

	@staticmethod
	def create_refresh_token(data: Dict[str, Any]) -> str:
		"""Create JWT refresh token"""
		to_encode = data.copy()
		expire = datetime.now(timezone.utc) + timedelta(days=settings.JWT_REFRESH_EXPIRATION_DAYS)
		to_encode.update({"exp": expire, "type": "refresh"})
		return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

	@staticmethod
	def decode_token(token: str) -> Optional[Dict[str, Any]]:
		try:
			return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
		except JWTError as e:
			logger.warning(f"JWT decode error: {e}")
			return None

	def issue_tokens(self, person) -> Dict[str, str]:
		"""Access and refresh token pair for a person"""
		return {
			"access_token": self.create_access_token({"sub": str(person.id), "capabilities": list(person.capabilities or [])}),
			"refresh_token": self.create_refresh_token({"sub": str(person.id)}),
		}


auth_service = AuthService()
