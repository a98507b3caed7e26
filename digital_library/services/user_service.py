from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from digital_library.models.user import User
from digital_library.schemas.users import (PasswordChange, UserCreate,
                                           UserRole, UserStatus, UserUpdate)
from digital_library.services.auth_service import auth_service
from digital_library.utils.exceptions import (ConflictError, NotFoundError,
                                              ValidationError)


class UserService:
    async def create_user(
        self, user_data: UserCreate, db: AsyncSession, role: UserRole = UserRole.READER
    ) -> User:
        """Register a new account"""
        email = user_data.email.lower()
        result = await db.execute(select(User.id).where(User.email == email))
        if result.scalar_one_or_none() is not None:
            raise ConflictError("User with this email already exists")

        user = User(
            email=email,
            full_name=user_data.full_name,
            password_hash=auth_service.get_password_hash(user_data.password),
            role=role.value,
            status=UserStatus.ACTIVE.value,
            email_verified=False,
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("User with this email already exists")
        await db.refresh(user)

        logger.info("User registered: {} ({})", user.id, role.value)
        return user

    async def get_user(self, user_id: int, db: AsyncSession) -> User:
        user = await db.get(User, user_id)
        if user is None or user.status == UserStatus.DELETED.value:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, user_id: int, update: UserUpdate, db: AsyncSession) -> User:
        user = await self.get_user(user_id, db)
        if update.full_name is not None:
            user.full_name = update.full_name
        await db.commit()
        await db.refresh(user)
        return user

    async def change_password(self, user_id: int, change: PasswordChange, db: AsyncSession) -> None:
        user = await self.get_user(user_id, db)
        if not auth_service.verify_password(change.current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")
        user.password_hash = auth_service.get_password_hash(change.new_password)
        await db.commit()
        logger.info("Password changed for user {}", user_id)


user_service = UserService()
