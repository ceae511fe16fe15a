"""Persistence layer for user data."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy.orm import Session, joinedload

from app.domain.entities import Role, User
from app.infrastructure.models import UserModel


class UserRepository:
    """Read access to the users a notification can be addressed to."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self._get_model(id=user_id)
        return self._to_entity(model) if model else None

    def create(self, user: User) -> User:
        model = UserModel()
        self._apply_entity_to_model(model, user)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        if model.role is None:
            self.session.refresh(model, attribute_names=["role"])
        return self._to_entity(model)

    def list_active_by_ids(self, user_ids: Iterable[int]) -> Sequence[User]:
        """Return active, non-deleted users among ``user_ids`` ordered by id."""

        unique_ids = {int(user_id) for user_id in user_ids}
        if not unique_ids:
            return []
        query = self._active_query().filter(UserModel.id.in_(unique_ids))
        return [self._to_entity(model) for model in query.order_by(UserModel.id).all()]

    def list_active_by_role_ids(self, role_ids: Iterable[int]) -> Sequence[User]:
        unique_ids = {int(role_id) for role_id in role_ids}
        if not unique_ids:
            return []
        query = self._active_query().filter(UserModel.role_id.in_(unique_ids))
        return [self._to_entity(model) for model in query.order_by(UserModel.id).all()]

    def _active_query(self):
        return (
            self.session.query(UserModel)
            .options(joinedload(UserModel.role))
            .filter(UserModel.deleted.is_(False))
            .filter(UserModel.is_active.is_(True))
        )

    def _get_model(self, include_deleted: bool = False, **filters) -> UserModel | None:
        query = self.session.query(UserModel).options(joinedload(UserModel.role))
        if not include_deleted:
            query = query.filter(UserModel.deleted.is_(False))
        return query.filter_by(**filters).first()

    @staticmethod
    def _apply_entity_to_model(model: UserModel, user: User) -> None:
        model.role_id = user.role.id
        model.name = user.name
        model.email = user.email
        model.phone_number = user.phone_number
        model.is_active = user.is_active
        model.deleted = user.deleted

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            role=UserRepository._role_to_entity(model.role),
            name=model.name,
            email=model.email,
            phone_number=model.phone_number,
            is_active=model.is_active,
            deleted=model.deleted,
        )

    @staticmethod
    def _role_to_entity(model_role) -> Role:
        if model_role is None:
            msg = "User role is not set"
            raise ValueError(msg)
        return Role(id=model_role.id, name=model_role.name, alias=model_role.alias)


__all__ = ["UserRepository"]
