from sqlalchemy.orm import Session

from .models import User
from ..auth.models import SessionUser


class UserService:

    @staticmethod
    def sync_from_session(db: Session, actor: SessionUser) -> User:
        """Create or refresh the local mirror row for the caller. Does not commit."""
        user = db.get(User, actor.user_id)
        if user is None:
            user = User(id=actor.user_id, name=actor.name, email=actor.email, role=actor.role)
            db.add(user)
            return user

        if actor.name and user.name != actor.name:
            user.name = actor.name
        if actor.email and user.email != actor.email:
            user.email = actor.email
        if user.role != actor.role:
            user.role = actor.role
        return user
