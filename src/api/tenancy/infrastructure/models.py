"""SQLAlchemy ORM model for the tenant registry.

One row per registered user, binding the user to the name of their
isolated store. Rows are immutable once inserted.
"""

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, epoch_millis


class UserModel(Base):
    """ORM model for the users registry table.

    Note: created is integer milliseconds since the epoch, matching the
    timestamps stored in tenant stores.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    store_name: Mapped[str] = mapped_column(String(63), nullable=False, unique=True)
    created: Mapped[int] = mapped_column(
        BigInteger,
        insert_default=epoch_millis,  # Evaluated at INSERT time
        nullable=False,
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<UserModel(id={self.id}, store_name={self.store_name})>"
