# models.py
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from constants import STATUS_LIKE
from db import Base


class User(Base):
    __tablename__ = "users"

    # id: порядок создания, по нему же стабильно сортируется лента
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    telegram_id: Mapped[int] = mapped_column(BigInteger, unique=True, index=True)

    # Контакт. В публичную карточку НЕ попадает, открывается только после мэтча
    username: Mapped[str | None] = mapped_column(String(64), nullable=True)

    first_name: Mapped[str] = mapped_column(String(40))
    last_name: Mapped[str] = mapped_column(String(40), default="")
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(16), nullable=True)
    # file_id фотографии в Telegram
    image: Mapped[str | None] = mapped_column(String(256), nullable=True)
    about: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} tg={self.telegram_id} name={self.first_name!r}>"


class ConnectionRequest(Base):
    __tablename__ = "connection_requests"
    __table_args__ = (
        # Одна запись на неупорядоченную пару: (A→B) и (B→A): это одна пара
        UniqueConstraint(
            "user_low_id", "user_high_id", name="uq_connection_requests_pair"
        ),
        CheckConstraint(
            "from_user_id != to_user_id", name="ck_connection_requests_not_self"
        ),
        CheckConstraint(
            "user_low_id < user_high_id", name="ck_connection_requests_pair_order"
        ),
        Index("ix_connection_requests_to_status", "to_user_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    from_user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    to_user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    # Канонический ключ пары: min/max из двух id
    user_low_id: Mapped[int] = mapped_column(Integer)
    user_high_id: Mapped[int] = mapped_column(Integer)

    status: Mapped[str] = mapped_column(
        String(16), default=STATUS_LIKE
    )  # like / pass / accept / reject

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def other_user_id(self, user_id: int) -> int:
        """Второй участник пары относительно user_id."""
        return self.to_user_id if self.from_user_id == user_id else self.from_user_id

    def __repr__(self) -> str:
        return (
            f"<ConnectionRequest id={self.id} from={self.from_user_id} "
            f"to={self.to_user_id} status={self.status}>"
        )


def pair_key(user_a: int, user_b: int) -> tuple[int, int]:
    """Канонический ключ неупорядоченной пары пользователей."""
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)
