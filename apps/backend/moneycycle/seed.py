from __future__ import annotations

from sqlalchemy.orm import Session

from .core.config import settings
from .core.database import SessionLocal, init_db
from .models import Category, TxnType, User, UserSettings

DEFAULT_CATEGORIES: dict[TxnType, list[tuple[str, str]]] = {
    TxnType.INCOME: [("급여", "wallet"), ("부수입", "coins"), ("기타수입", "circle")],
    TxnType.EXPENSE: [
        ("식비", "utensils"),
        ("교통", "bus"),
        ("주거/통신", "home"),
        ("쇼핑", "shopping-bag"),
        ("할부", "credit-card"),
        ("기타지출", "circle"),
    ],
}


def seed_user(db: Session, email: str = "demo@example.com") -> User:
    # 기본 사용자(데모) + 설정 + 기본 카테고리
    user = db.query(User).filter_by(email=email).first()
    if not user:
        user = User(email=email, is_active=True)
        db.add(user)
        db.flush()
    if not db.query(UserSettings).filter_by(user_id=user.id).first():
        db.add(UserSettings(user_id=user.id, cycle_start_day=settings.DEFAULT_CYCLE_START_DAY))

    for txn_type, entries in DEFAULT_CATEGORIES.items():
        for name, icon in entries:
            exists = db.query(Category).filter_by(user_id=user.id, type=txn_type, name=name).first()
            if not exists:
                db.add(Category(user_id=user.id, type=txn_type, name=name, icon=icon))
    db.flush()
    return user


def seed() -> None:
    init_db()
    db: Session = SessionLocal()
    try:
        seed_user(db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
