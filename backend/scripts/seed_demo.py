"""Create demo staff accounts and a landing page for local development."""

from __future__ import annotations

from sqlmodel import Session, select

from sacdesk.core.security import get_password_hash
from sacdesk.db import engine, init_db
from sacdesk.models import LandingPage, Role, User


def ensure_user(
    session: Session,
    *,
    email: str,
    full_name: str,
    password: str,
    role: str,
) -> User:
    user = session.exec(select(User).where(User.email == email)).one_or_none()
    if user:
        return user

    user = User(
        email=email,
        full_name=full_name,
        hashed_password=get_password_hash(password),
        role=role,
        is_active=True,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def ensure_landing_page(session: Session, responsible: User) -> LandingPage:
    page = session.exec(select(LandingPage).where(LandingPage.slug == "support")).one_or_none()
    if page:
        return page

    page = LandingPage(
        slug="support",
        title="Customer Support",
        welcome_message="Tell us what happened and we will get back to you.",
        success_message="Your request was received.",
        responsible_id=responsible.id,
        created_by=responsible.id,
    )
    session.add(page)
    session.commit()
    session.refresh(page)
    return page


def main() -> None:
    init_db()
    with Session(engine) as session:
        demo_accounts = [
            ("admin@example.com", "Admin Demo", "Password123!", Role.ADMIN),
            ("supervisor@example.com", "Supervisor Demo", "Password123!", Role.SUPERVISOR),
            ("analyst@example.com", "Analyst Demo", "Password123!", Role.ANALYST),
        ]

        users = []
        for email, full_name, password, role in demo_accounts:
            user = ensure_user(session, email=email, full_name=full_name, password=password, role=role)
            users.append(user)
            print(f"✔ User ensured: {user.email} ({user.role})")

        page = ensure_landing_page(session, users[-1])
        print(f"✔ Landing page ensured: /{page.slug}")


if __name__ == "__main__":
    main()
