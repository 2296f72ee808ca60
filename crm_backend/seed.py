from __future__ import annotations

import argparse
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from crm_backend.clock import now as clock_now
from crm_backend.db import SessionLocal, init_db
from crm_backend.logging_config import configure_logging
from crm_backend.models import (
    Activity,
    Contact,
    Deal,
    PipelineStage,
    StageKind,
    Task,
    Team,
    User,
    UserTeam,
)

logger = logging.getLogger("crm_backend.seed")

USERS = [
    {"username": "sarah.johnson", "name": "Sarah Johnson", "email": "sarah.j@company.com"},
    {"username": "david.kim", "name": "David Kim", "email": "david.k@company.com"},
    {"username": "michael.rodriguez", "name": "Michael Rodriguez", "email": "michael.r@company.com"},
    {"username": "emily.chen", "name": "Emily Chen", "email": "emily.c@company.com"},
]

TEAMS = [
    {"name": "Sales", "color": "hsl(var(--secondary))"},
    {"name": "Marketing", "color": "hsl(var(--accent))"},
    {"name": "Support", "color": "hsl(var(--success))"},
]

# (user index, team index, is_admin)
MEMBERSHIPS = [(0, 0, True), (1, 0, False), (2, 1, True), (3, 2, True)]

STAGES = [
    {"name": "Lead", "order": 1, "color": "blue", "kind": StageKind.OPEN.value},
    {"name": "Qualified", "order": 2, "color": "indigo", "kind": StageKind.OPEN.value},
    {"name": "Proposal", "order": 3, "color": "purple", "kind": StageKind.OPEN.value},
    {"name": "Negotiation", "order": 4, "color": "amber", "kind": StageKind.OPEN.value},
    {"name": "Closed Won", "order": 5, "color": "green", "kind": StageKind.WON.value},
    {"name": "Closed Lost", "order": 6, "color": "red", "kind": StageKind.LOST.value},
]

CONTACTS = [
    {"name": "Jennifer Lee", "email": "jennifer@acmecorp.com", "company": "Acme Corp",
     "title": "CTO", "source": "website", "status": "customer"},
    {"name": "Robert Chen", "email": "robert@globex.com", "company": "Globex",
     "title": "VP Sales", "source": "referral", "status": "lead"},
    {"name": "Amanda Torres", "email": "amanda@initech.com", "company": "Initech",
     "title": "Operations Manager", "source": "linkedin", "status": "lead"},
    {"name": "Marcus Webb", "email": "marcus@umbrella.io", "company": "Umbrella",
     "title": "CEO", "source": "event", "status": "partner"},
    {"name": "Priya Nair", "email": "priya@hooli.com", "company": "Hooli",
     "title": "Head of IT", "source": "website", "status": "customer"},
]

# (name, value, stage index, contact index, owner index, days since update)
DEALS = [
    ("Acme website redesign", "12000", 0, 0, 0, 2),
    ("Globex CRM rollout", "45000", 1, 1, 1, 5),
    ("Initech support plan", "8000", 2, 2, 0, 1),
    ("Umbrella partnership", "30000", 3, 3, 2, 3),
    ("Hooli licence renewal", "22000", 4, 4, 0, 0),
    ("Acme analytics add-on", "9500", 4, 0, 1, 35),
    ("Globex pilot", "5000", 5, 1, 3, 4),
]


# Rows each dependent group indexes into
DEALS_NEED = {
    "stages": 1 + max(d[2] for d in DEALS),
    "contacts": 1 + max(d[3] for d in DEALS),
    "users": 1 + max(d[4] for d in DEALS),
}
TEAMS_NEED_USERS = 1 + max(m[0] for m in MEMBERSHIPS)
TASKS_NEED = {"users": 2, "deals": 3, "contacts": 1}
ACTIVITIES_NEED = {"users": 2, "deals": 5, "contacts": 2}


def _missing_prerequisites(group: str, needs: Dict[str, int], **rows: List) -> bool:
    short = {name: len(rows[name]) for name, need in needs.items() if len(rows[name]) < need}
    if short:
        logger.warning(
            "Skipping %s: existing rows too few (have %s, need %s)",
            group,
            short,
            {name: needs[name] for name in short},
        )
    return bool(short)


def _seed_users(session: Session) -> List[User]:
    users = session.query(User).order_by(User.id).all()
    if users:
        logger.info("Users already exist, skipping creation")
        return users

    logger.info("Creating users...")
    users = [User(**data) for data in USERS]
    session.add_all(users)
    session.flush()
    return users


def _seed_teams(session: Session, users: List[User]) -> None:
    if session.query(Team).count():
        logger.info("Teams already exist, skipping creation")
        return
    if _missing_prerequisites("teams", {"users": TEAMS_NEED_USERS}, users=users):
        return

    logger.info("Creating teams...")
    teams = [Team(**data) for data in TEAMS]
    session.add_all(teams)
    session.flush()

    for user_idx, team_idx, is_admin in MEMBERSHIPS:
        session.add(
            UserTeam(user_id=users[user_idx].id, team_id=teams[team_idx].id, is_admin=is_admin)
        )


def _seed_stages(session: Session) -> List[PipelineStage]:
    stages = session.query(PipelineStage).order_by(PipelineStage.order).all()
    if stages:
        logger.info("Pipeline stages already exist, skipping creation")
        return stages

    logger.info("Creating pipeline stages...")
    stages = [PipelineStage(**data) for data in STAGES]
    session.add_all(stages)
    session.flush()
    return stages


def _seed_contacts(session: Session, users: List[User]) -> List[Contact]:
    contacts = session.query(Contact).order_by(Contact.id).all()
    if contacts:
        logger.info("Contacts already exist, skipping creation")
        return contacts

    logger.info("Creating contacts...")
    contacts = [
        Contact(**data, assigned_to=users[idx % len(users)].id)
        for idx, data in enumerate(CONTACTS)
    ]
    session.add_all(contacts)
    session.flush()
    return contacts


def _seed_deals(
    session: Session,
    stages: List[PipelineStage],
    contacts: List[Contact],
    users: List[User],
    moment: datetime,
) -> List[Deal]:
    deals = session.query(Deal).order_by(Deal.id).all()
    if deals:
        logger.info("Deals already exist, skipping creation")
        return deals
    if _missing_prerequisites(
        "deals", DEALS_NEED, stages=stages, contacts=contacts, users=users
    ):
        return []

    logger.info("Creating deals...")
    deals = []
    for name, value, stage_idx, contact_idx, owner_idx, days_ago in DEALS:
        touched = moment - timedelta(days=days_ago)
        deals.append(
            Deal(
                name=name,
                value=Decimal(value),
                stage_id=stages[stage_idx].id,
                contact_id=contacts[contact_idx].id,
                owner_id=users[owner_idx].id,
                expected_close_date=moment + timedelta(days=30 - days_ago),
                created_at=touched - timedelta(days=14),
                updated_at=touched,
            )
        )
    session.add_all(deals)
    session.flush()
    return deals


def _seed_tasks(
    session: Session,
    users: List[User],
    deals: List[Deal],
    contacts: List[Contact],
    moment: datetime,
) -> None:
    if session.query(Task).count():
        logger.info("Tasks already exist, skipping creation")
        return
    if _missing_prerequisites(
        "tasks", TASKS_NEED, users=users, deals=deals, contacts=contacts
    ):
        return

    logger.info("Creating tasks...")
    today = moment.replace(hour=9, minute=0, second=0, microsecond=0)
    session.add_all(
        [
            Task(title="Call Jennifer about renewal", time="9:00 AM - 10:00 AM",
                 due_date=today, priority="high", assigned_to=users[0].id,
                 related_to_type="contact", related_to_id=contacts[0].id),
            Task(title="Prepare Initech proposal", time="11:00 AM - 12:00 PM",
                 due_date=today, priority="medium", assigned_to=users[0].id,
                 related_to_type="deal", related_to_id=deals[2].id),
            Task(title="Pipeline review", time="2:00 PM - 3:00 PM",
                 due_date=today, priority="low", assigned_to=users[0].id),
            Task(title="Send Globex contract", time="10:00 AM - 10:30 AM",
                 due_date=today + timedelta(days=1), priority="high",
                 assigned_to=users[1].id, related_to_type="deal",
                 related_to_id=deals[1].id),
        ]
    )


def _seed_activities(
    session: Session,
    users: List[User],
    deals: List[Deal],
    contacts: List[Contact],
    moment: datetime,
) -> None:
    if session.query(Activity).count():
        logger.info("Activities already exist, skipping creation")
        return
    if _missing_prerequisites(
        "activities", ACTIVITIES_NEED, users=users, deals=deals, contacts=contacts
    ):
        return

    logger.info("Creating activities...")
    session.add_all(
        [
            Activity(type="call", title="Discovery call with Robert",
                     user_id=users[1].id, related_to_type="contact",
                     related_to_id=contacts[1].id,
                     created_at=moment - timedelta(hours=5)),
            Activity(type="email", title="Sent proposal to Initech",
                     user_id=users[0].id, related_to_type="deal",
                     related_to_id=deals[2].id, meta={"subject": "Support plan proposal"},
                     created_at=moment - timedelta(hours=3)),
            Activity(type="update", title="Hooli licence renewal closed",
                     user_id=users[0].id, related_to_type="deal",
                     related_to_id=deals[4].id, meta={"from": "Negotiation", "to": "Closed Won"},
                     created_at=moment - timedelta(hours=1)),
        ]
    )


def seed_database(session: Session, now: Optional[datetime] = None) -> Dict[str, int]:
    """
    Insert demo data. Each group is skipped when its table already has rows,
    so running this twice is harmless.
    """
    moment = now or clock_now()

    users = _seed_users(session)
    _seed_teams(session, users)
    stages = _seed_stages(session)
    contacts = _seed_contacts(session, users)
    deals = _seed_deals(session, stages, contacts, users, moment)
    _seed_tasks(session, users, deals, contacts, moment)
    _seed_activities(session, users, deals, contacts, moment)
    session.flush()

    counts = {
        "users": session.query(User).count(),
        "stages": session.query(PipelineStage).count(),
        "contacts": session.query(Contact).count(),
        "deals": session.query(Deal).count(),
        "tasks": session.query(Task).count(),
        "activities": session.query(Activity).count(),
    }
    logger.info("Seed complete: %s", counts)
    return counts


def run_seed() -> None:
    init_db()
    db: Session = SessionLocal()
    try:
        seed_database(db)
        db.commit()
    except Exception:
        logger.exception("Database seeding failed; rolling back.")
        db.rollback()
        raise
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the CRM database with demo data.")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL for this run (e.g. DEBUG).",
    )
    args = parser.parse_args()

    configure_logging(args.log_level)
    run_seed()


if __name__ == "__main__":
    main()
