"""Seed a database with an admin user and sample device events.

Usage:
    python -m scripts.seed_events [--events 50] [--create-tables]

Prints a bearer token for the admin user so the API can be tried out
straight away.
"""

import argparse
import random
import time

from tqdm import tqdm

from config import config
from db.database import create_tables, session_scope
from models.event import EventAdORM, EventChannelORM, EventORM
from models.user import UserORM
from utils.jwt import create_token

DEVICES = ['R-1001', 'R-1002', 'R-1003']
CHANNELS = [('Global TV', 0.81), ('Nepal TV', 0.85), ('Kantipur TV', 0.78)]
ADS = [('Shivam Cement', 0.96), ('Dabur Honey', 0.92), ('Wai Wai Noodles', 0.94)]
EVENT_TYPE = 29
BATCH_SIZE = 10
SEVEN_DAYS = 7 * 24 * 60 * 60

def random_timestamp(now: int) -> int:
    """A timestamp (seconds) within the last seven days."""
    return random.randint(now - SEVEN_DAYS, now)

def build_event(event_id: int, device_id: str, now: int) -> EventORM:
    timestamp = random_timestamp(now)
    channels = random.sample(CHANNELS, 1) if random.random() > 0.3 else []
    ads = random.sample(ADS, random.randint(1, 3)) if random.random() > 0.4 else []
    image_path = None
    if ads or channels:
        image_path = (
            f"https://apm-captured-images.s3.{config.aws.region}.amazonaws.com/"
            f"frames/{device_id}/{device_id}_{timestamp}_recognized.jpg"
        )
    return EventORM(
        id=event_id,
        device_id=device_id,
        timestamp=timestamp,
        type=EVENT_TYPE,
        image_path=image_path,
        max_score=max((score for _, score in ads), default=None),
        ads=[EventAdORM(name=name, score=score) for name, score in ads],
        channels=[EventChannelORM(name=name, score=score) for name, score in channels],
    )

def ensure_admin(email: str) -> str:
    """Create the admin user if it does not exist and return a token for it."""
    with session_scope() as session:
        user = session.query(UserORM).filter(UserORM.email == email).first()
        if user is None:
            user = UserORM(email=email, full_name='Admin', role='admin', enabled=True)
            session.add(user)
            session.commit()
            print(f"Created admin user {email}")
        token, _ = create_token(user)
        return token

def seed_events(count: int) -> int:
    now = int(time.time())
    first_id = now * 1000
    devices = [DEVICES[i % len(DEVICES)] for i in range(count)]
    created = 0
    with session_scope() as session:
        for start in tqdm(range(0, count, BATCH_SIZE), desc="Seeding events"):
            batch = [
                build_event(first_id + i, devices[i], now)
                for i in range(start, min(start + BATCH_SIZE, count))
            ]
            session.add_all(batch)
            session.commit()
            created += len(batch)
    return created

def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument('--events', type=int, default=50, help='Number of events to create')
    parser.add_argument('--admin', default=config.test.username, help='Email of the admin user')
    parser.add_argument('--create-tables', action='store_true', help='Create the schema first (SQLite/dev only)')
    args = parser.parse_args()

    if args.create_tables:
        create_tables()
    token = ensure_admin(args.admin)
    created = seed_events(args.events)
    print(f"Seeded {created} events across {len(DEVICES)} devices.")
    print(f"Admin token: {token}")

if __name__ == "__main__":
    main()
