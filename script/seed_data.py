#!/usr/bin/env python3
"""
Database Seed Script
Populate demo trips into the database

Features:
1. Create tables if they don't exist
2. Create a handful of scheduled trips for one company

Notes:
- Seat state is not stored; the booking service rebuilds it from reservations
- Re-running skips trips that already exist
"""

import asyncio
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from src.platform.database.orm_db_setting import (
    Database,
    create_db_and_tables,
    dispose_engine,
    get_session_maker,
)
from src.service.booking.domain.entity import Trip
from src.service.booking.domain.enum import TripStatus
from src.service.booking.driven_adapter.repo.trip_repo_impl import (
    TripCommandRepoImpl,
    TripQueryRepoImpl,
)


COMPANY_ID = os.getenv('SEED_COMPANY_ID', 'company-senbus')


@dataclass
class TripConfig:
    """Trip seed configuration"""
    route_id: str
    vehicle_id: str
    departs_in_hours: int
    duration_hours: int
    capacity: int
    price: int


TEST_TRIPS = [
    TripConfig('route-dakar-thies', 'vehicle-dk-1234', 4, 2, 30, 2500),
    TripConfig('route-dakar-saint-louis', 'vehicle-dk-5678', 6, 5, 45, 6000),
    TripConfig('route-thies-touba', 'vehicle-th-0042', 24, 3, 18, 3500),
]


def _build_trip(config: TripConfig, now: datetime) -> Trip:
    departure_at = now.replace(minute=0, second=0, microsecond=0) + timedelta(
        hours=config.departs_in_hours
    )
    return Trip(
        id=f'trip-{config.route_id.removeprefix("route-")}-{departure_at:%Y%m%d%H%M}',
        company_id=COMPANY_ID,
        route_id=config.route_id,
        vehicle_id=config.vehicle_id,
        departure_at=departure_at,
        arrival_at=departure_at + timedelta(hours=config.duration_hours),
        base_price=config.price,
        current_price=config.price,
        capacity=config.capacity,
        status=TripStatus.SCHEDULED,
    )


async def create_trips(database: Database) -> list[str]:
    """Create demo trips

    Returns:
        list[str]: ids of the trips created by this run
    """
    print(f'🚌 Creating {len(TEST_TRIPS)} trips for {COMPANY_ID}...')

    query_repo = TripQueryRepoImpl(session_factory=database.session)
    command_repo = TripCommandRepoImpl(session_factory=database.session)
    now = datetime.now(timezone.utc)

    created = []
    for config in TEST_TRIPS:
        trip = _build_trip(config, now)
        if await query_repo.get_by_id(trip_id=trip.id) is not None:
            print(f'   ⏭️  Skipped existing trip: {trip.id}')
            continue
        await command_repo.create(trip=trip)
        created.append(trip.id)
        print(
            f'   ✅ Created trip: ID={trip.id}, Seats={trip.capacity}, '
            f'Departs={trip.departure_at.isoformat()}'
        )

    return created


async def verify_data():
    """Verify seeded data"""
    print('🔍 Verifying seeded data...')

    async with get_session_maker()() as session:
        for table in ['trip', 'reservation', 'ticket', 'payment']:
            result = await session.execute(text(f'SELECT COUNT(*) FROM {table}'))
            print(f'   {table.capitalize()} count: {result.scalar()}')

        result = await session.execute(
            text('SELECT id, capacity, current_price FROM trip ORDER BY departure_at')
        )
        for trip in result.fetchall():
            print(f'      Trip ID={trip[0]}, Seats={trip[1]}, Price={trip[2]}')

    print('   ✅ Data verification completed!')


async def main():
    print('🌱 Starting data seeding...')
    print('=' * 50)

    try:
        await create_db_and_tables()
        await create_trips(Database())
        print()
        await verify_data()

        print()
        print('=' * 50)
        print('🌱 Data seeding completed!')

    except Exception as e:
        print(f'❌ Seeding failed: {e}')
        exit(1)

    finally:
        await dispose_engine()


if __name__ == '__main__':
    asyncio.run(main())
