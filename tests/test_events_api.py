from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from syncd.api.deps import get_reminders
from syncd.db.database import Base, get_db
from syncd.main import app
from syncd.models import (
    CampusEvent,
    EmailNotification,
    EventCategory,
    EventTag,
    NotificationKind,
    User,
    UserPreference,
)
from syncd.scheduler.reminders import NotificationScheduler

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def session_factory():
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_reminders] = lambda: NotificationScheduler()
    yield factory
    app.dependency_overrides.clear()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def sample_data(session_factory):
    soon = datetime.now().replace(microsecond=0) + timedelta(days=5)
    async with session_factory() as session:
        user = User(name="Ada", email="ada@example.com")
        upcoming = CampusEvent(
            title="Spring Concert",
            event_date=soon,
            category=EventCategory.ARTS,
            link="https://calendar.example.edu/event/concert",
        )
        upcoming.tags = [EventTag(tag_name="arts")]
        past = CampusEvent(
            title="Old Lecture",
            event_date=datetime.now() - timedelta(days=10),
            category=EventCategory.ACADEMIC,
        )
        session.add_all([user, upcoming, past])
        await session.commit()
        return {"user_id": user.id, "event_id": upcoming.id, "event_date": soon}


def client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_list_upcoming_events(sample_data):
    async with client() as ac:
        resp = await ac.get("/api/events")
    assert resp.status_code == 200
    data = resp.json()
    assert [e["title"] for e in data] == ["Spring Concert"]
    assert data[0]["tags"] == ["arts"]
    assert data[0]["category"] == "ARTS"
    assert data[0]["attendees"] == 0
    assert data[0]["is_subscribed"] is False


@pytest.mark.asyncio
async def test_list_events_rejects_unknown_category(sample_data):
    async with client() as ac:
        resp = await ac.get("/api/events", params={"category": "nope"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_subscribe_schedules_event_reminder_once(session_factory, sample_data):
    headers = {"X-User-Id": str(sample_data["user_id"])}
    url = f"/api/events/{sample_data['event_id']}/subscribe"

    async with client() as ac:
        first = await ac.post(url, headers=headers)
        second = await ac.post(url, headers=headers)
        listing = await ac.get("/api/events", headers=headers)
        subscribed = await ac.get("/api/events/subscribed", headers=headers)

    assert first.json()["message"] == "Successfully subscribed to event"
    assert second.json()["message"] == "Already subscribed to event"
    assert listing.json()[0]["is_subscribed"] is True
    assert listing.json()[0]["attendees"] == 1
    assert [e["title"] for e in subscribed.json()] == ["Spring Concert"]

    async with session_factory() as session:
        records = (await session.execute(select(EmailNotification))).scalars().all()
    assert len(records) == 1
    assert records[0].kind == NotificationKind.event_reminder
    assert records[0].scheduled_time == sample_data["event_date"] - timedelta(hours=24)


@pytest.mark.asyncio
async def test_unsubscribe_removes_pending_reminder(session_factory, sample_data):
    headers = {"X-User-Id": str(sample_data["user_id"])}
    url = f"/api/events/{sample_data['event_id']}/subscribe"

    async with client() as ac:
        await ac.post(url, headers=headers)
        resp = await ac.delete(url, headers=headers)
        subscribed = await ac.get("/api/events/subscribed", headers=headers)

    assert resp.status_code == 200
    assert subscribed.json() == []
    async with session_factory() as session:
        records = (await session.execute(select(EmailNotification))).scalars().all()
    assert records == []


@pytest.mark.asyncio
async def test_subscribe_unknown_event_is_404(sample_data):
    async with client() as ac:
        resp = await ac.post(
            "/api/events/999/subscribe", headers={"X-User-Id": str(sample_data["user_id"])}
        )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_preferences(sample_data):
    headers = {"X-User-Id": str(sample_data["user_id"])}
    async with client() as ac:
        before = await ac.get("/api/users/me/preferences", headers=headers)
        resp = await ac.put(
            "/api/users/me/preferences",
            json={"name": "Ada L.", "reminder_hours": 6, "daily_digest_time": "07:30"},
            headers=headers,
        )
        after = await ac.get("/api/users/me/preferences", headers=headers)

    assert before.json()["reminder_hours"] == 24
    assert before.json()["daily_digest_time"] == "08:00"
    assert resp.status_code == 200
    assert after.json()["name"] == "Ada L."
    assert after.json()["reminder_hours"] == 6
    assert after.json()["daily_digest_time"] == "07:30"
    assert after.json()["email_notifications"] is True


@pytest.mark.asyncio
async def test_preferences_reject_bad_offset(sample_data):
    async with client() as ac:
        resp = await ac.put(
            "/api/users/me/preferences",
            json={"reminder_hours": 0},
            headers={"X-User-Id": str(sample_data["user_id"])},
        )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_failed_preferences_commit_keeps_profile_unchanged(session_factory, sample_data):
    headers = {"X-User-Id": str(sample_data["user_id"])}

    async def flush_then_fail(self):
        await self.flush()
        raise SQLAlchemyError("database is locked")

    async with client() as ac:
        with patch.object(AsyncSession, "commit", flush_then_fail):
            with pytest.raises(SQLAlchemyError):
                await ac.put(
                    "/api/users/me/preferences",
                    json={"name": "Ada L.", "reminder_hours": 6, "theme": "dark"},
                    headers=headers,
                )
        after = await ac.get("/api/users/me/preferences", headers=headers)

    assert after.json()["name"] == "Ada"
    assert after.json()["reminder_hours"] == 24
    assert after.json()["theme"] == "light"
    async with session_factory() as session:
        assert (await session.execute(select(UserPreference))).scalars().all() == []
