from datetime import date, timedelta

import pytest

from backend.src.models.profile import ProfileUpdate, StudyStreak
from backend.src.services.profile import ProfileStore, StreakService, advance_streak

USER_ID = "user-123"


@pytest.fixture
def store(db) -> ProfileStore:
    return ProfileStore(db)


def test_profile_is_created_with_avatar_seed(store: ProfileStore) -> None:
    profile = store.get_profile(USER_ID)

    assert profile.name == ""
    assert profile.avatar_seed
    assert profile.avatar_url.endswith(f"seed={profile.avatar_seed}")
    assert store.get_profile(USER_ID).avatar_seed == profile.avatar_seed


def test_partial_update_strips_and_keeps_other_fields(store: ProfileStore) -> None:
    store.update_profile(USER_ID, ProfileUpdate(name="  Ana Souza ", course="Medicine"))
    profile = store.update_profile(USER_ID, ProfileUpdate(nickname="ana"))

    assert (profile.name, profile.nickname, profile.course) == ("Ana Souza", "ana", "Medicine")
    assert store.get_profile(USER_ID) == profile


def test_regenerate_avatar_changes_seed(store: ProfileStore) -> None:
    before = store.get_profile(USER_ID).avatar_seed

    after = store.update_profile(USER_ID, ProfileUpdate(regenerate_avatar=True)).avatar_seed

    assert after != before


def test_subscribers_receive_updates_until_unsubscribed(store: ProfileStore) -> None:
    received = []
    other_user = []
    unsubscribe = store.subscribe(USER_ID, received.append)
    store.subscribe("someone-else", other_user.append)

    store.update_profile(USER_ID, ProfileUpdate(name="Ana"))
    unsubscribe()
    store.update_profile(USER_ID, ProfileUpdate(name="Bia"))

    assert [profile.name for profile in received] == ["Ana"]
    assert other_user == []
    unsubscribe()


def test_failing_listener_does_not_block_others(store: ProfileStore, caplog) -> None:
    received = []

    def broken(profile) -> None:
        raise RuntimeError("listener crashed")

    store.subscribe(USER_ID, broken)
    store.subscribe(USER_ID, received.append)

    profile = store.update_profile(USER_ID, ProfileUpdate(name="Ana"))

    assert received == [profile]
    assert "Profile listener failed" in caplog.text


@pytest.mark.parametrize(
    "current, longest, last_offset, expected_current, expected_longest",
    [
        (0, 0, None, 1, 1),
        (3, 5, -1, 4, 5),
        (5, 5, -1, 6, 6),
        (4, 9, -2, 1, 9),
        # last study date in the future
        (4, 9, 3, 4, 9),
    ],
)
def test_advance_streak(today, current, longest, last_offset, expected_current, expected_longest) -> None:
    last = None if last_offset is None else today + timedelta(days=last_offset)
    start = StudyStreak(current_streak=current, longest_streak=longest, last_study_date=last)

    streak = advance_streak(start, today)

    assert streak.current_streak == expected_current
    assert streak.longest_streak == expected_longest
    assert streak.last_study_date == today


def test_same_day_is_counted_once(today) -> None:
    streak = StudyStreak(current_streak=2, longest_streak=2, last_study_date=today)

    assert advance_streak(streak, today) is streak


def test_streak_service_persists(db, today) -> None:
    service = StreakService(db)

    assert service.get_streak(USER_ID) == StudyStreak()
    service.record_study_day(USER_ID, today)
    service.record_study_day(USER_ID, today)
    service.record_study_day(USER_ID, today + timedelta(days=1))

    assert service.get_streak(USER_ID) == StudyStreak(
        current_streak=2, longest_streak=2, last_study_date=date(2025, 3, 11)
    )

    service.record_study_day(USER_ID, today + timedelta(days=5))
    assert service.get_streak(USER_ID).current_streak == 1
    assert service.get_streak(USER_ID).longest_streak == 2
