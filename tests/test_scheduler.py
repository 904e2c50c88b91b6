"""
Digest scheduler tests.
Tests for trigger firing, dedupe, mode independence and lifecycle.
"""

import asyncio
from types import SimpleNamespace

import pytest

from courtside.data.provider import ProviderError
from courtside.database.models import Preferences
from courtside.digest.models import DigestMode, GamePreview, GameSummary
from courtside.digest.scheduler import DigestScheduler
from courtside.digest.state import FetchPhase
from courtside.preferences import PreferenceGate

from conftest import LA_PREVIEW_INSTANT, LA_SUMMARY_INSTANT, utc


class TestTriggerFiring:
    """Test firing at trigger times."""

    @pytest.mark.asyncio
    async def test_fires_preview_at_six(self, scheduler, provider, lakers):
        """Should fetch the preview with the user's teams and timezone at 06:00."""
        task = scheduler.tick()
        assert task is not None
        await task

        assert provider.calls == [
            (DigestMode.PREVIEW, [lakers], "America/Los_Angeles")
        ]
        assert scheduler.last_fired_key == "Mon Jan 15 2024-06:00"

    @pytest.mark.asyncio
    async def test_same_minute_and_next_minute_do_not_fire_again(
        self, scheduler, provider, clock
    ):
        """Should fire once at 06:00, not on a repeat tick or at 06:01."""
        await scheduler.tick()

        clock.advance(seconds=5)
        assert scheduler.tick() is None

        clock.set(utc(2024, 1, 15, 14, 1, 0))
        assert scheduler.tick() is None

        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_no_double_fire_while_fetch_in_flight(
        self, scheduler, provider, clock
    ):
        """Should record the key before the fetch resolves."""
        release = provider.hold(DigestMode.PREVIEW)

        task = scheduler.tick()
        for _ in range(11):
            clock.advance(seconds=5)
            assert scheduler.tick() is None
            await asyncio.sleep(0)

        release.set()
        await task
        assert len(provider.calls_for(DigestMode.PREVIEW)) == 1

    @pytest.mark.asyncio
    async def test_fires_summary_at_ten_pm(self, scheduler, provider, view, clock):
        """Should fetch the summary at 22:00 and switch the active tab."""
        clock.set(LA_SUMMARY_INSTANT)

        await scheduler.tick()

        assert provider.calls_for(DigestMode.SUMMARY)
        assert provider.calls_for(DigestMode.SUMMARY)[0][2] is None
        assert view.active_mode == DigestMode.SUMMARY
        assert scheduler.last_fired_key == "Mon Jan 15 2024-22:00"

    @pytest.mark.asyncio
    async def test_no_fire_outside_trigger_times(self, scheduler, provider, clock):
        """Should not fire at non-trigger minutes."""
        for hour in (0, 5, 7, 12, 21, 23):
            clock.set(utc(2024, 1, 15, (hour + 8) % 24, 30))
            assert scheduler.tick() is None
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_fires_again_next_day(self, scheduler, provider, clock):
        """Should fire once per day."""
        await scheduler.tick()
        clock.advance(days=1)
        await scheduler.tick()

        assert len(provider.calls_for(DigestMode.PREVIEW)) == 2
        assert scheduler.last_fired_key == "Tue Jan 16 2024-06:00"

    @pytest.mark.asyncio
    async def test_timezone_edit_applies_on_next_tick(
        self, scheduler, provider, gate, preferences, clock
    ):
        """Should use the updated timezone without restarting."""
        gate.complete_onboarding(
            Preferences(
                email=preferences.email,
                timezone="America/New_York",
                teams=preferences.teams,
            )
        )
        # 06:00 in Los Angeles is 09:00 in New York
        assert scheduler.tick() is None

        clock.set(utc(2024, 1, 15, 11, 0))
        await scheduler.tick()
        assert provider.calls[0][2] == "America/New_York"


class TestTimezoneIndependence:
    """Test that triggers follow each user's zone."""

    @pytest.mark.asyncio
    async def test_different_zones_fire_at_different_instants(
        self, fetcher, view, clock, provider, lakers
    ):
        """Should fire 06:00 triggers at each zone's own UTC instant."""
        def make(timezone):
            gate = PreferenceGate()
            gate.complete_onboarding(
                Preferences(email="a@example.com", timezone=timezone, teams=[lakers])
            )
            return DigestScheduler(gate, fetcher, view, clock=clock)

        los_angeles = make("America/Los_Angeles")
        kolkata = make("Asia/Kolkata")

        # 00:30 UTC is 06:00 in Kolkata, 16:30 in Los Angeles
        clock.set(utc(2024, 1, 15, 0, 30))
        assert los_angeles.tick() is None
        await kolkata.tick()

        clock.set(LA_PREVIEW_INSTANT)
        assert kolkata.tick() is None
        await los_angeles.tick()

        zones = [call[2] for call in provider.calls]
        assert zones == ["Asia/Kolkata", "America/Los_Angeles"]

    @pytest.mark.asyncio
    async def test_invalid_timezone_is_no_match(self, fetcher, view, clock, provider, lakers):
        """Should treat an unknown zone as no trigger instead of raising."""
        gate = SimpleNamespace(
            active_preferences=Preferences(
                email="a@example.com", timezone="Mars/Olympus_Mons", teams=[lakers]
            )
        )
        scheduler = DigestScheduler(gate, fetcher, view, clock=clock)

        assert scheduler.tick() is None
        assert provider.calls == []


class TestFetchOutcomes:
    """Test notification and failure behaviour of fired triggers."""

    @pytest.mark.asyncio
    async def test_success_notifies_with_email(self, scheduler, provider, view):
        """Should notify naming the digest and destination email."""
        provider.preview_games = [
            GamePreview(matchup="Lakers vs Warriors", time="7:00 PM PT", broadcaster="TNT")
        ]

        await scheduler.tick()

        assert view.notification == "Morning Preview sent to fan@example.com"
        assert view.preview_data == (provider.preview_games[0],)

    @pytest.mark.asyncio
    async def test_empty_result_is_loaded_not_failed(self, scheduler, view):
        """Should treat zero games as a successful, loaded digest."""
        await scheduler.tick()

        state = view.mode_state(DigestMode.PREVIEW)
        assert state.phase is FetchPhase.LOADED
        assert state.data == ()
        assert view.notification is not None

    @pytest.mark.asyncio
    async def test_failure_is_silent_and_not_retried(
        self, scheduler, provider, view, clock
    ):
        """Should keep prior data, skip the notification and not refire."""
        provider.errors[DigestMode.PREVIEW] = ProviderError("network down")

        await scheduler.tick()

        assert view.mode_state(DigestMode.PREVIEW).phase is FetchPhase.FAILED
        assert view.notification is None
        assert view.mode_state(DigestMode.PREVIEW).phase is FetchPhase.FAILED
        assert view.preview_data is None

        clock.advance(seconds=5)
        assert scheduler.tick() is None
        assert len(provider.calls) == 1


class TestModeIndependence:
    """Test that preview and summary don't interfere."""

    @pytest.mark.asyncio
    async def test_summary_while_preview_loading(self, scheduler, provider, view, clock):
        """Should leave the loading preview untouched when the summary fires."""
        release = provider.hold(DigestMode.PREVIEW)
        provider.summary_games = [
            GameSummary(matchup="Lakers vs Suns", score="110 - 104", details_link="https://example.com/g/1")
        ]

        preview_task = scheduler.tick()
        await asyncio.sleep(0)
        assert view.is_loading(DigestMode.PREVIEW)

        clock.set(LA_SUMMARY_INSTANT)
        await scheduler.tick()

        assert view.is_loading(DigestMode.PREVIEW)
        assert view.preview_data is None
        assert view.summary_data == tuple(provider.summary_games)

        release.set()
        await preview_task
        assert view.mode_state(DigestMode.PREVIEW).phase is FetchPhase.LOADED


class TestGraceWindow:
    """Test the optional catch-up window."""

    @pytest.mark.asyncio
    async def test_late_tick_fires_within_grace(self, gate, fetcher, view, clock, provider):
        """Should fire a missed trigger within the grace window, once."""
        scheduler = DigestScheduler(gate, fetcher, view, clock=clock, grace_minutes=5)
        clock.set(utc(2024, 1, 15, 14, 3))

        await scheduler.tick()
        clock.advance(minutes=1)
        assert scheduler.tick() is None

        assert len(provider.calls) == 1
        assert scheduler.last_fired_key == "Mon Jan 15 2024-06:00"

    @pytest.mark.asyncio
    async def test_no_catch_up_by_default(self, scheduler, clock, provider):
        """Should skip a trigger whose minute was missed."""
        clock.set(utc(2024, 1, 15, 14, 1))
        assert scheduler.tick() is None
        assert provider.calls == []


class TestLifecycle:
    """Test start/stop and enable gating."""

    @pytest.mark.asyncio
    async def test_disabled_gate_never_fires(self, scheduler, gate, provider):
        """Should not fetch after preferences are cleared."""
        gate.clear()
        assert scheduler.tick() is None
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_manage_disables_until_saved(self, scheduler, gate, preferences, provider):
        """Should pause while onboarding is reopened."""
        gate.manage()
        assert scheduler.tick() is None

        gate.complete_onboarding(preferences)
        await scheduler.tick()
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_poll_loop_fires_once(self, scheduler, provider):
        """Should fire once across many real ticks in the same minute."""
        scheduler.start()
        assert scheduler.running

        await asyncio.sleep(0.1)
        scheduler.stop()
        await asyncio.gather(*scheduler.inflight)

        assert not scheduler.running
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_attach_follows_gate(self, scheduler, gate, preferences, provider):
        """Should start when enabled and stop when disabled."""
        scheduler.attach()
        assert scheduler.running

        gate.clear()
        assert not scheduler.running

        await asyncio.sleep(0.05)
        assert provider.calls == []

        gate.complete_onboarding(preferences)
        assert scheduler.running

        scheduler.detach()
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_attach_without_preferences_stays_idle(self, fetcher, view, clock):
        """Should not start a timer when onboarding isn't complete."""
        scheduler = DigestScheduler(PreferenceGate(), fetcher, view, clock=clock)
        scheduler.attach()
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_stop_cancels_poll_task(self, scheduler):
        """Should cancel the running poll task."""
        scheduler.start()
        task = scheduler._task
        scheduler.stop()
        await asyncio.sleep(0.01)

        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_late_completion_after_dispose_is_ignored(
        self, scheduler, provider, view
    ):
        """Should not write results or notifications to a disposed view."""
        release = provider.hold(DigestMode.PREVIEW)
        provider.preview_games = [
            GamePreview(matchup="Lakers vs Warriors", time="7:00 PM PT", broadcaster="TNT")
        ]

        task = scheduler.tick()
        await asyncio.sleep(0)
        scheduler.stop()
        view.dispose()

        release.set()
        result = await task

        assert result.ok
        assert view.preview_data is None
        assert view.notification is None

    @pytest.mark.asyncio
    async def test_non_list_payload_does_not_block_next_day(
        self, scheduler, provider, view, clock
    ):
        """Should clear loading after a bad payload so later triggers still fetch."""
        async def returns_none(teams, timezone):
            provider.calls.append((DigestMode.PREVIEW, list(teams), timezone))
            return None

        provider.fetch_preview = returns_none
        await scheduler.tick()

        assert view.mode_state(DigestMode.PREVIEW).phase is FetchPhase.FAILED
        assert not view.is_loading(DigestMode.PREVIEW)
        assert view.notification is None

        clock.advance(days=1)
        await scheduler.tick()
        assert len(provider.calls) == 2
