#!/usr/bin/env python3
"""
Test suite for the practice session state machine.
"""

import asyncio
import random
import sqlite3
from typing import List, Optional
from unittest.mock import Mock

import pytest

from hececiz.audio import AudioPlayer
from hececiz.db import Profile, ProfileStore, ProgressBucket
from hececiz.practice import (
    CheckResult,
    CueKind,
    EventKind,
    FAILURE_REASON,
    FeedbackState,
    PracticeSession,
    SessionTimings,
    Tool,
)

IDLE = FeedbackState.IDLE
CHECKING = FeedbackState.CHECKING
CORRECT = FeedbackState.CORRECT
WRONG = FeedbackState.WRONG


class FakeGateway:
    """Records calls; optionally holds every verdict until gate is set"""

    def __init__(self, verdicts: Optional[List[CheckResult]] = None, error: Exception = None):
        self.verdicts = list(verdicts or [CheckResult(is_correct=True)])
        self.error = error
        self.calls = []
        self.gate: Optional[asyncio.Event] = None

    def is_available(self) -> bool:
        return True

    async def verify(self, snapshot, target_text):
        self.calls.append((snapshot, target_text))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if len(self.verdicts) > 1:
            return self.verdicts.pop(0)
        return self.verdicts[0]


class RecordingAudio(AudioPlayer):
    def __init__(self):
        self.pronounced = []
        self.cues = []

    def pronounce(self, text):
        self.pronounced.append(text)

    def play_cue(self, cue):
        self.cues.append(cue)


INSTANT = SessionTimings(celebration_delay=0, retry_delay=0, pronounce_delay=0)
SLOW = SessionTimings(celebration_delay=30, retry_delay=30, pronounce_delay=30)


def make_session(gateway=None, timings=INSTANT, **kwargs) -> PracticeSession:
    kwargs.setdefault('audio', RecordingAudio())
    return PracticeSession(
        gateway if gateway is not None else FakeGateway(),
        timings=timings,
        rng=random.Random(7),
        **kwargs
    )


def draw_something(session: PracticeSession):
    session.surface.draw_stroke([(40, 40), (120, 160), (200, 40)])


async def settle():
    """Let zero-delay timers and follow-up callbacks run"""
    for _ in range(3):
        await asyncio.sleep(0.01)


class TestCorrectVerdict:
    """A correct drawing is credited, celebrated and followed by the next syllable"""

    def test_unassisted_success_advances(self):
        """Correct without a hint counts as unassisted and moves on by one"""
        async def scenario():
            session = make_session()
            session.start()
            first_index = session.curriculum.index
            draw_something(session)

            task = session.submit()
            assert task is not None
            assert session.state is CHECKING
            assert session.surface.disabled

            await task
            await settle()
            return session, first_index

        session, first_index = asyncio.run(scenario())

        assert session.ledger.unassisted_correct == 1
        assert session.ledger.assisted_correct == 0
        assert session.history == [IDLE, CHECKING, CORRECT, IDLE]
        assert session.curriculum.index == (first_index + 1) % len(session.curriculum)
        assert session.state is IDLE
        assert session.surface.is_empty()
        assert not session.surface.disabled

    def test_hint_before_submit_counts_as_assisted(self):
        """Peeking at the hint credits the assisted counter instead"""
        async def scenario():
            session = make_session()
            session.start()
            assert session.toggle_hint() is True
            draw_something(session)
            await session.submit()
            await settle()
            return session

        session = asyncio.run(scenario())

        assert session.ledger.assisted_correct == 1
        assert session.ledger.unassisted_correct == 0
        # Advancing resets the assist flag and hides the hint
        assert session.has_peeked is False
        assert session.show_hint is False

    def test_hiding_hint_keeps_assist_flag(self):
        """Toggling the hint back off does not undo the peek"""
        async def scenario():
            session = make_session()
            session.start()
            session.toggle_hint()
            session.toggle_hint()
            assert session.show_hint is False
            assert session.has_peeked is True
            draw_something(session)
            await session.submit()
            await settle()
            return session

        session = asyncio.run(scenario())
        assert session.ledger.assisted_correct == 1

    def test_celebration_window_holds_state(self):
        """During the celebration the controls are inert and the cue has played"""
        async def scenario():
            session = make_session(timings=SLOW)
            session.start()
            index = session.curriculum.index
            draw_something(session)
            await session.submit()

            assert session.state is CORRECT
            assert session.surface.disabled
            assert session.submit() is None
            assert session.skip() is False
            assert session.set_tool(Tool.ERASE) is False
            assert session.curriculum.index == index
            assert session.audio.cues == [CueKind.CORRECT]
            session.close()
            return session

        session = asyncio.run(scenario())
        assert session.last_result == CheckResult(is_correct=True)

    def test_new_syllable_is_pronounced(self):
        """Each new syllable is spoken once, after the pronounce delay"""
        async def scenario():
            session = make_session()
            session.start()
            first = session.current.text
            await settle()
            draw_something(session)
            await session.submit()
            await settle()
            return session, first

        session, first = asyncio.run(scenario())
        assert session.audio.pronounced == [first, session.current.text]


class TestWrongVerdict:
    """A wrong drawing stays on the same syllable for another try"""

    def test_wrong_returns_to_same_syllable(self):
        """Wrong leaves index, drawing and assist flag alone"""
        async def scenario():
            session = make_session(FakeGateway([CheckResult(False, "Looks like BO")]))
            session.start()
            index = session.curriculum.index
            session.toggle_hint()
            draw_something(session)
            await session.submit()
            await settle()
            return session, index

        session, index = asyncio.run(scenario())

        assert session.history == [IDLE, CHECKING, WRONG, IDLE]
        assert session.curriculum.index == index
        assert session.has_peeked is True
        assert not session.surface.is_empty()
        assert not session.surface.disabled
        assert session.ledger.total == 0
        assert session.last_result.reason == "Looks like BO"
        assert session.audio.cues == [CueKind.WRONG]

    def test_retry_is_not_pronounced_again(self):
        """Going back to IDLE after a miss does not replay the syllable"""
        async def scenario():
            session = make_session(FakeGateway([CheckResult(False)]))
            session.start()
            await settle()
            draw_something(session)
            await session.submit()
            await settle()
            return session

        session = asyncio.run(scenario())
        assert session.audio.pronounced == [session.current.text]

    def test_surface_disabled_through_wrong_window(self):
        """Input is ignored until the retry delay has passed"""
        async def scenario():
            session = make_session(FakeGateway([CheckResult(False)]), timings=SLOW)
            session.start()
            draw_something(session)
            await session.submit()

            assert session.state is WRONG
            assert session.surface.disabled
            assert session.toggle_hint() is False
            assert session.has_peeked is False
            assert session.replay_pronunciation() is False
            session.close()

        asyncio.run(scenario())

    def test_gateway_exception_counts_as_wrong(self):
        """A gateway that raises is treated like a failed check"""
        async def scenario():
            session = make_session(FakeGateway(error=RuntimeError("boom")))
            session.start()
            draw_something(session)
            result = await session.submit()
            await settle()
            return session, result

        session, result = asyncio.run(scenario())
        assert result == CheckResult(is_correct=False, reason=FAILURE_REASON)
        assert session.history == [IDLE, CHECKING, WRONG, IDLE]

    def test_retry_then_success(self):
        """A second attempt on the same syllable can still succeed"""
        async def scenario():
            gateway = FakeGateway([CheckResult(False), CheckResult(True)])
            session = make_session(gateway)
            session.start()
            target = session.current.text
            draw_something(session)
            await session.submit()
            await settle()
            await session.submit()
            await settle()
            return session, gateway, target

        session, gateway, target = asyncio.run(scenario())
        assert [text for _, text in gateway.calls] == [target, target]
        assert session.ledger.unassisted_correct == 1
        assert session.history == [IDLE, CHECKING, WRONG, IDLE, CHECKING, CORRECT, IDLE]


class TestIdleActions:
    """Submit guard, skip, tools and the event stream"""

    def test_empty_submit_is_a_notice(self):
        """No drawing means no classifier call and no transition"""
        events = []

        async def scenario():
            gateway = FakeGateway()
            session = make_session(gateway)
            session.subscribe(events.append)
            session.start()
            assert session.submit() is None
            await settle()
            return session, gateway

        session, gateway = asyncio.run(scenario())
        assert gateway.calls == []
        assert session.history == [IDLE]
        notices = [e for e in events if e.kind is EventKind.NOTICE]
        assert len(notices) == 1
        assert 'draw' in notices[0].message.lower()

    def test_skip_advances_without_scoring(self):
        """Skip moves on, clears the assist flag and leaves the ledger alone"""
        async def scenario():
            gateway = FakeGateway()
            session = make_session(gateway)
            session.start()
            index = session.curriculum.index
            session.toggle_hint()
            draw_something(session)
            assert session.skip() is True
            return session, gateway, index

        session, gateway, index = asyncio.run(scenario())
        assert session.curriculum.index == (index + 1) % len(session.curriculum)
        assert session.has_peeked is False
        assert session.ledger.total == 0
        assert gateway.calls == []
        assert session.audio.cues == [CueKind.SKIP]
        assert session.surface.is_empty()
        assert session.history == [IDLE]

    def test_double_submit_makes_one_call(self):
        """A second submit while checking is a no-op"""
        async def scenario():
            gateway = FakeGateway()
            gateway.gate = asyncio.Event()
            session = make_session(gateway)
            session.start()
            draw_something(session)

            first = session.submit()
            second = session.submit()
            await asyncio.sleep(0)
            assert session.skip() is False
            gateway.gate.set()
            await first
            await settle()
            return session, gateway, second

        session, gateway, second = asyncio.run(scenario())
        assert second is None
        assert len(gateway.calls) == 1
        assert session.ledger.unassisted_correct == 1

    def test_tool_change_applies_to_next_stroke(self):
        """set_tool switches the surface tool while idle; clear resets it"""
        async def scenario():
            session = make_session()
            session.start()
            assert session.set_tool(Tool.ERASE) is True
            assert session.surface.tool is Tool.ERASE
            assert session.clear_drawing() is True
            assert session.surface.tool is Tool.INK
            session.close()

        asyncio.run(scenario())

    def test_events_for_a_full_turn(self):
        """A correct turn emits state, verdict and turn events"""
        events = []

        async def scenario():
            session = make_session()
            session.subscribe(events.append)
            session.start()
            draw_something(session)
            await session.submit()
            await settle()

        asyncio.run(scenario())
        kinds = [e.kind for e in events]
        assert kinds[0] is EventKind.TURN
        assert EventKind.VERDICT in kinds
        assert kinds[-1] is EventKind.TURN
        assert EventKind.PROFILE not in kinds

    def test_actions_before_start(self):
        """Submit and skip need a started session"""
        session = make_session()
        with pytest.raises(RuntimeError):
            session.submit()
        with pytest.raises(RuntimeError):
            session.skip()


class TestTeardown:
    """Pending timers and late verdicts after close()"""

    def test_close_cancels_pending_advance(self):
        """A celebration timer never fires after close"""
        async def scenario():
            session = make_session(timings=SessionTimings(0.05, 0.05, 0.05))
            session.start()
            index = session.curriculum.index
            draw_something(session)
            await session.submit()
            session.close()
            await asyncio.sleep(0.15)
            return session, index

        session, index = asyncio.run(scenario())
        assert session.curriculum.index == index
        assert session.state is CORRECT
        assert session.audio.pronounced == []

    def test_late_verdict_is_ignored(self):
        """A verdict arriving after close changes nothing"""
        async def scenario():
            gateway = FakeGateway()
            gateway.gate = asyncio.Event()
            session = make_session(gateway)
            session.start()
            draw_something(session)
            task = session.submit()
            await asyncio.sleep(0)
            session.close()
            gateway.gate.set()
            await task
            await settle()
            return session

        session = asyncio.run(scenario())
        assert session.state is CHECKING
        assert session.ledger.total == 0
        assert session.last_result is None
        assert session.audio.cues == []


class TestProfilePersistence:
    """Progress is mirrored to the profile store for real profiles only"""

    def test_correct_increments_stored_profile(self, tmp_path):
        """Unassisted and assisted successes land in their own columns"""
        store = ProfileStore(str(tmp_path / 'profiles.db'))
        profile = store.create_profile('Ada')
        events = []

        async def scenario():
            session = make_session(profile_store=store, profile=profile)
            session.subscribe(events.append)
            session.start()
            draw_something(session)
            await session.submit()
            await settle()
            session.toggle_hint()
            draw_something(session)
            await session.submit()
            await settle()
            return session

        session = asyncio.run(scenario())
        stored = store.get_profile(profile.id)
        store.close()

        assert stored.total_correct_audio == 1
        assert stored.total_correct_hint == 1
        assert session.profile == stored
        assert [e.profile for e in events if e.kind is EventKind.PROFILE][-1] == stored

    def test_guest_session_skips_store(self):
        """Without a profile the store is never touched"""
        store = Mock()

        async def scenario():
            session = make_session(profile_store=store)
            session.start()
            draw_something(session)
            await session.submit()
            await settle()
            return session

        session = asyncio.run(scenario())
        store.increment_progress.assert_not_called()
        assert session.is_guest
        assert session.ledger.unassisted_correct == 1

    def test_unknown_profile_keeps_current_record(self):
        """A vanished profile is not adopted and does not stop the session"""
        store = Mock()
        store.increment_progress.return_value = None
        profile = Profile(id='gone', name='Gone', avatar='🐱')

        async def scenario():
            session = make_session(profile_store=store, profile=profile)
            session.start()
            draw_something(session)
            await session.submit()
            await settle()
            return session

        session = asyncio.run(scenario())
        store.increment_progress.assert_called_once_with('gone', ProgressBucket.AUDIO)
        assert session.profile is profile
        assert session.state is IDLE
        assert session.ledger.unassisted_correct == 1

    def test_store_error_is_logged_not_raised(self):
        """A database failure leaves the session running"""
        store = Mock()
        store.increment_progress.side_effect = sqlite3.OperationalError("database is locked")
        profile = Profile(id='p1', name='Ada', avatar='🦊')

        async def scenario():
            session = make_session(profile_store=store, profile=profile)
            session.start()
            draw_something(session)
            await session.submit()
            await settle()
            return session

        session = asyncio.run(scenario())
        assert session.profile is profile
        assert session.history == [IDLE, CHECKING, CORRECT, IDLE]


def run_all_tests():
    """Run the controller scenarios manually"""
    print("\n" + "=" * 70)
    print("Hece Ciz Practice Session - Test Suite")
    print("=" * 70)

    groups = [
        TestCorrectVerdict(),
        TestWrongVerdict(),
        TestIdleActions(),
    ]
    tests_passed = 0
    tests_failed = 0

    for group in groups:
        for name in sorted(n for n in dir(group) if n.startswith('test_')):
            print(f"\n{type(group).__name__}.{name}...")
            try:
                getattr(group, name)()
                print("  PASSED")
                tests_passed += 1
            except Exception as e:
                print(f"  FAILED: {e}")
                tests_failed += 1

    print("\n" + "=" * 70)
    print(f"Results: {tests_passed} passed, {tests_failed} failed")
    print("=" * 70)

    if tests_failed == 0:
        print("\nAll tests passed!")
        return 0
    else:
        print(f"\n{tests_failed} test(s) failed.")
        return 1


if __name__ == "__main__":
    import sys
    sys.exit(run_all_tests())
