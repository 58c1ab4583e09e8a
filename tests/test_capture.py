"""
tests/test_capture.py
---------------------
Capture progress, deferred scheduler and the four-phase sequencer.
"""

from __future__ import annotations

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import unittest
from unittest.mock import MagicMock

from core.capture import CaptureSequencer
from core.interfaces import CameraFacing, CapturePhase, SessionStatus
from core.scheduler import DeferredScheduler
from core.session import CaptureProgress, ProgressStage, SessionState
from core.timer import TimerAccumulator
from hardware.cameras import MockCamera
from hardware.clocks import ManualClock
from ui.display import LogDisplay


class TestCaptureProgress(unittest.TestCase):
    def test_stages_follow_photo_count(self):
        progress = CaptureProgress()
        self.assertIs(progress.stage, ProgressStage.EMPTY)
        for expected in (ProgressStage.WORKSPACE_START, ProgressStage.START_COMPLETE,
                         ProgressStage.WORKSPACE_END, ProgressStage.COMPLETE):
            progress = progress.add(b"x")
            self.assertIs(progress.stage, expected)

    def test_add_after_complete_raises(self):
        progress = CaptureProgress((b"1", b"2", b"3", b"4"))
        with self.assertRaises(ValueError):
            progress.add(b"5")

    def test_without_end_keeps_start_pair(self):
        progress = CaptureProgress((b"ws", b"sf", b"we"))
        trimmed = progress.without_end()
        self.assertIs(trimmed.stage, ProgressStage.START_COMPLETE)
        assets = trimmed.assets()
        self.assertEqual(assets.workspace_start, b"ws")
        self.assertEqual(assets.selfie_start, b"sf")
        self.assertIsNone(assets.workspace_end)
        self.assertIsNone(assets.selfie_end)

    def test_assets_padding(self):
        assets = CaptureProgress((b"ws",)).assets()
        self.assertEqual(assets.sizes(), (2, 0, 0, 0))


class TestDeferredScheduler(unittest.TestCase):
    def setUp(self):
        self.clock = ManualClock()
        self.scheduler = DeferredScheduler(self.clock)

    def test_fires_only_when_due(self):
        calls = []
        self.scheduler.call_later(0.35, calls.append, "a")
        self.assertEqual(self.scheduler.run_due(), 0)
        self.clock.advance(0.34)
        self.scheduler.run_due()
        self.assertEqual(calls, [])
        self.clock.advance(0.01)
        self.assertEqual(self.scheduler.run_due(), 1)
        self.assertEqual(calls, ["a"])
        self.assertEqual(self.scheduler.pending, 0)

    def test_deadline_order(self):
        calls = []
        self.scheduler.call_later(2.0, calls.append, "late")
        self.scheduler.call_later(1.0, calls.append, "early")
        self.clock.advance(5.0)
        self.scheduler.run_due()
        self.assertEqual(calls, ["early", "late"])

    def test_cancelled_task_does_not_fire(self):
        calls = []
        task = self.scheduler.call_later(0.1, calls.append, 1)
        task.cancel()
        self.clock.advance(1.0)
        self.assertEqual(self.scheduler.run_due(), 0)
        self.assertEqual(calls, [])

    def test_cancel_all(self):
        calls = []
        self.scheduler.call_later(0.1, calls.append, 1)
        self.scheduler.call_later(0.2, calls.append, 2)
        self.scheduler.cancel_all()
        self.clock.advance(1.0)
        self.scheduler.run_due()
        self.assertEqual(calls, [])


class TestCaptureSequencer(unittest.TestCase):
    def setUp(self):
        self.clock = ManualClock(start=10.0)
        self.state = SessionState(timer=TimerAccumulator(self.clock))
        self.camera = MockCamera(resolution=(64, 48))
        self.display = LogDisplay()
        self.scheduler = DeferredScheduler(self.clock)
        self.finalizer = MagicMock()
        self.seq = CaptureSequencer(
            self.state, self.camera, self.display, self.scheduler, self.finalizer,
            settle_delay=0.35,
        )

    def complete_start_bracket(self):
        self.seq.request_start_bracket()
        self.seq.on_photo_accepted(b"ws")
        self.seq.on_photo_accepted(b"sf")

    def test_start_bracket_walkthrough(self):
        self.assertTrue(self.seq.request_start_bracket())
        self.assertIs(self.state.phase, CapturePhase.START_WORKSPACE)
        self.assertTrue(self.state.capture_visible)
        self.assertTrue(self.camera.is_current_facing(CameraFacing.BACK))

        self.seq.on_photo_accepted(b"ws")
        self.assertIs(self.state.phase, CapturePhase.START_SELFIE)
        self.assertTrue(self.camera.is_current_facing(CameraFacing.FRONT))

        self.seq.on_photo_accepted(b"sf")
        self.assertIs(self.state.phase, CapturePhase.NONE)
        self.assertFalse(self.state.capture_visible)
        self.assertFalse(self.display.capture_shown)

        assets = self.state.progress.assets()
        self.assertEqual((assets.workspace_start, assets.selfie_start), (b"ws", b"sf"))
        self.assertIsNone(assets.workspace_end)
        self.assertIsNone(assets.selfie_end)
        self.assertEqual(self.display.titles, ["Workspace Start", "Selfie Start"])

    def test_timer_starts_after_settle_delay(self):
        self.complete_start_bracket()
        self.assertIs(self.state.status, SessionStatus.STARTING)
        self.scheduler.run_due()
        self.assertFalse(self.state.timer.running)
        self.clock.advance(0.35)
        self.scheduler.run_due()
        self.assertTrue(self.state.timer.running)
        self.assertIs(self.state.status, SessionStatus.RUNNING)

    def test_facing_requests_are_idempotent(self):
        self.seq.request_start_bracket()
        # already on the back camera: nothing to prepare
        self.assertEqual(self.camera.prepare_calls, [])
        self.seq.on_photo_accepted(b"ws")
        self.assertEqual(self.camera.prepare_calls, [CameraFacing.FRONT])

    def test_start_bracket_refused_while_active_or_in_session(self):
        self.seq.request_start_bracket()
        self.assertFalse(self.seq.request_start_bracket())
        self.seq.on_photo_accepted(b"ws")
        self.seq.on_photo_accepted(b"sf")
        self.assertFalse(self.seq.request_start_bracket())

    def test_end_bracket_refused_without_session(self):
        self.assertFalse(self.seq.request_end_bracket())
        self.seq.request_start_bracket()
        self.assertFalse(self.seq.request_end_bracket())

    def test_end_bracket_freezes_and_finalizes(self):
        self.complete_start_bracket()
        self.clock.advance(0.35)
        self.scheduler.run_due()
        self.clock.advance(30.0)

        self.assertTrue(self.seq.request_end_bracket())
        self.assertIs(self.state.phase, CapturePhase.END_WORKSPACE)
        self.assertTrue(self.camera.is_current_facing(CameraFacing.BACK))
        self.assertFalse(self.state.timer.running)
        self.clock.advance(5.0)
        self.assertAlmostEqual(self.state.elapsed(), 30.0)

        self.seq.on_photo_accepted(b"we")
        self.assertIs(self.state.phase, CapturePhase.END_SELFIE)
        self.seq.on_photo_accepted(b"se")
        self.finalizer.finalize.assert_called_once_with(self.state)
        self.assertIs(self.state.phase, CapturePhase.NONE)
        self.assertTrue(self.camera.is_current_facing(CameraFacing.BACK))

    def test_photo_without_phase_is_noop(self):
        self.assertFalse(self.seq.on_photo_accepted(b"stray"))
        self.assertTrue(self.state.progress.is_empty)
        self.finalizer.finalize.assert_not_called()

    def test_cancel_start_bracket_discards_everything(self):
        self.seq.request_start_bracket()
        self.seq.on_photo_accepted(b"ws")
        self.assertTrue(self.seq.cancel())
        self.assertIs(self.state.phase, CapturePhase.NONE)
        self.assertTrue(self.state.progress.is_empty)
        self.assertFalse(self.state.capture_visible)
        self.assertTrue(self.camera.is_current_facing(CameraFacing.BACK))
        self.assertTrue(self.state.timer.is_idle)
        # a fresh start is allowed again
        self.assertTrue(self.seq.request_start_bracket())

    def test_cancel_end_bracket_resumes_session(self):
        self.complete_start_bracket()
        self.clock.advance(0.35)
        self.scheduler.run_due()
        self.clock.advance(12.0)
        before = self.state.elapsed()

        self.seq.request_end_bracket()
        self.seq.on_photo_accepted(b"we")
        self.clock.advance(4.0)
        self.assertTrue(self.seq.cancel())

        self.assertTrue(self.state.timer.running)
        self.assertAlmostEqual(self.state.elapsed(), before)
        assets = self.state.progress.assets()
        self.assertEqual((assets.workspace_start, assets.selfie_start), (b"ws", b"sf"))
        self.assertIsNone(assets.workspace_end)
        self.assertIsNone(assets.selfie_end)

    def test_cancel_without_flow_is_noop(self):
        self.assertFalse(self.seq.cancel())

    def test_stop_during_settle_cancels_deferred_start(self):
        self.complete_start_bracket()
        self.seq.request_end_bracket()
        self.clock.advance(1.0)
        self.scheduler.run_due()
        self.assertFalse(self.state.timer.running)
        self.assertIs(self.state.phase, CapturePhase.END_WORKSPACE)

    def test_restart_during_settle_blocks_stale_start(self):
        self.complete_start_bracket()
        self.seq.restart_session()
        self.clock.advance(1.0)
        self.scheduler.run_due()
        self.assertTrue(self.state.timer.is_idle)

    def test_stale_callback_ignored_by_generation(self):
        self.complete_start_bracket()
        stale_generation = self.state.generation
        self.seq.restart_session()
        self.complete_start_bracket()
        # the callback of the abandoned flow fires late
        self.seq._start_timer(stale_generation)
        self.assertFalse(self.state.timer.running)
        self.clock.advance(0.35)
        self.scheduler.run_due()
        self.assertTrue(self.state.timer.running)

    def test_restart_from_end_bracket(self):
        self.complete_start_bracket()
        self.clock.advance(0.35)
        self.scheduler.run_due()
        self.clock.advance(9.0)
        self.seq.request_end_bracket()
        self.seq.on_photo_accepted(b"we")

        self.seq.restart_session()
        timer = self.state.timer
        self.assertEqual(timer.accumulated_seconds, 0.0)
        self.assertEqual(timer.frozen_elapsed_seconds, 0.0)
        self.assertFalse(timer.running)
        self.assertFalse(timer.paused)
        self.assertTrue(self.state.progress.is_empty)
        self.assertIs(self.state.phase, CapturePhase.NONE)
        self.assertFalse(self.display.capture_shown)

    def test_start_bracket_after_restart_has_zero_frozen_value(self):
        self.complete_start_bracket()
        self.clock.advance(0.35)
        self.scheduler.run_due()
        self.clock.advance(9.0)
        self.seq.request_end_bracket()
        self.assertAlmostEqual(self.state.timer.frozen_elapsed_seconds, 9.0)

        self.seq.restart_session()
        self.assertTrue(self.seq.request_start_bracket())
        self.assertEqual(self.state.timer.frozen_elapsed_seconds, 0.0)

    def test_camera_switch_failure_does_not_break_flow(self):
        self.camera.prepare = MagicMock(side_effect=RuntimeError("Cannot open webcam at index 1"))
        self.assertTrue(self.seq.request_start_bracket())

        with self.assertLogs("core.capture", level="WARNING") as logs:
            self.assertTrue(self.seq.on_photo_accepted(b"ws"))
        self.assertIn("Cannot open webcam", logs.output[0])
        self.assertIs(self.state.phase, CapturePhase.START_SELFIE)
        self.assertTrue(self.state.capture_visible)

        self.assertTrue(self.seq.on_photo_accepted(b"sf"))
        self.assertIs(self.state.progress.stage, ProgressStage.START_COMPLETE)

    def test_camera_switch_failure_when_entering_bracket(self):
        self.camera.facing = CameraFacing.FRONT
        self.camera.prepare = MagicMock(side_effect=RuntimeError("Cannot open webcam at index 0"))
        with self.assertLogs("core.capture", level="WARNING"):
            self.assertTrue(self.seq.request_start_bracket())
        self.assertIs(self.state.phase, CapturePhase.START_WORKSPACE)
        self.assertTrue(self.display.capture_shown)

    def test_facing_reset_failure_is_not_fatal(self):
        self.camera.reset_to_default_facing = MagicMock(side_effect=RuntimeError("device gone"))

        self.seq.request_start_bracket()
        with self.assertLogs("core.capture", level="WARNING"):
            self.assertTrue(self.seq.cancel())
        self.assertIs(self.state.phase, CapturePhase.NONE)

        self.seq.request_start_bracket()
        with self.assertLogs("core.capture", level="WARNING"):
            self.seq.restart_session()
        self.assertTrue(self.state.progress.is_empty)

        self.complete_start_bracket()
        self.clock.advance(0.35)
        self.scheduler.run_due()
        self.seq.request_end_bracket()
        self.seq.on_photo_accepted(b"we")
        with self.assertLogs("core.capture", level="WARNING"):
            self.assertTrue(self.seq.on_photo_accepted(b"se"))
        self.finalizer.finalize.assert_called_once_with(self.state)


if __name__ == "__main__":
    unittest.main(verbosity=2)
