"""
Test cases for the hands-free controller with a mock page and fake devices.
"""
import asyncio
import unittest

from handsfree.config import load_config
from handsfree.controller import HandsFreeController
from handsfree.gesture_source import LandmarkSourceAdapter
from handsfree.surface_mock import MockElement, MockSurface
from handsfree.types import UnsupportedEnvironmentError

from fakes import (FakeCamera, FakeDetector, FakeEngine, LEFT_FRAME, NONE_FRAME, RIGHT_FRAME,
                   SUBMIT_FRAME, wait_until)


def page(*names):
    return [MockElement(text=name) for name in names]


class ControllerTestCase(unittest.IsolatedAsyncioTestCase):
    """Builds a controller over fake camera, detector and recognition engine."""

    frames = ()

    async def asyncSetUp(self):
        self.cfg = load_config()
        self.surface = MockSurface(page("Book", "Reschedule", "Cancel"), role="USER")
        self.camera = FakeCamera()
        self.detector = FakeDetector(self.frames)
        self.engine = FakeEngine()
        self.controller = HandsFreeController(
            self.cfg,
            self.surface,
            gesture_source_factory=self.gesture_source,
            speech_engine_factory=lambda: self.engine,
        )

    async def asyncTearDown(self):
        await self.controller.close()

    def gesture_source(self, on_frame, on_error):
        return LandmarkSourceAdapter(lambda: self.camera, lambda: self.detector, on_frame, on_error)

    def messages(self):
        return [n.message for n in self.controller.notifier.history]


class TestGesturePipeline(ControllerTestCase):
    """Test gesture enable/disable and frame handling."""

    async def test_enable_and_disable(self):
        self.assertTrue(await self.controller.enable_gestures())
        self.assertTrue(self.controller.gestures_enabled)
        self.assertEqual(self.camera.live_tracks, 1)
        self.assertEqual([el.text for el in self.surface.highlighted()], ["Book"])

        await self.controller.disable_gestures()
        self.assertFalse(self.controller.gestures_enabled)
        self.assertEqual(self.camera.live_tracks, 0)
        self.assertEqual(self.surface.highlighted(), [])

    async def test_enable_is_idempotent(self):
        self.assertTrue(await self.controller.enable_gestures())
        self.assertTrue(await self.controller.enable_gestures())
        self.assertEqual(self.camera.open_count, 1)

        await self.controller.disable_gestures()
        await self.controller.disable_gestures()
        self.assertEqual(self.camera.release_count, 1)

    async def test_concurrent_enable(self):
        results = await asyncio.gather(self.controller.enable_gestures(), self.controller.enable_gestures())
        self.assertEqual(results, [True, True])
        self.assertEqual(self.camera.open_count, 1)

    async def test_camera_denied(self):
        """Acquisition failure is reported without touching the listening flag."""
        self.camera.fail_open = True
        self.controller.session.start_listening()

        self.assertFalse(await self.controller.enable_gestures())
        self.assertFalse(self.controller.gestures_enabled)
        self.assertEqual(self.controller.session.last_error, "Permission denied")
        self.assertTrue(self.controller.session.is_listening)
        # Nothing stays highlighted while gestures are off
        self.assertEqual(self.surface.highlighted(), [])
        self.assertTrue(self.controller.navigator.is_inert)

    async def test_unsupported_environment(self):
        def missing(on_frame, on_error):
            raise UnsupportedEnvironmentError("no mediapipe")

        controller = HandsFreeController(self.cfg, self.surface, gesture_source_factory=missing)
        self.assertFalse(await controller.enable_gestures())
        self.assertFalse(controller.gestures_supported)
        self.assertFalse(controller.status()["gestures"]["supported"])

    async def test_route_change_rebuilds_elements(self):
        await self.controller.enable_gestures()
        self.surface.render(page("Save", "Close"))
        self.surface.change_route("/profile")

        self.assertTrue(await wait_until(
            lambda: [el.text for el in self.controller.navigator.elements] == ["Save", "Close"]))
        self.assertEqual([el.text for el in self.surface.highlighted()], ["Save"])

    async def test_route_change_ignored_when_disabled(self):
        await self.controller.navigator.rebuild_elements()
        self.surface.render(page("Save"))
        self.surface.change_route("/profile")
        await asyncio.sleep(0.02)
        self.assertEqual(len(self.controller.navigator.elements), 3)

    async def test_status(self):
        await self.controller.enable_gestures()
        status = self.controller.status()
        self.assertEqual(status["gestures"]["state"], "running")
        self.assertEqual(status["gestures"]["elements"], 3)
        self.assertEqual(status["gestures"]["selected"], 0)
        self.assertFalse(status["voice"]["enabled"])


class TestHeldGesture(ControllerTestCase):
    """A held pose moves the selection once."""

    frames = [RIGHT_FRAME, RIGHT_FRAME, RIGHT_FRAME, RIGHT_FRAME]

    async def test_held_right_moves_once(self):
        await self.controller.enable_gestures()
        self.assertTrue(await wait_until(lambda: self.detector.exhausted))
        await asyncio.sleep(0.02)
        self.assertEqual(self.controller.navigator.index, 1)


class TestGestureSequence(ControllerTestCase):
    """Move, release, move again and confirm."""

    frames = [RIGHT_FRAME, NONE_FRAME, RIGHT_FRAME, None, LEFT_FRAME, LEFT_FRAME, SUBMIT_FRAME]

    async def test_sequence_clicks_selected(self):
        await self.controller.enable_gestures()
        self.assertTrue(await wait_until(lambda: self.surface.clicked))
        self.assertEqual([el.text for el in self.surface.clicked], ["Reschedule"])


class TestVoicePipeline(ControllerTestCase):
    """Test voice enable/disable and command dispatch."""

    async def test_navigate_by_voice(self):
        """A spoken navigation command opens the role's page exactly once."""
        self.assertTrue(await self.controller.enable_voice())
        self.assertTrue(self.controller.session.is_listening)

        self.engine.say("navigate to calendar")
        self.assertTrue(await wait_until(lambda: self.surface.navigations))
        await asyncio.sleep(0.02)
        self.assertEqual(self.surface.navigations, ["/patient/calendar"])
        self.assertEqual(self.controller.session.last_command, "navigate to calendar")
        self.assertIn("Navigating to calendar", self.messages())

    async def test_commands_in_one_session_run_once(self):
        """Each utterance is acted on by itself; earlier commands are not replayed."""
        await self.controller.enable_voice()
        self.engine.say("go to calendar")
        self.assertTrue(await wait_until(lambda: self.surface.navigations))
        self.engine.say("click cancel")
        self.assertTrue(await wait_until(lambda: len(self.surface.clicked) == 1))
        self.engine.say("click book")
        self.assertTrue(await wait_until(lambda: len(self.surface.clicked) == 2))
        await asyncio.sleep(0.02)

        self.assertEqual(self.surface.navigations, ["/patient/calendar"])
        self.assertEqual([el.text for el in self.surface.clicked], ["Cancel", "Book"])
        self.assertEqual(self.messages(), ["Navigating to calendar", "Clicked cancel", "Clicked book"])
        self.assertTrue(self.controller.voice_enabled)

    async def test_chatter_before_command(self):
        await self.controller.enable_voice()
        self.engine.say("okay so")
        self.engine.say("press reschedule")
        self.assertTrue(await wait_until(lambda: self.surface.clicked))
        await asyncio.sleep(0.02)
        self.assertEqual([el.text for el in self.surface.clicked], ["Reschedule"])

    async def test_disable_voice_drops_pending_commands(self):
        await self.controller.enable_voice()
        self.engine.say("click book")
        self.engine.say("click cancel")
        await self.controller.disable_voice()
        await asyncio.sleep(0.05)
        self.assertEqual(self.surface.clicked, [])

    async def test_click_by_voice(self):
        await self.controller.enable_voice()
        self.engine.say("click cancel")
        self.assertTrue(await wait_until(lambda: self.surface.clicked))
        self.assertEqual([el.text for el in self.surface.clicked], ["Cancel"])

    async def test_both_intents_dispatched(self):
        await self.controller.enable_voice()
        self.engine.say("go to profile and press book")
        self.assertTrue(await wait_until(lambda: self.surface.clicked))
        self.assertEqual(self.surface.navigations, ["/profile"])
        self.assertEqual([el.text for el in self.surface.clicked], ["Book"])

    async def test_unknown_page(self):
        await self.controller.enable_voice()
        self.engine.say("go to the moon")
        self.assertTrue(await wait_until(lambda: self.messages()))
        self.assertEqual(self.messages(), ["Could not find page: the moon"])
        self.assertEqual(self.surface.navigations, [])

    async def test_engine_error(self):
        await self.controller.enable_voice()
        self.engine.fail("network")
        self.assertTrue(await wait_until(lambda: self.controller.session.last_error == "network"))
        self.assertFalse(self.controller.session.is_listening)
        self.assertFalse(self.controller.voice_enabled)

    async def test_enable_is_idempotent(self):
        self.assertTrue(await self.controller.enable_voice())
        self.assertTrue(await self.controller.enable_voice())
        self.assertEqual(self.engine.start_count, 1)

        await self.controller.disable_voice()
        await self.controller.disable_voice()
        self.assertEqual(self.engine.stop_count, 1)
        self.assertFalse(self.controller.session.is_listening)

    async def test_unsupported_voice(self):
        self.engine.fail_start = UnsupportedEnvironmentError("ELEVEN_LABS_API_KEY not set")
        self.assertFalse(await self.controller.enable_voice())
        self.assertFalse(self.controller.voice_supported)
        self.assertFalse(self.controller.session.is_listening)
        self.assertEqual(self.controller.session.last_error, "ELEVEN_LABS_API_KEY not set")

        # Later attempts report the missing capability without starting
        self.assertFalse(await self.controller.enable_voice())
        self.assertEqual(self.controller.session.last_error,
                         "Speech recognition is not supported in this environment")

    async def test_pipelines_are_independent(self):
        await self.controller.enable_voice()
        await self.controller.enable_gestures()
        await self.controller.disable_gestures()
        self.assertTrue(self.controller.voice_enabled)
        self.assertTrue(self.controller.session.is_listening)


if __name__ == '__main__':
    unittest.main()
