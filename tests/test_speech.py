"""
Test cases for the speech source adapter and the session state it writes.
"""
import asyncio
import unittest

from handsfree.session import NotificationLog, SessionState
from handsfree.speech import ListenState, SpeechSourceAdapter
from handsfree.types import UnsupportedEnvironmentError

from fakes import FakeEngine, wait_until


class TestSpeechSourceAdapter(unittest.IsolatedAsyncioTestCase):
    """Test transcript accumulation and session flags."""

    async def asyncSetUp(self):
        self.engine = FakeEngine()
        self.session = SessionState()
        self.transcripts = []

        async def on_transcript(transcript):
            self.transcripts.append(transcript)

        self.adapter = SpeechSourceAdapter(self.engine, self.session, on_transcript)

    async def test_start_sets_listening(self):
        self.session.set_error("old failure")
        self.assertTrue(await self.adapter.start())
        self.assertTrue(self.session.is_listening)
        self.assertIsNone(self.session.last_error)
        self.assertEqual(self.engine.start_count, 1)

    async def test_transcript_accumulates_lower_cased(self):
        await self.adapter.start()
        self.engine.say("Go to", is_final=False)
        self.engine.say("Dashboard")

        self.assertTrue(await wait_until(lambda: len(self.transcripts) == 2))
        self.assertEqual(self.transcripts, ["go to", "go to dashboard"])
        self.assertEqual(self.session.last_command, "go to dashboard")
        self.assertEqual(self.adapter.transcript, "go to dashboard")

    async def test_restart_clears_transcript(self):
        await self.adapter.start()
        self.engine.say("click save")
        await wait_until(lambda: self.transcripts)
        await self.adapter.stop()

        await self.adapter.start()
        self.assertEqual(self.adapter.transcript, "")
        self.engine.say("press cancel")
        self.assertTrue(await wait_until(lambda: len(self.transcripts) == 2))
        self.assertEqual(self.transcripts[-1], "press cancel")

    async def test_stop(self):
        await self.adapter.start()
        await self.adapter.stop()
        self.assertIs(self.adapter.state, ListenState.IDLE)
        self.assertFalse(self.session.is_listening)
        self.assertIsNone(self.session.last_command)
        self.assertEqual(self.engine.stop_count, 1)

        # No-op when idle
        await self.adapter.stop()
        self.assertEqual(self.engine.stop_count, 1)

    async def test_results_after_stop_are_ignored(self):
        await self.adapter.start()
        await self.adapter.stop()
        self.engine.say("go to dashboard")
        await asyncio.sleep(0.05)
        self.assertEqual(self.transcripts, [])
        self.assertIsNone(self.session.last_command)

    async def test_engine_error(self):
        await self.adapter.start()
        self.engine.fail("network")

        self.assertTrue(await wait_until(lambda: self.session.last_error == "network"))
        self.assertFalse(self.session.is_listening)
        self.assertIs(self.adapter.state, ListenState.IDLE)
        self.assertTrue(await wait_until(lambda: self.engine.stop_count == 1))

        # Late results from the failed session are dropped
        self.engine.say("click save")
        await asyncio.sleep(0.05)
        self.assertEqual(self.transcripts, [])

    async def test_stop_drops_queued_transcripts(self):
        """Transcripts still waiting when listening stops are never handled."""
        started = []

        async def slow_handler(transcript):
            started.append(transcript)
            await asyncio.sleep(0.05)

        adapter = SpeechSourceAdapter(self.engine, self.session, slow_handler)
        await adapter.start()
        for phrase in ("click one", "click two", "click three"):
            self.engine.say(phrase)
        self.assertTrue(await wait_until(lambda: started))

        await adapter.stop()
        await asyncio.sleep(0.2)
        self.assertEqual(started, ["click one"])

    async def test_handled_results_leave_the_transcript(self):
        """Results acted on by the handler are not handed over again."""
        seen = []

        async def handler(transcript):
            seen.append(transcript)
            return transcript.startswith("click")

        adapter = SpeechSourceAdapter(self.engine, self.session, handler)
        await adapter.start()
        for phrase in ("click save", "um", "click close"):
            self.engine.say(phrase)

        self.assertTrue(await wait_until(lambda: len(seen) == 3))
        self.assertEqual(seen, ["click save", "um", "um click close"])
        self.assertEqual(adapter.transcript, "")

    async def test_restart_waits_for_stop_after_error(self):
        """The engine is not restarted until the stop that followed its error has finished."""
        engine = FakeEngine(stop_delay=0.1)
        adapter = SpeechSourceAdapter(engine, self.session, None)
        await adapter.start()
        engine.fail("network")
        self.assertTrue(await wait_until(lambda: not adapter.listening))

        self.assertTrue(await adapter.start())
        self.assertEqual(engine.events, ["start", "stop", "start"])
        self.assertTrue(self.session.is_listening)
        await adapter.stop()

    async def test_start_failure(self):
        adapter = SpeechSourceAdapter(FakeEngine(fail_start=OSError("microphone busy")), self.session, None)
        self.assertFalse(await adapter.start())
        self.assertFalse(adapter.listening)
        self.assertFalse(self.session.is_listening)
        self.assertEqual(self.session.last_error, "microphone busy")

    async def test_unsupported_engine_raises(self):
        adapter = SpeechSourceAdapter(FakeEngine(fail_start=UnsupportedEnvironmentError("no api key")),
                                      self.session, None)
        with self.assertRaises(UnsupportedEnvironmentError):
            await adapter.start()
        self.assertFalse(adapter.listening)
        self.assertFalse(self.session.is_listening)
        self.assertEqual(self.session.last_error, "no api key")


class TestSessionState(unittest.TestCase):
    """Test observable session flags."""

    def test_listeners(self):
        session = SessionState()
        seen = []
        unsubscribe = session.subscribe(lambda snapshot: seen.append(snapshot.is_listening))
        session.start_listening()
        session.set_error("not-allowed")
        unsubscribe()
        session.start_listening()
        self.assertEqual(seen, [True, False])

    def test_report_error_keeps_listening(self):
        session = SessionState()
        session.start_listening()
        session.report_error("Camera unavailable")
        self.assertTrue(session.is_listening)
        self.assertEqual(session.to_dict()["last_error"], "Camera unavailable")

    def test_notification_log(self):
        log = NotificationLog(maxlen=2)
        log.success("Clicked save")
        log.error("Could not find page: x")
        log.success("Navigating to home")
        self.assertEqual([n.message for n in log.recent()], ["Could not find page: x", "Navigating to home"])
        self.assertEqual(log.recent(1)[0].level, "success")


if __name__ == '__main__':
    unittest.main()
