"""End-to-end tests for the batch orchestrator with fake engine and classifier."""
from __future__ import annotations

import json
import tempfile
import threading
import unittest
from pathlib import Path
from unittest import mock

from helpers import FakeEngine, ScriptedClassifier, dual_response, mono_response
from vadata.asr import TranscriptCache
from vadata.config import Settings
from vadata.diarization.normalizer import SpeakerNormalizer
from vadata.pipeline import BatchOrchestrator, FileOutcome, ResultStore, storage


class OrchestratorTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        root = Path(self._tmp.name)
        self.upload = root / "upload"
        self.output = root / "generated"
        self.mirror = root / "mirror"
        self.responses = root / "responses"
        self.failed = root / "failed"
        self.snapshots = root / "transcripts"
        self.upload.mkdir()

    def tearDown(self):
        self._tmp.cleanup()

    def add_audio(self, filename: str) -> Path:
        path = self.upload / filename
        path.write_bytes(Path(filename).stem.encode("utf-8"))
        return path

    def make(self, engine, classifier=None, mode="mono", concurrency=5, snapshot=False):
        normalizer = SpeakerNormalizer(classifier or ScriptedClassifier()) if mode == "mono" else None
        return BatchOrchestrator(
            cache=TranscriptCache(engine, self.responses),
            store=ResultStore(self.output, self.mirror),
            source_dir=self.upload,
            failed_dir=self.failed,
            normalizer=normalizer,
            mode=mode,
            concurrency=concurrency,
            snapshot_dir=self.snapshots if snapshot else None,
        )

    def read_output(self, base_name: str):
        return json.loads((self.output / f"{base_name}.json").read_text(encoding="utf-8"))


class TestBatchOrchestrator(OrchestratorTestCase):
    async def test_existing_output_is_skipped(self):
        self.add_audio("done.wav")
        self.add_audio("new.wav")
        self.output.mkdir()
        (self.output / "done.json").write_text("[[], []]", encoding="utf-8")
        engine = FakeEngine({"new": mono_response([0, 1, 0])})

        with self.assertLogs("vadata.pipeline.orchestrator", level="INFO") as logs:
            report = await self.make(engine).run()

        self.assertEqual(report.outcomes, {"done": FileOutcome.SKIPPED, "new": FileOutcome.SUCCEEDED})
        self.assertEqual(engine.calls, ["new"])
        self.assertEqual((self.output / "done.json").read_text(encoding="utf-8"), "[[], []]")
        self.assertFalse((self.mirror / "done.json").exists())
        self.assertEqual(self.read_output("new"), [[[0.0, 0.5], [2.0, 2.5]], [[1.0, 1.5]]])
        self.assertTrue((self.mirror / "new.json").exists())
        done_lines = [line for line in logs.output if "done." in line]
        self.assertTrue(all("skipping" in line for line in done_lines), done_lines)

    async def test_one_upstream_failure_among_five_is_quarantined(self):
        names = [f"call-{i}" for i in range(5)]
        for name in names:
            self.add_audio(f"{name}.wav")
        engine = FakeEngine({name: mono_response([0, 1, 1]) for name in names}, failing={"call-2"})

        with self.assertLogs("vadata.pipeline.orchestrator", level="INFO") as logs:
            report = await self.make(engine).run()

        self.assertEqual(report.quarantined, ["call-2"])
        self.assertEqual(report.succeeded, ["call-0", "call-1", "call-3", "call-4"])
        self.assertEqual(sorted(p.name for p in self.failed.iterdir()), ["call-2.wav"])
        self.assertFalse((self.upload / "call-2.wav").exists())
        self.assertEqual(sorted(p.name for p in self.output.iterdir()), [f"{n}.json" for n in names if n != "call-2"])
        self.assertTrue(any("All files processed" in line for line in logs.output))

    async def test_normalization_applied_in_mono_mode(self):
        self.add_audio("call.mp3")
        engine = FakeEngine({"call": mono_response([0, 1, 0, 2, 1])})
        classifier = ScriptedClassifier(choices=[0])
        report = await self.make(engine, classifier, snapshot=True).run()

        self.assertEqual(report.succeeded, ["call"])
        self.assertEqual(self.read_output("call"), [[[0.0, 0.5], [2.0, 2.5], [3.0, 3.5]], [[1.0, 1.5], [4.0, 4.5]]])
        snapshot = json.loads((self.snapshots / "tn-call.json").read_text(encoding="utf-8"))
        self.assertEqual([u["speaker"] for u in snapshot], [0, 1, 0, 0, 1])

    async def test_already_normalized_snapshot_prefix(self):
        self.add_audio("clean.wav")
        engine = FakeEngine({"clean": mono_response([1, 0])})
        await self.make(engine, snapshot=True).run()
        self.assertTrue((self.snapshots / "t-clean.json").exists())
        self.assertFalse((self.snapshots / "tn-clean.json").exists())

    async def test_classifier_failure_quarantines(self):
        self.add_audio("call.wav")
        engine = FakeEngine({"call": mono_response([0, 1, 2])})
        report = await self.make(engine, ScriptedClassifier(choices=[])).run()
        self.assertEqual(report.quarantined, ["call"])
        self.assertTrue((self.failed / "call.wav").exists())
        self.assertFalse((self.output / "call.json").exists())

    async def test_dual_mode_segments_each_channel(self):
        self.add_audio("stereo.wav")
        engine = FakeEngine({"stereo": dual_response([(0, 1), (1.2, 2)], [(0, 1), (2, 3)])})
        report = await self.make(engine, mode="dual").run()
        self.assertEqual(report.succeeded, ["stereo"])
        self.assertEqual(self.read_output("stereo"), [[[0, 2]], [[0, 1], [2, 3]]])

    async def test_cached_response_used_without_engine_call(self):
        self.add_audio("cached.wav")
        self.responses.mkdir()
        (self.responses / "cached.json").write_text(json.dumps(mono_response([0, 1])), encoding="utf-8")
        engine = FakeEngine({})
        report = await self.make(engine).run()
        self.assertEqual(report.succeeded, ["cached"])
        self.assertEqual(engine.calls, [])

    async def test_unrecognized_extension_is_quarantined(self):
        self.add_audio("notes.txt")
        report = await self.make(FakeEngine({})).run()
        self.assertEqual(report.quarantined, ["notes"])
        self.assertTrue((self.failed / "notes.txt").exists())

    async def test_extension_preference_order(self):
        self.add_audio("call.m4a")
        (self.upload / "call.wav").write_bytes(b"call")
        engine = FakeEngine({"call": mono_response([0, 1])})
        seen = []
        real_fetch = TranscriptCache.fetch

        async def spy(cache, audio_path):
            seen.append(audio_path.name)
            return await real_fetch(cache, audio_path)

        with mock.patch.object(TranscriptCache, "fetch", spy):
            report = await self.make(engine).run()
        self.assertEqual(report.succeeded, ["call"])
        self.assertEqual(seen, ["call.wav"])

    async def test_malformed_response_is_quarantined(self):
        self.add_audio("bad.wav")
        engine = FakeEngine({"bad": {"results": {"channels": []}}})
        report = await self.make(engine).run()
        self.assertEqual(report.quarantined, ["bad"])

    async def test_concurrency_is_bounded(self):
        names = [f"c{i}" for i in range(8)]
        for name in names:
            self.add_audio(f"{name}.wav")
        engine = FakeEngine({n: mono_response([0, 1]) for n in names}, delay=0.01)
        report = await self.make(engine, concurrency=3).run()
        self.assertEqual(len(report.succeeded), 8)
        self.assertLessEqual(engine.max_in_flight, 3)
        self.assertGreater(engine.max_in_flight, 1)

    async def test_hidden_files_ignored(self):
        (self.upload / ".DS_Store").write_bytes(b"")
        report = await self.make(FakeEngine({})).run()
        self.assertEqual(report.outcomes, {})


class TestSaveRetry(OrchestratorTestCase):
    async def test_save_retried_once_then_succeeds(self):
        self.add_audio("call.wav")
        engine = FakeEngine({"call": mono_response([0, 1])})
        orchestrator = self.make(engine)
        real_save = ResultStore.save
        calls = []

        def flaky(store, base_name, data):
            calls.append(base_name)
            if len(calls) == 1:
                raise OSError("disk full")
            return real_save(store, base_name, data)

        with mock.patch.object(ResultStore, "save", flaky):
            report = await orchestrator.run()
        self.assertEqual(report.succeeded, ["call"])
        self.assertEqual(len(calls), 2)
        self.assertTrue((self.output / "call.json").exists())

    async def test_second_save_failure_quarantines_and_cleans_up(self):
        self.add_audio("call.wav")
        engine = FakeEngine({"call": mono_response([0, 1])})
        orchestrator = self.make(engine)
        real_write = storage.write_json_atomic

        def mirror_fails(path, data, indent=2):
            if path.parent == self.mirror:
                raise OSError("mirror offline")
            return real_write(path, data, indent)

        with mock.patch("vadata.pipeline.storage.write_json_atomic", mirror_fails):
            report = await orchestrator.run()
        self.assertEqual(report.quarantined, ["call"])
        self.assertFalse((self.output / "call.json").exists())
        self.assertTrue((self.failed / "call.wav").exists())

    async def test_result_writes_run_off_the_event_loop_thread(self):
        self.add_audio("call.wav")
        orchestrator = self.make(FakeEngine({"call": mono_response([0, 1])}), snapshot=True)
        real_save = ResultStore.save
        real_snapshot = storage.save_snapshot
        threads = []

        def recording_save(store, base_name, data):
            threads.append(threading.get_ident())
            return real_save(store, base_name, data)

        def recording_snapshot(*args):
            threads.append(threading.get_ident())
            return real_snapshot(*args)

        with mock.patch.object(ResultStore, "save", recording_save), \
                mock.patch("vadata.pipeline.orchestrator.save_snapshot", recording_snapshot):
            report = await orchestrator.run()
        self.assertEqual(report.succeeded, ["call"])
        self.assertEqual(len(threads), 2)
        self.assertNotIn(threading.get_ident(), threads)


class TestFromSettings(unittest.TestCase):
    def test_dual_mode_needs_no_classifier_credentials(self):
        settings = Settings(_env_file=None, AUDIO_MODE="dual", DEEPGRAM_API_KEY="dg")
        orchestrator = BatchOrchestrator.from_settings(settings)
        self.assertIsInstance(orchestrator, BatchOrchestrator)

    def test_mono_mode_uses_injected_classifier(self):
        settings = Settings(_env_file=None, AUDIO_MODE="mono", MIRROR_DIR="")
        orchestrator = BatchOrchestrator.from_settings(settings, engine=FakeEngine({}), classifier=ScriptedClassifier())
        self.assertIsInstance(orchestrator, BatchOrchestrator)

    def test_mono_requires_normalizer(self):
        with self.assertRaises(ValueError):
            BatchOrchestrator(
                cache=TranscriptCache(FakeEngine({}), "r"), store=ResultStore("o"), source_dir="u", failed_dir="f"
            )


if __name__ == "__main__":
    unittest.main()
