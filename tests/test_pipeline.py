"""Tests for the ingest and ask pipelines against in-memory fakes."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from src.errors import EmbeddingDimensionError, UnknownLessonsError
from src.ingestion.pipeline import ingest, ingest_lesson, list_transcripts
from src.ingestion.storage import LexicalHit, VectorHit
from src.pipeline_config import EmbeddingMode
from src.retrieval.pipeline import NO_MATCHES_ANSWER, ask


def srt_block(n: int, start: int, end: int, text: str) -> str:
    return f"{n}\n00:00:{start:02d},000 --> 00:00:{end:02d},000\n{text}\n"


SAMPLE_SRT = "\n".join(
    srt_block(i + 1, i * 5, i * 5 + 5, f"Sentence number {i} about recursion.") for i in range(12)
)


def write_lesson(directory: Path, name: str, content: str = SAMPLE_SRT) -> Path:
    path = directory / f"{name}.srt"
    path.write_text(content, encoding="utf-8")
    return path


class TestIngest:
    def test_ingests_all_srt_files(self, ctx, gateway, inference, tmp_path: Path) -> None:
        write_lesson(tmp_path, "lesson1")
        write_lesson(tmp_path, "lesson2")
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

        report = ingest(ctx, tmp_path)

        assert set(report.ingested) == {"lesson1", "lesson2"}
        assert report.total_files == 2
        indexes = sorted(i for lesson, i in gateway.chunks if lesson == "lesson1")
        assert indexes == list(range(len(indexes)))
        assert gateway.fingerprints["lesson1"].size == len(SAMPLE_SRT.encode())
        assert all(mode is EmbeddingMode.DOCUMENT for _t, mode in inference.embedded)

    def test_unchanged_file_skipped(self, ctx, gateway, tmp_path: Path) -> None:
        write_lesson(tmp_path, "lesson1")
        ingest(ctx, tmp_path)
        count = gateway.chunk_count("lesson1")

        report = ingest(ctx, tmp_path)

        assert report.skipped == ["lesson1"]
        assert report.ingested == {}
        assert gateway.chunk_count("lesson1") == count

    def test_force_reingests(self, ctx, gateway, tmp_path: Path) -> None:
        write_lesson(tmp_path, "lesson1")
        ingest(ctx, tmp_path)
        report = ingest(ctx, tmp_path, force=True)
        assert "lesson1" in report.ingested
        assert ("delete_lesson", "lesson1") in gateway.calls

    def test_changed_file_replaces_chunk_set(self, ctx, gateway, tmp_path: Path) -> None:
        path = write_lesson(tmp_path, "lesson1")
        ingest(ctx, tmp_path)
        assert gateway.chunk_count("lesson1") > 1

        path.write_text(srt_block(1, 0, 3, "Short now."), encoding="utf-8")
        stats = path.stat()
        os.utime(path, ns=(stats.st_atime_ns, stats.st_mtime_ns + 5_000_000_000))
        report = ingest(ctx, tmp_path)

        assert report.ingested == {"lesson1": 1}
        assert gateway.chunk_count("lesson1") == 1
        assert gateway.chunks[("lesson1", 0)].text == "Short now."

    def test_stale_rows_without_fingerprint_removed(self, ctx, gateway, chunk_factory, tmp_path: Path) -> None:
        # An interrupted earlier run left rows but never wrote the fingerprint
        gateway.add(*(chunk_factory("lesson1", i) for i in range(40)))
        write_lesson(tmp_path, "lesson1")

        report = ingest(ctx, tmp_path)

        assert gateway.chunk_count("lesson1") == report.ingested["lesson1"]

    def test_empty_lesson_reported(self, ctx, gateway, tmp_path: Path) -> None:
        write_lesson(tmp_path, "blank", "no timecodes here\n\nat all\n")
        report = ingest(ctx, tmp_path)
        assert report.empty == ["blank"]
        assert gateway.fingerprints == {}

    def test_changed_to_unparseable_removes_old_chunks(self, ctx, gateway, tmp_path: Path) -> None:
        path = write_lesson(tmp_path, "lesson1")
        ingest(ctx, tmp_path)
        assert gateway.chunk_count("lesson1") > 0

        path.write_text("no timecodes any more\n", encoding="utf-8")
        stats = path.stat()
        os.utime(path, ns=(stats.st_atime_ns, stats.st_mtime_ns + 5_000_000_000))
        report = ingest(ctx, tmp_path)

        assert report.empty == ["lesson1"]
        assert gateway.chunk_count("lesson1") == 0
        assert "lesson1" not in gateway.fingerprints

    def test_changed_to_cues_without_text_removes_old_chunks(self, ctx, gateway, tmp_path: Path) -> None:
        path = write_lesson(tmp_path, "lesson1")
        ingest(ctx, tmp_path)

        path.write_text(srt_block(1, 0, 3, "[Music]"), encoding="utf-8")
        stats = path.stat()
        os.utime(path, ns=(stats.st_atime_ns, stats.st_mtime_ns + 5_000_000_000))
        report = ingest(ctx, tmp_path)

        assert report.empty == ["lesson1"]
        assert gateway.chunk_count("lesson1") == 0

    def test_failed_lesson_does_not_stop_run(self, ctx, gateway, inference, tmp_path: Path) -> None:
        write_lesson(tmp_path, "a_bad")
        write_lesson(tmp_path, "b_good")
        original = inference.embed_many
        calls = {"n": 0}

        def flaky(texts, mode):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("embedding service down")
            return original(texts, mode)

        inference.embed_many = flaky
        report = ingest(ctx, tmp_path)

        assert "embedding service down" in report.failed["a_bad"]
        assert "b_good" in report.ingested
        assert "a_bad" not in gateway.fingerprints

    def test_dimension_mismatch_checked_before_write(self, ctx, gateway, chunk_factory, tmp_path: Path) -> None:
        existing = chunk_factory("lesson1", 0)
        gateway.add(existing)
        ctx.inference.dimensions = 3
        path = write_lesson(tmp_path, "lesson1")

        with pytest.raises(EmbeddingDimensionError):
            ingest_lesson(ctx, path)

        assert gateway.chunks == {existing.key: existing}
        assert ("delete_lesson", "lesson1") not in gateway.calls

    def test_no_srt_files(self, ctx, tmp_path: Path) -> None:
        report = ingest(ctx, tmp_path)
        assert report.total_files == 0
        assert report.ingested == {}

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(NotADirectoryError):
            list_transcripts(tmp_path / "nope")

    def test_uppercase_extension_listed(self, tmp_path: Path) -> None:
        (tmp_path / "Lesson.SRT").write_text(SAMPLE_SRT, encoding="utf-8")
        assert [p.stem for p in list_transcripts(tmp_path)] == ["Lesson"]


class TestAsk:
    def _seed(self, gateway, chunk_factory):
        chunks = [chunk_factory("lesson1", i) for i in range(5)]
        gateway.add(*chunks)
        gateway.vector_results = [VectorHit(chunks[3], 0.1), VectorHit(chunks[1], 0.2)]
        gateway.lexical_results = [LexicalHit(chunks[1], -2.0)]
        return chunks

    def test_answer_with_reranked_sources(self, ctx, gateway, inference, chunk_factory) -> None:
        self._seed(gateway, chunk_factory)
        # fused order: chunk 1 (both lists), chunk 3; rerank flips it
        inference.scores = [1, 5]

        result = ask(ctx, "what is recursion?", top_k=1)

        assert result.answer == "The answer [1]."
        assert result.rerank is not None and result.rerank.refined
        assert [c.chunk.chunk_index for c in result.rerank.candidates] == [3, 1]
        # top-1 is chunk 3, expanded with neighbours 2 and 4
        assert [c.key for c in result.sources] == [("lesson1", 2), ("lesson1", 3), ("lesson1", 4)]
        prompt = inference.prompts[0]
        assert "[1] Lesson: lesson1" in prompt
        assert "what is recursion?" in prompt

    def test_rerank_fallback_is_visible(self, ctx, gateway, inference, chunk_factory) -> None:
        self._seed(gateway, chunk_factory)
        inference.scores = RuntimeError("overloaded")

        result = ask(ctx, "q", top_k=1)

        assert result.rerank is not None
        assert not result.rerank.refined
        assert "overloaded" in (result.rerank.fallback_reason or "")
        assert ("lesson1", 1) in [c.key for c in result.sources]

    def test_no_matches_skips_generation(self, ctx, inference) -> None:
        result = ask(ctx, "anything")
        assert result.answer == NO_MATCHES_ANSWER
        assert inference.prompts == []

    def test_unknown_lesson_rejected_before_retrieval(self, ctx, gateway, inference, chunk_factory) -> None:
        self._seed(gateway, chunk_factory)
        with pytest.raises(UnknownLessonsError) as excinfo:
            ask(ctx, "q", lessons=["Lesson1x"])
        assert excinfo.value.suggestions["Lesson1x"] == ["lesson1"]
        assert inference.embedded == []

    def test_lesson_filter_applied(self, ctx, gateway, inference, chunk_factory) -> None:
        self._seed(gateway, chunk_factory)
        other = chunk_factory("lesson2", 0)
        gateway.add(other)
        gateway.vector_results.insert(0, VectorHit(other, 0.01))
        inference.scores = [3, 3]

        result = ask(ctx, "q", lessons=["lesson1"])

        assert all(c.lesson == "lesson1" for c in result.sources)
        assert ("vector_search", 500, ["lesson1"]) in gateway.calls
