"""Test atomicity of blob writes under concurrency."""

import threading

import pytest

from fs_blobstore.storage import FileSystemBlobStore


BLOB_SIZE = 256 * 1024


def _chunked_writer(fill: bytes):
    """Writer emitting BLOB_SIZE bytes of ``fill`` in small pieces."""
    def _write(stream, token):
        piece = fill * 1024
        for _ in range(BLOB_SIZE // len(piece)):
            stream.write(piece)
    return _write


class TestConcurrentWrites:
    """Test that concurrent writers never corrupt a blob."""

    def test_concurrent_updates_leave_one_complete_version(self, store, blob_dir, listing):
        """Racing upserts: last rename wins, content is always one writer's."""
        num_threads = 8
        iterations = 5
        errors = []

        def write_thread(thread_id):
            try:
                for i in range(iterations):
                    content = f"Thread {thread_id} iteration {i}".encode()
                    store.create_or_update("concurrent.txt", lambda s, t: s.write(content))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=write_thread, args=(i,)) for i in range(num_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        content = store.read_bytes("concurrent.txt").decode()
        assert content.startswith("Thread ")
        assert "iteration" in content
        assert listing(blob_dir) == ["concurrent.txt"]

    def test_racing_creates_commit_exactly_once(self, store, blob_dir, listing):
        """Creators that all pass the pre-check still produce a single winner."""
        num_threads = 6
        barrier = threading.Barrier(num_threads)
        results = {}

        def create_thread(thread_id):
            def writer(stream, token):
                stream.write(f"writer {thread_id}".encode())
                # Everyone has passed the pre-check before anyone commits
                barrier.wait(timeout=10)
            results[thread_id] = store.create("once.txt", writer)

        threads = [threading.Thread(target=create_thread, args=(i,)) for i in range(num_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        winners = [tid for tid, won in results.items() if won]
        assert len(winners) == 1
        assert store.read_bytes("once.txt") == f"writer {winners[0]}".encode()
        assert listing(blob_dir) == ["once.txt"]

    def test_independent_keys_in_parallel(self, store, blob_dir, listing):
        num_threads = 10

        def write_thread(thread_id):
            store.create(f"key-{thread_id}.bin", lambda s, t: s.write(bytes([thread_id]) * 100))

        threads = [threading.Thread(target=write_thread, args=(i,)) for i in range(num_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert listing(blob_dir) == sorted(f"key-{i}.bin" for i in range(num_threads))
        for i in range(num_threads):
            assert store.read_bytes(f"key-{i}.bin") == bytes([i]) * 100


class TestNoPartialVisibility:
    """Readers only ever observe complete versions."""

    @pytest.mark.slow
    def test_reader_never_sees_partial_content(self, store):
        old = b"A" * BLOB_SIZE
        new = b"B" * BLOB_SIZE
        store.create("k", _chunked_writer(b"A"))

        stop = threading.Event()
        observed = []

        def reader():
            while not stop.is_set():
                with store.read("k") as f:
                    observed.append(f.read())

        t = threading.Thread(target=reader)
        t.start()
        try:
            for i in range(20):
                store.create_or_update("k", _chunked_writer(b"B" if i % 2 == 0 else b"A"))
        finally:
            stop.set()
            t.join()

        assert observed
        for content in observed:
            assert content in (old, new)

    def test_absent_until_commit(self, store):
        """Mid-write, a brand new key is not visible at all."""
        seen = {}

        def writer(stream, token):
            stream.write(b"x" * 1024)
            stream.flush()
            seen["exists"] = store.exists("fresh")
            seen["read"] = store.read("fresh")

        assert store.create("fresh", writer)
        assert seen == {"exists": False, "read": None}
        assert store.read_bytes("fresh") == b"x" * 1024

    def test_old_version_visible_until_commit(self, store):
        store.write_bytes("k", b"old")
        seen = []

        def writer(stream, token):
            stream.write(b"new")
            stream.flush()
            seen.append(store.read_bytes("k"))

        store.create_or_update("k", writer)

        assert seen == [b"old"]
        assert store.read_bytes("k") == b"new"


class TestCrashSafety:
    """A write interrupted before commit leaves the store as it was."""

    def test_interrupted_write_leaves_old_content(self, blob_dir):
        store = FileSystemBlobStore.get_or_create(blob_dir)
        store.write_bytes("k", b"stable")

        def interrupted(stream, token):
            stream.write(b"half")
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            store.create_or_update("k", interrupted)

        assert sorted(p.name for p in blob_dir.iterdir()) == ["k"]
        assert store.read_bytes("k") == b"stable"
