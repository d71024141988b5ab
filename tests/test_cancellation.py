"""Test cancellation tokens."""

import threading

import pytest

from fs_blobstore import CancellationToken
from fs_blobstore.errors import BlobStoreError, OperationCancelledError


class TestCancellationToken:

    def test_starts_uncancelled(self):
        token = CancellationToken()
        assert not token.cancelled
        token.raise_if_cancelled()

    def test_cancel(self):
        token = CancellationToken()
        token.cancel()

        assert token.cancelled
        with pytest.raises(OperationCancelledError):
            token.raise_if_cancelled()

    def test_cancel_is_idempotent(self):
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.cancelled

    def test_none_tokens_are_independent(self):
        a = CancellationToken.none()
        a.cancel()
        assert not CancellationToken.none().cancelled

    def test_cancel_from_other_thread(self):
        token = CancellationToken()
        t = threading.Thread(target=token.cancel)
        t.start()
        t.join()
        assert token.cancelled

    def test_error_hierarchy(self):
        assert issubclass(OperationCancelledError, BlobStoreError)

    def test_repr(self):
        assert "cancelled=False" in repr(CancellationToken())
