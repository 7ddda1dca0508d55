"""Tests for chunk and artifact digests."""

import hashlib

from common.checksum import ArtifactDigest, chunk_matches, sha256_hex


def test_sha256_hex():
    assert sha256_hex(b'abc') == hashlib.sha256(b'abc').hexdigest()


def test_chunk_matches_ignores_case_and_whitespace():
    claimed = f"  {sha256_hex(b'chunk').upper()}\n"

    assert chunk_matches(b'chunk', claimed)
    assert not chunk_matches(b'other', claimed)


def test_artifact_digest_tracks_size_and_hash():
    digest = ArtifactDigest()
    for piece in (b'part one, ', b'', b'part two'):
        digest.update(piece)

    assert digest.size == 18
    assert digest.hexdigest() == sha256_hex(b'part one, part two')
