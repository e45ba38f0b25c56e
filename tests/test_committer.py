import json
import threading

import pytest
import requests

from navstore.error_handling import (
    AuthFailureError, ConflictError, RemoteUnavailableError, RetriesExhaustedError,
    SchemaValidationError, RetryPolicy
)
from navstore.models import Credential, CommitRequest
from navstore.repository import ContentsClient, Committer, PublicReader

from fakes import FakeContentsSession, blob_sha

NAV_PATH = "navsphere/content/navigation.json"


def nav(*category_ids):
    return {
        "navigationItems": [
            {"id": cid, "title": cid.title(), "items": []} for cid in category_ids
        ]
    }


def encode(data):
    return json.dumps(data).encode("utf-8")


def test_create_then_read_returns_exact_payload(committer, reader, credential, remote):
    payload = encode({"navigationItems": []})

    result = committer.commit("nav.json", payload, "Create navigation", credential)

    assert result.new_revision_token
    assert result.created is True
    assert result.attempts == 1
    assert result.commit_sha is not None
    blob = reader.fetch("nav.json")
    assert blob.payload == payload
    assert blob.revision_token == result.new_revision_token


def test_create_does_not_send_sha(committer, credential, remote):
    committer.commit("nav.json", encode({"navigationItems": []}), "Create", credential)

    put = remote.calls("PUT")[0]
    assert "sha" not in put.body
    assert put.body["branch"] == "main"
    assert put.authorization == f"token {credential.token}"


def test_update_is_conditioned_on_current_token(committer, credential, remote):
    old_sha = remote.seed(NAV_PATH, nav("tools"))

    result = committer.commit(NAV_PATH, encode(nav("tools", "docs")), "Add docs", credential)

    assert remote.calls("PUT")[0].body["sha"] == old_sha
    assert result.previous_revision_token == old_sha
    assert result.new_revision_token == remote.sha_at(NAV_PATH)
    assert result.new_revision_token != old_sha
    assert result.created is False


def test_stale_expected_token_conflicts_then_succeeds_from_fresh_state(committer, credential, remote, sleeper):
    current = remote.seed(NAV_PATH, nav("tools"))

    result = committer.commit(
        NAV_PATH, encode(nav("tools", "docs")), "Add docs", credential, expected_revision_token="abc"
    )

    assert current != "abc"
    # First attempt detects the mismatch locally and never writes
    assert len(remote.calls("PUT")) == 1
    assert remote.calls("PUT")[0].body["sha"] == current
    assert result.attempts == 2
    assert result.previous_revision_token == current
    assert sleeper.delays == [1.0]


def test_matching_expected_token_commits_first_time(committer, credential, remote, sleeper):
    current = remote.seed(NAV_PATH, nav("tools"))

    result = committer.commit(
        NAV_PATH, encode(nav("docs")), "Replace", credential, expected_revision_token=current
    )

    assert result.attempts == 1
    assert sleeper.delays == []


def test_competing_writer_wins_then_retry_converges(committer, credential, remote, sleeper):
    remote.seed(NAV_PATH, nav("tools"))
    remote.competing_write(NAV_PATH, nav("tools", "news"))

    result = committer.commit(NAV_PATH, encode(nav("tools", "docs")), "Add docs", credential)

    assert result.attempts == 2
    puts = remote.calls("PUT")
    assert len(puts) == 2
    # The retry is conditioned on the competitor's revision, not the stale one
    assert puts[1].body["sha"] == blob_sha(encode(nav("tools", "news")))
    assert remote.payload_at(NAV_PATH) == encode(nav("tools", "docs"))
    assert sleeper.delays == [1.0]


def test_constant_contention_exhausts_budget(committer, credential, remote, sleeper):
    remote.seed(NAV_PATH, nav("tools"))
    remote.keep_competing(NAV_PATH)

    with pytest.raises(RetriesExhaustedError) as excinfo:
        committer.commit(NAV_PATH, encode(nav("docs")), "Replace", credential)

    error = excinfo.value
    assert error.attempts == 3
    assert error.concurrent_edit is True
    assert isinstance(error.last_error, ConflictError)
    assert len(remote.calls("PUT")) == 3
    assert sleeper.delays == [1.0, 2.0]
    # The competitor's content is never overwritten
    assert json.loads(remote.payload_at(NAV_PATH)) != nav("docs")


def test_backoff_respects_max_delay(client, coordinates, credential, remote, sleeper):
    committer = Committer(
        client, coordinates, RetryPolicy(max_attempts=4, base_delay=2.0, max_delay=3.0), sleep=sleeper
    )
    remote.seed(NAV_PATH, nav("tools"))
    remote.keep_competing(NAV_PATH)

    with pytest.raises(RetriesExhaustedError):
        committer.commit(NAV_PATH, encode(nav("docs")), "Replace", credential)

    assert sleeper.delays == [2.0, 3.0, 3.0]


def test_update_without_sha_is_a_conflict(remote, client, coordinates, credential):
    remote.seed(NAV_PATH, nav("tools"))

    with pytest.raises(ConflictError):
        client.put_content(coordinates, NAV_PATH, encode(nav("docs")), "Blind write", credential)

    assert remote.payload_at(NAV_PATH) == encode(nav("tools"))


def test_auth_failure_is_not_retried(client, coordinates, remote, sleeper):
    committer = Committer(client, coordinates, sleep=sleeper)

    with pytest.raises(AuthFailureError):
        committer.commit(NAV_PATH, encode(nav("docs")), "Replace", Credential("ghp_wrong_token_000000"))

    assert len(remote.calls("PUT")) == 1
    assert sleeper.delays == []


def test_non_transient_client_error_is_not_retried(committer, credential, remote, sleeper):
    remote.fail_next("PUT", 422, "Invalid request. Path is a directory")

    with pytest.raises(RemoteUnavailableError) as excinfo:
        committer.commit(NAV_PATH, encode(nav("docs")), "Replace", credential)

    assert excinfo.value.transient is False
    assert excinfo.value.status_code == 422
    assert len(remote.calls("PUT")) == 1
    assert sleeper.delays == []


def test_transient_failure_is_retried_within_budget(committer, credential, remote, sleeper):
    remote.fail_next("PUT", 502, "Bad gateway")

    result = committer.commit(NAV_PATH, encode(nav("docs")), "Replace", credential)

    assert result.attempts == 2
    assert sleeper.delays == [1.0]


def test_timeout_is_retried(committer, credential, remote):
    remote.raise_next("GET", requests.exceptions.Timeout("read timed out"))

    result = committer.commit(NAV_PATH, encode(nav("docs")), "Replace", credential)

    assert result.attempts == 2


def test_transient_failures_exhaust_without_concurrent_edit(committer, credential, remote):
    for _ in range(3):
        remote.fail_next("PUT", 503, "Service unavailable")

    with pytest.raises(RetriesExhaustedError) as excinfo:
        committer.commit(NAV_PATH, encode(nav("docs")), "Replace", credential)

    assert excinfo.value.concurrent_edit is False
    assert isinstance(excinfo.value.last_error, RemoteUnavailableError)


def test_single_attempt_policy_never_sleeps(client, coordinates, credential, remote, sleeper):
    committer = Committer(client, coordinates, RetryPolicy(max_attempts=1), sleep=sleeper)
    remote.seed(NAV_PATH, nav("tools"))
    remote.competing_write(NAV_PATH, nav("news"))

    with pytest.raises(RetriesExhaustedError) as excinfo:
        committer.commit(NAV_PATH, encode(nav("docs")), "Replace", credential)

    assert excinfo.value.attempts == 1
    assert sleeper.delays == []


def test_identical_content_is_not_rewritten(committer, credential, remote):
    sha = remote.seed(NAV_PATH, encode(nav("tools")))

    result = committer.commit(NAV_PATH, encode(nav("tools")), "No-op", credential)

    assert result.changed is False
    assert result.new_revision_token == sha
    assert result.previous_revision_token == sha
    assert remote.calls("PUT") == []


@pytest.mark.parametrize("payload, message", [
    (b"not json", "Bad payload"),
    (b"\xff\xfe", "Bad encoding"),
    (encode([1, 2, 3]), "Not an object"),
    (encode({"items": []}), "Missing navigationItems"),
    (encode(nav("tools")), "   "),
])
def test_invalid_requests_fail_before_any_network_call(committer, credential, remote, payload, message):
    with pytest.raises(SchemaValidationError):
        committer.commit(NAV_PATH, payload, message, credential)

    assert remote.requests == []


def test_unchanged_token_after_write_is_an_error(committer, credential, remote):
    current = remote.seed(NAV_PATH, nav("tools"))
    remote.respond_next("PUT", 200, {"content": {"sha": current}, "commit": {"sha": "c" * 40}})

    with pytest.raises(RemoteUnavailableError):
        committer.commit(NAV_PATH, encode(nav("docs")), "Replace", credential)


def test_commit_request_round_trip(committer, credential, remote):
    request = CommitRequest.from_json(NAV_PATH, nav("tools"), "Create navigation")

    result = committer.commit_request(request, credential)

    assert json.loads(remote.payload_at(NAV_PATH)) == nav("tools")
    assert result.to_dict()["new_revision_token"] == result.new_revision_token


def test_concurrent_committers_never_lose_an_update(coordinates, credential):
    remote = FakeContentsSession(owner="acme", repo="portal")
    lock = threading.Lock()
    original_request = remote.request

    def serialized(*args, **kwargs):
        with lock:
            return original_request(*args, **kwargs)

    remote.request = serialized
    remote.seed(NAV_PATH, nav())
    client = ContentsClient(session=remote)
    results = {}
    errors = {}

    def editor(name):
        committer = Committer(client, coordinates, RetryPolicy(max_attempts=10, base_delay=0.0), sleep=lambda s: None)
        try:
            results[name] = committer.commit(NAV_PATH, encode(nav(name)), f"Edit by {name}", credential)
        except RetriesExhaustedError as e:
            errors[name] = e

    threads = [threading.Thread(target=editor, args=(name,)) for name in ("alpha", "beta", "gamma")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    # Every successful write produced a distinct revision, and each was
    # conditioned on the revision that preceded it.
    tokens = [r.new_revision_token for r in results.values()]
    assert len(tokens) == len(set(tokens))
    previous = {r.previous_revision_token for r in results.values()}
    assert len(previous) == len(results)
    assert len(results) + len(errors) == 3
    final = PublicReader(client, coordinates).fetch(NAV_PATH)
    assert final.revision_token in tokens
