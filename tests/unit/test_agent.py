import threading
from datetime import date
from pathlib import Path

import pytest

from file_sender.core.agent import FileSenderAgent


@pytest.fixture
def agent(settings, session, clock):
    for directory in (settings.send_dir, settings.archive_dir):
        Path(directory).mkdir(parents=True)
    agent = FileSenderAgent(settings, session=session)
    agent.tracker.clock = clock
    agent.start()
    yield agent
    agent.stop()
    agent.pool.join(timeout=1)


def today_dir(settings):
    return Path(settings.archive_dir) / date.today().strftime("%Y-%m-%d")


def run_cycle(agent):
    submitted = agent.watcher.poll_once()
    agent.pool.wait_idle()
    return submitted


def test_stable_file_is_uploaded_once_and_archived(agent, settings, session, clock):
    report = Path(settings.send_dir) / "report.csv"
    report.write_bytes(b"r" * 10 * 1024)

    assert run_cycle(agent) == []
    clock.advance(settings.stability_seconds)
    assert run_cycle(agent) == [str(report)]

    assert not report.exists()
    assert (today_dir(settings) / "report.csv").read_bytes() == b"r" * 10 * 1024
    snapshot = agent.stats.snapshot()
    assert snapshot.total_files_sent == 1
    assert snapshot.total_bytes_sent == 10 * 1024

    clock.advance(1)
    assert run_cycle(agent) == []
    assert session.post.call_count == 1
    assert len(agent.tracker) == 0

    files = session.post.call_args.kwargs["files"]
    assert list(files) == ["file"]
    assert files["file"][0] == "report.csv"


def test_server_error_leaves_file_for_next_poll(agent, settings, session, clock, make_response, caplog):
    session.post.return_value = make_response(500, "Internal Server Error", "oops")
    report = Path(settings.send_dir) / "report.csv"
    report.write_text("data")

    run_cycle(agent)
    clock.advance(settings.stability_seconds)
    assert run_cycle(agent) == [str(report)]

    assert report.exists()
    assert not today_dir(settings).exists()
    assert agent.stats.snapshot().total_files_sent == 0
    assert "Error sending the file" in caplog.text

    first_seen = agent.tracker.get(str(report)).first_seen
    clock.advance(1)
    assert run_cycle(agent) == [str(report)]
    assert session.post.call_count == 2
    assert agent.tracker.get(str(report)).first_seen == first_seen


def test_same_name_twice_in_a_day_keeps_both(agent, settings, clock):
    report = Path(settings.send_dir) / "report.csv"

    for content in ("monday", "again"):
        report.write_text(content)
        run_cycle(agent)
        clock.advance(settings.stability_seconds)
        run_cycle(agent)
        clock.advance(1)
        run_cycle(agent)

    assert (today_dir(settings) / "report.csv").read_text() == "monday"
    assert (today_dir(settings) / "report_1.csv").read_text() == "again"


def test_many_files_each_sent_once(agent, settings, session, clock):
    names = [f"batch_{i}.dat" for i in range(12)]
    for name in names:
        (Path(settings.send_dir) / name).write_text(name)

    run_cycle(agent)
    clock.advance(settings.stability_seconds)
    run_cycle(agent)
    clock.advance(1)
    run_cycle(agent)

    sent = sorted(call.kwargs["files"]["file"][0] for call in session.post.call_args_list)
    assert sent == sorted(names)
    assert sorted(p.name for p in today_dir(settings).iterdir()) == sorted(names)


def test_missing_client_certificate_falls_back(settings, session, tmp_path, caplog):
    settings.use_https = True
    settings.cert_file = str(tmp_path / "missing.crt")
    settings.key_file = str(tmp_path / "missing.key")

    agent = FileSenderAgent(settings, session=session)

    assert agent.uploader.cert is None
    assert "Client certificate files not found" in caplog.text


def test_client_certificate_is_loaded(settings, session, tmp_path):
    cert = tmp_path / "client.crt"
    key = tmp_path / "client.key"
    cert.write_text("cert")
    key.write_text("key")
    settings.use_https = True
    settings.cert_file = str(cert)
    settings.key_file = str(key)

    agent = FileSenderAgent(settings, session=session)

    assert agent.uploader.cert == (str(cert), str(key))


def test_run_returns_after_stop(settings, session):
    Path(settings.send_dir).mkdir(parents=True)
    agent = FileSenderAgent(settings, session=session)

    thread = threading.Thread(target=agent.run)
    thread.start()
    agent.stop()
    thread.join(5)

    assert not thread.is_alive()
    assert agent.pool.stopping


def test_file_finished_during_a_poll_is_not_sent_again(agent, settings, session, clock, monkeypatch, caplog):
    send_dir = Path(settings.send_dir)
    for name in ("a.txt", "b.txt", "c.txt"):
        (send_dir / name).write_text(name)
    early = str(send_dir / "a.txt")

    run_cycle(agent)
    clock.advance(settings.stability_seconds)
    # Queued in an earlier cycle, still waiting for a worker
    assert agent.tracker.claim(early)

    list_candidates = agent.watcher._list_candidates

    def listing_with_early_file_last():
        return sorted(list_candidates(), key=lambda entry: entry[0] == early)

    monkeypatch.setattr(agent.watcher, "_list_candidates", listing_with_early_file_last)

    submit = agent.watcher.submit
    finished = []

    def submit_while_early_file_finishes(path):
        if not finished:
            agent.process_file(early)
            finished.append(early)
        return submit(path)

    agent.watcher.submit = submit_while_early_file_finishes

    submitted = agent.watcher.poll_once()
    agent.pool.wait_idle()

    assert early not in submitted
    assert (today_dir(settings) / "a.txt").read_text() == "a.txt"
    assert session.post.call_count == 3
    assert "File does not exist" not in caplog.text

    clock.advance(1)
    assert run_cycle(agent) == []
    assert early not in agent.tracker
    assert session.post.call_count == 3


def test_failed_archive_releases_file_for_retry(agent, settings, session, clock, monkeypatch):
    report = Path(settings.send_dir) / "report.csv"
    report.write_text("data")
    monkeypatch.setattr(agent.archiver, "archive", lambda path: None)

    run_cycle(agent)
    clock.advance(settings.stability_seconds)
    assert run_cycle(agent) == [str(report)]

    assert not agent.tracker.get(str(report)).in_flight


def test_stop_closes_the_http_session(settings, session):
    agent = FileSenderAgent(settings, session=session)

    agent.stop()

    session.close.assert_called_once_with()
